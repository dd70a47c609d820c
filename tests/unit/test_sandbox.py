"""Unit tests for request path resolution inside the document root."""

import os
from pathlib import Path

import pytest

from httpd.domain.errors import ForbiddenPath, NotFound
from httpd.domain.sandbox import resolve_request_path


@pytest.fixture(name="root")
def fixture_root(tmp_path: Path) -> Path:
    """Document root with a file, a subdirectory and an outside secret."""
    root = tmp_path / "www"
    (root / "sub").mkdir(parents=True)
    (root / "index.html").write_text("index")
    (root / "sub" / "page.txt").write_text("page")
    (tmp_path / "secret.txt").write_text("secret")
    return root.resolve()


def test_resolves_file_to_canonical_path(root: Path):
    """A plain URI maps to the file below the root."""
    assert resolve_request_path(str(root), "/index.html") == root / "index.html"


def test_root_uri_resolves_to_root_itself(root: Path):
    """The root directory is its own descendant."""
    assert resolve_request_path(str(root), "/") == root


def test_dot_segments_inside_root_are_collapsed(root: Path):
    """'.' and '..' that stay inside the root are allowed."""
    resolved = resolve_request_path(str(root), "/sub/./../sub/page.txt")
    assert resolved == root / "sub" / "page.txt"


@pytest.mark.parametrize(
    "uri",
    ["/../secret.txt", "/sub/../../secret.txt", "/../../etc/passwd", "/.."],
)
def test_traversal_outside_root_is_rejected(root: Path, uri: str):
    """Paths escaping the root never resolve, whether or not they exist."""
    with pytest.raises(NotFound):
        resolve_request_path(str(root), uri)


def test_existing_escape_raises_forbidden_path(root: Path):
    """An escape to an existing file is reported as a containment failure."""
    with pytest.raises(ForbiddenPath):
        resolve_request_path(str(root), "/../secret.txt")


def test_symlink_escape_is_rejected(root: Path):
    """Symlinks pointing outside the root are resolved and rejected."""
    os.symlink(root.parent / "secret.txt", root / "link.txt")
    with pytest.raises(ForbiddenPath):
        resolve_request_path(str(root), "/link.txt")


def test_symlink_inside_root_is_followed(root: Path):
    """Symlinks that stay inside the root resolve to their target."""
    os.symlink(root / "sub" / "page.txt", root / "alias.txt")
    assert resolve_request_path(str(root), "/alias.txt") == root / "sub" / "page.txt"


def test_sibling_directory_sharing_prefix_is_rejected(root: Path):
    """A sibling like 'www2' is not inside 'www' despite the shared prefix."""
    sibling = root.parent / "www2"
    sibling.mkdir()
    (sibling / "file.txt").write_text("sibling")
    with pytest.raises(ForbiddenPath):
        resolve_request_path(str(root), "/../www2/file.txt")


def test_missing_path_raises_not_found(root: Path):
    """Nonexistent targets fail canonicalization."""
    with pytest.raises(NotFound):
        resolve_request_path(str(root), "/missing.txt")


def test_percent_encoded_names_are_decoded(root: Path):
    """Encoded characters are decoded before the filesystem lookup."""
    (root / "with space.txt").write_text("spaced")
    assert (
        resolve_request_path(str(root), "/with%20space.txt") == root / "with space.txt"
    )


def test_literal_percent_in_name_needs_escaping(root: Path):
    """A name containing a literal %XX is reached through %25XX."""
    (root / "100%41.txt").write_text("literal")
    assert resolve_request_path(str(root), "/100%2541.txt") == root / "100%41.txt"
    with pytest.raises(NotFound):
        resolve_request_path(str(root), "/100%41.txt")


def test_encoded_traversal_is_rejected(root: Path):
    """Encoded dot segments are canonicalized like literal ones."""
    with pytest.raises(NotFound):
        resolve_request_path(str(root), "/%2e%2e/secret.txt")


def test_nul_byte_is_rejected(root: Path):
    """Embedded NUL bytes never reach the filesystem."""
    with pytest.raises(NotFound):
        resolve_request_path(str(root), "/index.html%00.txt")


def test_resolution_is_idempotent(root: Path):
    """Resolving the same URI twice yields the same canonical path."""
    first = resolve_request_path(str(root), "/sub/../index.html")
    second = resolve_request_path(str(root), "/sub/../index.html")
    assert first == second == root / "index.html"
