"""Content-type lookup against a mime.types style rules file."""

import logging

from httpd.domain.connection_id import ConnectionLoggerAdapter

MIME_LOGGER = ConnectionLoggerAdapter(logging.getLogger("httpd.mime_types"), {})


def file_extension(path: str) -> str:
    """Return the text after the last dot of the final path component."""
    name = path.rsplit("/", 1)[-1]
    _, dot, extension = name.rpartition(".")
    return extension if dot else ""


def determine_mimetype(path: str, mime_types_path: str, default: str) -> str:
    """Return the content type for ``path`` or ``default`` when none matches.

    Each rule line reads ``<mimetype> <ext1> <ext2> ...``. Only the first
    extension of a rule is compared, so a rule listing several extensions
    matches on its first one alone.
    """
    extension = file_extension(path)
    if not extension:
        return default

    try:
        rules = open(mime_types_path, "r", encoding="utf-8", errors="replace")
    except OSError as error:
        MIME_LOGGER.warning(
            "Mime types file unavailable",
            extra={
                "event": "mime_types_unavailable",
                "path": mime_types_path,
                "error_type": type(error).__name__,
            },
        )
        return default

    with rules:
        for line in rules:
            if line.startswith("#") or not line.strip():
                continue
            tokens = line.split()
            if len(tokens) > 1 and tokens[1] == extension:
                return tokens[0]
    return default

