"""Filename sanitizer for turning embedded-image references into safe base names."""

import re

CONTENT_DELIMITER = '/content/'
OPEN_ELEMENT_MARKER = '?OpenElement'

_OPEN_ELEMENT_SUFFIX = re.compile(re.escape(OPEN_ELEMENT_MARKER) + r'$')
_TRAILING_EXTENSION = re.compile(r'\.[^.]+$')
_DISALLOWED_CHARS = re.compile(r'[^A-Za-z0-9\-]')
_HYPHEN_RUNS = re.compile(r'-{2,}')


class MalformedReferenceError(ValueError):
    """Raised when a reference does not contain the content delimiter."""
    pass


def to_valid_filename(reference: str) -> str:
    """
    Convert an embedded-image reference into a filesystem-safe base name.

    References have the form ``{document-name}/content/{element}?OpenElement``,
    e.g. ``celebrating-openntfs-20th-anniversary.htm/content/M3?OpenElement``
    becomes ``celebrating-openntfs-20th-anniversary-M3``.

    Args:
        reference: Image reference as found in the HTML

    Returns:
        Base filename without extension

    Raises:
        MalformedReferenceError: If the reference has no '/content/' part
    """
    reference = _OPEN_ELEMENT_SUFFIX.sub('', reference, count=1)

    parts = reference.split(CONTENT_DELIMITER, 1)
    if len(parts) < 2:
        raise MalformedReferenceError(
            f"Reference must contain '{CONTENT_DELIMITER}' exactly once: {reference}"
        )

    path_part, suffix_part = parts

    path_part = _TRAILING_EXTENSION.sub('', path_part, count=1)
    path_part = _DISALLOWED_CHARS.sub('-', path_part)
    path_part = _HYPHEN_RUNS.sub('-', path_part)
    path_part = path_part.strip('-')

    return f"{path_part}-{suffix_part}"


__all__ = ['to_valid_filename', 'MalformedReferenceError', 'CONTENT_DELIMITER', 'OPEN_ELEMENT_MARKER']
