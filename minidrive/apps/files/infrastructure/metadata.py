"""Metadata helpers for files and folders."""

import mimetypes
from typing import Final
from urllib.parse import quote

from django.core.exceptions import ValidationError

_DEFAULT_MIME_TYPE: Final = 'application/octet-stream'
_NAME_MAX_LENGTH: Final = 255


def detect_mime_type(filename: str) -> str:
    """Guess MIME type from the filename extension.

    Args:
        filename: Filename with extension.

    Returns:
        MIME type string (e.g., 'image/jpeg', 'application/pdf').
        Returns 'application/octet-stream' if type cannot be determined.
    """
    mime_type, _ = mimetypes.guess_type(filename)
    if mime_type is None:
        return _DEFAULT_MIME_TYPE
    return mime_type


def clean_item_name(name: str) -> str:
    """Validate and normalize a file or folder name.

    Args:
        name: Name as supplied by the caller.

    Returns:
        Name with surrounding whitespace removed.

    Raises:
        ValidationError: If the name is empty, too long or contains
            a path separator.
    """
    cleaned = name.strip()
    if not cleaned:
        raise ValidationError('Name cannot be empty')
    if len(cleaned) > _NAME_MAX_LENGTH:
        raise ValidationError(
            f'Name cannot be longer than {_NAME_MAX_LENGTH} characters',
        )
    if '/' in cleaned or cleaned in {'.', '..'}:
        raise ValidationError(f'Invalid name: {cleaned!r}')
    return cleaned


def build_object_metadata(filename: str, mime_type: str) -> dict[str, str]:
    """Build S3 user metadata for an uploaded blob.

    S3 metadata values must be ASCII, so the filename is percent-encoded.

    Args:
        filename: Original filename.
        mime_type: MIME type of the content.

    Returns:
        Metadata dictionary for the object store.
    """
    return {
        'original-filename': quote(filename, safe=''),
        'content-type': mime_type,
    }
