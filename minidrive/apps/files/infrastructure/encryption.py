"""Per-file key derivation and random token generation."""

import base64
import secrets
from typing import TYPE_CHECKING, Final

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

if TYPE_CHECKING:
    from minidrive.apps.files.models import File

FILE_KEY_LENGTH: Final = 32
_SALT_BYTES: Final = 32
_TOKEN_BYTES: Final = 32
_MIN_MASTER_SECRET_LENGTH: Final = 32
_INFO_PREFIX: Final = 'minidrive-file-'


def validate_master_secret(master_secret: str | None) -> None:
    """Check the master secret is usable for key derivation.

    Called once at startup; derivation itself never re-validates.

    Args:
        master_secret: Value of ``MASTER_ENCRYPTION_KEY``.

    Raises:
        ImproperlyConfigured: If the secret is missing or too short.
    """
    if not master_secret:
        raise ImproperlyConfigured('MASTER_ENCRYPTION_KEY is not set')
    if len(master_secret) < _MIN_MASTER_SECRET_LENGTH:
        raise ImproperlyConfigured(
            'MASTER_ENCRYPTION_KEY must be at least '
            f'{_MIN_MASTER_SECRET_LENGTH} characters',
        )


def derive_file_key(
    master_secret: str,
    salt: str,
    file_id: int | str,
) -> bytes:
    """Derive the 32-byte encryption key of one file.

    HKDF-SHA256 over the master secret, with the file's random salt
    and the literal file id in the info parameter. Two files never
    share a key even if a salt is reused.

    Args:
        master_secret: Process-wide master secret.
        salt: Base64-encoded per-file salt.
        file_id: Identifier of the file.

    Returns:
        Raw 32-byte key.
    """
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=FILE_KEY_LENGTH,
        salt=base64.b64decode(salt),
        info=f'{_INFO_PREFIX}{file_id}'.encode(),
    )
    return hkdf.derive(master_secret.encode())


def derive_key_for_file(file_instance: 'File') -> bytes:
    """Derive the key of a stored file using the configured secret."""
    return derive_file_key(
        settings.MASTER_ENCRYPTION_KEY,
        file_instance.encryption_salt,
        file_instance.id,
    )


def generate_salt() -> str:
    """Generate a random per-file salt.

    Returns:
        32 random bytes, base64-encoded.
    """
    return base64.b64encode(secrets.token_bytes(_SALT_BYTES)).decode('ascii')


def generate_token() -> str:
    """Generate an unguessable bearer token for sessions and shares.

    Returns:
        32 random bytes, URL-safe base64 without padding.
    """
    return secrets.token_urlsafe(_TOKEN_BYTES)
