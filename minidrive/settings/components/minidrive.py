"""Application settings for the storage core."""

from minidrive.settings.components import config

# HKDF input keying material for per-file keys, at least 32 characters
MASTER_ENCRYPTION_KEY = config('MASTER_ENCRYPTION_KEY', default='')

# Bearer sessions
SESSION_EXPIRY_HOURS = config('SESSION_EXPIRY_HOURS', cast=int, default=168)

# WebAuthn challenge lifetime in seconds
WEBAUTHN_CHALLENGE_TTL = config('WEBAUTHN_CHALLENGE_TTL', cast=int, default=60)

# Share links
MINIDRIVE_APP_URL = config('MINIDRIVE_APP_URL', default='http://localhost:8000')
SHARE_MAX_EXPIRY_HOURS = config('SHARE_MAX_EXPIRY_HOURS', cast=int, default=168)
SHARE_PRESIGNED_URL_TTL = config(
    'SHARE_PRESIGNED_URL_TTL',
    cast=int,
    default=3600,
)
