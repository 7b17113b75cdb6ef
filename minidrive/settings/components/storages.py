"""Django storage configuration for S3-compatible backends.

This module configures django-storages to work with:
- MinIO for local development
- Any S3 endpoint supporting SSE-C (customer provided keys) in production

User files always go through EncryptedFileStorage, which applies the
per-file key on every read and write.
"""

from typing import Any, Final

from minidrive.settings.components import config

STORAGES: Final[dict[str, dict[str, Any]]] = {
    'default': {
        'BACKEND': (
            'minidrive.apps.files.infrastructure.storage.EncryptedFileStorage'
        ),
        'OPTIONS': {
            'bucket_name': config(
                'AWS_STORAGE_BUCKET_NAME',
                default='minidrive-files',
            ),
            'access_key': config('AWS_ACCESS_KEY_ID', default='minioadmin'),
            'secret_key': config(
                'AWS_SECRET_ACCESS_KEY',
                default='minioadmin',
            ),
            'endpoint_url': config(
                'AWS_S3_ENDPOINT_URL',
                default=None,
            ),
            'region_name': config(
                'AWS_S3_REGION_NAME',
                default='us-east-1',
            ),
            'file_overwrite': True,  # Object keys are {owner_id}/{file_id}
            'default_acl': None,  # Inherit bucket ACL
        },
    },
}
