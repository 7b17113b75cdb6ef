"""Django app configuration for files app."""

from typing import override

from django.apps import AppConfig


class FilesConfig(AppConfig):
    """Configuration for files app."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'minidrive.apps.files'
    verbose_name = 'Files'

    @override
    def ready(self) -> None:
        """Refuse to start without usable key material."""
        from django.conf import settings

        from minidrive.apps.files.infrastructure.encryption import (
            validate_master_secret,
        )

        validate_master_secret(settings.MASTER_ENCRYPTION_KEY)
