"""Database models for shares app."""

from datetime import datetime
from typing import ClassVar, Final, final, override

from django.db import models
from django.utils import timezone

from minidrive.apps.files.models import File

_TOKEN_MAX_LENGTH: Final = 64


@final
class Share(models.Model):
    """Tokenized, expiring link to one file.

    A share is live while ``now < expires_at`` and, when
    ``max_downloads`` is set, ``download_count < max_downloads``.
    The token is the only credential needed to use it.
    """

    token = models.CharField(
        max_length=_TOKEN_MAX_LENGTH,
        unique=True,
        help_text='URL-safe random capability token',
    )

    file = models.ForeignKey(
        File,
        on_delete=models.CASCADE,
        related_name='shares',
    )

    expires_at = models.DateTimeField(db_index=True)

    max_downloads = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text='Download limit, empty for unlimited',
    )

    download_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'Share'  # type: ignore[mutable-override]
        verbose_name_plural = 'Shares'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['-created_at', '-id']

        constraints: ClassVar[list[models.BaseConstraint]] = [
            models.CheckConstraint(
                condition=(
                    models.Q(max_downloads__isnull=True)
                    | models.Q(download_count__lte=models.F('max_downloads'))
                ),
                name='shares_download_count_within_limit',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.file.name} ({self.token[:8]})'

    def is_expired(self, now: datetime | None = None) -> bool:
        """Whether the link is past its expiry time."""
        return (now or timezone.now()) >= self.expires_at

    def is_exhausted(self) -> bool:
        """Whether the download limit has been reached."""
        return (
            self.max_downloads is not None
            and self.download_count >= self.max_downloads
        )

    def remaining_downloads(self) -> int | None:
        """Downloads left, or None for unlimited."""
        if self.max_downloads is None:
            return None
        return max(0, self.max_downloads - self.download_count)
