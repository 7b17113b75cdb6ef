"""Database models for files app."""

from pathlib import Path
from typing import ClassVar, Final, final, override

from django.conf import settings
from django.db import models

# Constants for field max lengths
_NAME_MAX_LENGTH: Final = 255
_MIME_TYPE_MAX_LENGTH: Final = 255
_SALT_MAX_LENGTH: Final = 64  # base64 of 32 random bytes is 44 chars
_OBJECT_KEY_MAX_LENGTH: Final = 255


@final
class Folder(models.Model):
    """Folder in a user's hierarchy.

    Root folders have no parent. Sibling names are unique per owner and
    parent; deleting a folder cascades to every descendant folder and
    file row.
    """

    name = models.CharField(max_length=_NAME_MAX_LENGTH)

    parent = models.ForeignKey(
        'self',
        on_delete=models.CASCADE,
        related_name='children',
        null=True,
        blank=True,
    )

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='folders',
        db_index=True,
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'Folder'  # type: ignore[mutable-override]
        verbose_name_plural = 'Folders'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['name']

        constraints: ClassVar[list[models.BaseConstraint]] = [
            models.UniqueConstraint(
                fields=['owner', 'parent', 'name'],
                name='folders_sibling_name_unique',
            ),
            # NULL parents never collide in a plain unique constraint
            models.UniqueConstraint(
                fields=['owner', 'name'],
                condition=models.Q(parent__isnull=True),
                name='folders_root_name_unique',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.owner.username}:{self.name}'


class StoredFileManager(models.Manager['File']):
    """Default manager hiding uploads whose blob is not written yet."""

    @override
    def get_queryset(self) -> models.QuerySet['File']:
        """Exclude pending rows (empty object key)."""
        return super().get_queryset().exclude(object_key='')


@final
class File(models.Model):
    """Encrypted file stored in S3-compatible storage.

    The blob lives at ``{owner_id}/{file_id}`` and is encrypted with a
    key derived from the master secret, ``encryption_salt`` and the
    file id.

    A row with an empty ``object_key`` is a pending upload: it is not
    counted toward quota and not returned by ``File.objects``. Use
    ``File.all_objects`` to see pending rows.
    """

    name = models.CharField(max_length=_NAME_MAX_LENGTH)

    size_bytes = models.BigIntegerField(
        help_text='File size in bytes',
    )

    mime_type = models.CharField(
        max_length=_MIME_TYPE_MAX_LENGTH,
        default='application/octet-stream',
    )

    encryption_salt = models.CharField(
        max_length=_SALT_MAX_LENGTH,
        help_text='Base64 HKDF salt for the per-file key',
    )

    object_key = models.CharField(
        max_length=_OBJECT_KEY_MAX_LENGTH,
        blank=True,
        default='',
        help_text='Storage key, empty until the blob is written',
    )

    folder = models.ForeignKey(
        Folder,
        on_delete=models.CASCADE,
        related_name='files',
        null=True,
        blank=True,
    )

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='files',
        db_index=True,
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = StoredFileManager()
    all_objects = models.Manager()

    class Meta:
        """Model metadata."""

        verbose_name = 'File'  # type: ignore[mutable-override]
        verbose_name_plural = 'Files'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['-created_at', '-id']
        base_manager_name = 'all_objects'

        indexes: ClassVar[list[models.Index]] = [
            # Optimize directory listing queries
            models.Index(
                fields=['owner', 'folder', '-created_at'],
                name='files_owner_folder_recent_idx',
            ),
        ]

        constraints: ClassVar[list[models.BaseConstraint]] = [
            models.CheckConstraint(
                condition=models.Q(size_bytes__gte=0),
                name='files_size_non_negative',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.owner.username}:{self.name}'

    @property
    def is_stored(self) -> bool:
        """Whether the encrypted blob has been written."""
        return bool(self.object_key)

    def get_extension(self) -> str:
        """Extract file extension.

        Example: 'file.pdf' -> 'pdf'

        Returns:
            Extension without dot (lowercase).
        """
        extension = Path(self.name).suffix
        return extension.lstrip('.').lower()


def build_object_key(owner_id: int, file_id: int) -> str:
    """Storage key for a file blob: ``{owner_id}/{file_id}``."""
    return f'{owner_id}/{file_id}'
