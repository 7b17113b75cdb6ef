"""Business logic for file operations."""

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, BinaryIO

from django.core.exceptions import ValidationError
from django.core.files.base import File as DjangoFile
from django.core.files.storage import default_storage
from django.db import IntegrityError, transaction

from minidrive.apps.accounts.models import User
from minidrive.apps.files.exceptions import NotFoundError
from minidrive.apps.files.infrastructure.encryption import (
    derive_key_for_file,
    generate_salt,
)
from minidrive.apps.files.infrastructure.metadata import (
    build_object_metadata,
    clean_item_name,
    detect_mime_type,
)
from minidrive.apps.files.logic.lookups import get_owned_file, get_owned_folder
from minidrive.apps.files.logic.quota_operations import (
    check_quota,
    decrement_usage,
    reserve_usage,
)
from minidrive.apps.files.models import File, build_object_key

if TYPE_CHECKING:
    from minidrive.apps.files.infrastructure.storage import EncryptedFileStorage

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DownloadedFile:
    """Decrypted file content with the metadata needed to serve it."""

    content: bytes
    filename: str
    mime_type: str


@dataclass(frozen=True, slots=True)
class FilePage:
    """One page of a file listing."""

    items: list[File]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        """Number of pages for the whole listing."""
        return math.ceil(self.total / self.page_size)


def _get_storage() -> 'EncryptedFileStorage':
    """Get the configured default storage backend.

    Returns:
        EncryptedFileStorage instance with proper S3 configuration.
    """
    return default_storage  # type: ignore[return-value]


def _read_content(content: bytes | BinaryIO | DjangoFile) -> bytes:
    """Read upload content into memory.

    Args:
        content: Raw bytes or a file-like object.

    Returns:
        Content bytes.
    """
    if isinstance(content, bytes):
        return content
    if hasattr(content, 'seek'):
        content.seek(0)
    return content.read()


def upload_file(  # noqa: WPS211
    owner: User,
    file_name: str,
    content: bytes | BinaryIO | DjangoFile,
    mime_type: str | None = None,
    folder_id: int | None = None,
    size_bytes: int | None = None,
) -> File:
    """Encrypt and store a file, then account for it.

    Upload runs in two states. A pending row (empty object key) is
    created first to obtain the file id used in the key derivation and
    the object key. After the blob is written, one transaction sets the
    object key and reserves the quota. If anything fails in between,
    the pending row is deleted and usage is left untouched.

    Args:
        owner: Owner of the file.
        file_name: Display name of the file.
        content: File bytes or file-like object.
        mime_type: MIME type; guessed from the name when omitted.
        folder_id: Target folder, or None for the root.
        size_bytes: Size declared by the caller; must match the content.

    Returns:
        Stored File instance.

    Raises:
        ValidationError: If the name or declared size is invalid.
        NotFoundError: If the folder is missing, or was deleted while
            the blob was being written.
        AccessDeniedError: If the folder belongs to someone else.
        QuotaExceededError: If the file does not fit the quota.
        StorageUnavailableError: If the blob cannot be written.
    """
    name = clean_item_name(file_name)

    # Validate target folder ownership
    if folder_id is not None:
        get_owned_folder(folder_id, owner)

    payload = _read_content(content)
    if size_bytes is None:
        size_bytes = len(payload)
    elif size_bytes != len(payload):
        raise ValidationError(
            f'Declared size {size_bytes} does not match '
            f'content length {len(payload)}',
        )
    mime_type = mime_type or detect_mime_type(name)

    # Fail early, before anything is written
    check_quota(owner, size_bytes)

    # Step 1: Pending row, invisible to listings and quota
    try:
        with transaction.atomic():
            # Re-check under lock: the folder may be gone by now
            if folder_id is not None:
                get_owned_folder(folder_id, owner, for_update=True)
            file_instance = File.all_objects.create(
                name=name,
                size_bytes=size_bytes,
                mime_type=mime_type,
                encryption_salt=generate_salt(),
                folder_id=folder_id,
                owner=owner,
            )
    except IntegrityError as error:
        raise NotFoundError(f'Folder {folder_id} not found') from error
    object_key = build_object_key(owner.pk, file_instance.pk)
    storage = _get_storage()
    blob_written = False

    try:
        # Step 2: Encrypted blob
        storage.put_encrypted(
            object_key,
            payload,
            derive_key_for_file(file_instance),
            build_object_metadata(name, mime_type),
        )
        blob_written = True

        # Step 3: Commit object key and usage together
        with transaction.atomic():
            committed = File.all_objects.filter(
                pk=file_instance.pk,
                object_key='',
            ).update(object_key=object_key)
            if committed == 0:
                raise NotFoundError(
                    f'Upload {file_instance.pk} was removed before commit',
                )
            reserve_usage(owner, size_bytes)
    except Exception:
        # Rollback: no accounting happened, drop the pending row
        logger.info(
            'Upload of %s failed, removing pending record (ID: %d)',
            name,
            file_instance.pk,
        )
        File.all_objects.filter(pk=file_instance.pk).delete()
        if blob_written:
            storage.rollback_upload(object_key)
        raise

    file_instance.object_key = object_key
    logger.info(
        'File stored: %s (ID: %d, size: %d)',
        object_key,
        file_instance.pk,
        size_bytes,
    )
    return file_instance


def download_file(file_id: int, owner: User) -> DownloadedFile:
    """Fetch and decrypt a file.

    Args:
        file_id: ID of file to download.
        owner: User requesting the file.

    Returns:
        DownloadedFile with content, filename and MIME type.

    Raises:
        NotFoundError: If the file does not exist.
        AccessDeniedError: If the file belongs to someone else.
        DecryptionFailedError: If the blob rejects the derived key.
        StorageUnavailableError: If the blob cannot be read.
    """
    file_instance = get_owned_file(file_id, owner)

    content = _get_storage().get_decrypted(
        file_instance.object_key,
        derive_key_for_file(file_instance),
    )
    logger.debug('File downloaded: %s', file_instance.object_key)

    return DownloadedFile(
        content=content,
        filename=file_instance.name,
        mime_type=file_instance.mime_type,
    )


def get_file(file_id: int, owner: User) -> File:
    """Get metadata of a stored file without touching the blob."""
    return get_owned_file(file_id, owner)


def delete_stored_blob(file_instance: File) -> None:
    """Delete the blob of a stored file.

    Args:
        file_instance: File whose blob to remove.

    Raises:
        StorageUnavailableError: If the object store fails.
    """
    _get_storage().delete(file_instance.object_key)


def delete_file(file_id: int, owner: User) -> None:
    """Delete file from storage and database, releasing its quota.

    Ordering: blob first, then the row and the usage decrement in one
    transaction. If the blob cannot be deleted nothing else changes,
    so usage never drops below what is really stored. The row is
    locked and re-read before the decrement; if another deletion
    removed it in the meantime, that deletion already released it.

    Args:
        file_id: ID of file to delete.
        owner: User requesting the deletion.

    Raises:
        NotFoundError: If the file does not exist.
        AccessDeniedError: If the file belongs to someone else.
        StorageUnavailableError: If the blob cannot be deleted.
    """
    file_instance = get_owned_file(file_id, owner)
    size_bytes = file_instance.size_bytes

    logger.info(
        'Deleting file: ID=%d, key=%s',
        file_id,
        file_instance.object_key,
    )

    delete_stored_blob(file_instance)

    with transaction.atomic():
        # The row may have gone with a folder delete meanwhile
        locked = File.objects.select_for_update().filter(pk=file_id).first()
        if locked is None:
            logger.info('File %d already deleted, usage untouched', file_id)
            return
        locked.delete()
        decrement_usage(owner, locked.size_bytes)

    logger.info('File deleted: ID=%d, size=%d', file_id, size_bytes)


def move_file(
    file_id: int,
    owner: User,
    target_folder_id: int | None,
) -> File:
    """Move a file to another folder or to the root.

    Pure metadata change. The target folder row is locked, so a folder
    deleted concurrently makes the move fail instead of pointing the
    file at a missing folder.

    Args:
        file_id: ID of file to move.
        owner: User requesting the move.
        target_folder_id: Destination folder, None for the root.

    Returns:
        Updated File instance.

    Raises:
        NotFoundError: If the file or target folder does not exist.
        AccessDeniedError: If either belongs to someone else.
    """
    with transaction.atomic():
        file_instance = get_owned_file(file_id, owner, for_update=True)
        if target_folder_id is not None:
            get_owned_folder(target_folder_id, owner, for_update=True)

        file_instance.folder_id = target_folder_id
        file_instance.save(update_fields=['folder', 'updated_at'])

    logger.info(
        'File moved: ID=%d -> folder %s',
        file_id,
        target_folder_id,
    )
    return file_instance


def list_files(
    owner: User,
    folder_id: int | None = None,
    page: int = 1,
    page_size: int = 10,
) -> FilePage:
    """List stored files directly inside a folder.

    Args:
        owner: Owner of files.
        folder_id: Folder to list, None for the root.
        page: 1-based page number.
        page_size: Files per page.

    Returns:
        FilePage ordered by creation time, newest first.

    Raises:
        ValidationError: If page or page_size is below 1.
        NotFoundError: If the folder does not exist.
        AccessDeniedError: If the folder belongs to someone else.
    """
    if page < 1 or page_size < 1:
        raise ValidationError('page and page_size must be positive')

    if folder_id is not None:
        get_owned_folder(folder_id, owner)

    queryset = File.objects.filter(
        owner=owner,
        folder_id=folder_id,
    ).order_by('-created_at', '-id')

    skip = (page - 1) * page_size
    return FilePage(
        items=list(queryset[skip:skip + page_size]),
        total=queryset.count(),
        page=page,
        page_size=page_size,
    )
