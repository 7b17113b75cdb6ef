"""Business logic for folder hierarchy operations."""

import logging
from dataclasses import dataclass

from django.db import IntegrityError, transaction
from django.db.models import Count, Q, QuerySet

from minidrive.apps.accounts.models import User
from minidrive.apps.files.exceptions import (
    DuplicateNameError,
    NotFoundError,
    StorageUnavailableError,
)
from minidrive.apps.files.infrastructure.metadata import clean_item_name
from minidrive.apps.files.logic.file_operations import delete_stored_blob
from minidrive.apps.files.logic.lookups import get_owned_folder
from minidrive.apps.files.logic.quota_operations import decrement_usage
from minidrive.apps.files.models import File, Folder

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FolderDeletion:
    """Outcome of a cascading folder deletion."""

    deleted_files: int
    released_bytes: int


def _ensure_unique_name(
    owner: User,
    parent_id: int | None,
    name: str,
    exclude_id: int | None = None,
) -> None:
    """Reject a name already used by a sibling folder.

    Raises:
        DuplicateNameError: If a sibling has the same name.
    """
    siblings = Folder.objects.filter(
        owner=owner,
        parent_id=parent_id,
        name=name,
    )
    if exclude_id is not None:
        siblings = siblings.exclude(pk=exclude_id)
    if siblings.exists():
        raise DuplicateNameError(
            f'Folder {name!r} already exists in this location',
        )


def create_folder(
    owner: User,
    name: str,
    parent_id: int | None = None,
) -> Folder:
    """Create a folder under ``parent_id`` (or at the root).

    Args:
        owner: Owner of the folder.
        name: Folder name.
        parent_id: Parent folder, None for the root.

    Returns:
        Created Folder instance.

    Raises:
        ValidationError: If the name is invalid.
        NotFoundError: If the parent does not exist.
        AccessDeniedError: If the parent belongs to someone else.
        DuplicateNameError: If a sibling has the same name.
    """
    name = clean_item_name(name)

    # Verify parent folder ownership if provided
    if parent_id is not None:
        get_owned_folder(parent_id, owner)

    _ensure_unique_name(owner, parent_id, name)

    try:
        with transaction.atomic():
            folder = Folder.objects.create(
                name=name,
                parent_id=parent_id,
                owner=owner,
            )
    except IntegrityError as error:
        # Lost a race: either a twin folder or the parent vanished
        if parent_id is not None and not Folder.objects.filter(
            pk=parent_id,
        ).exists():
            raise NotFoundError(f'Folder {parent_id} not found') from error
        raise DuplicateNameError(
            f'Folder {name!r} already exists in this location',
        ) from error

    logger.info(
        'Folder created: %s (ID: %d, parent: %s)',
        name,
        folder.pk,
        parent_id,
    )
    return folder


def rename_folder(folder_id: int, owner: User, new_name: str) -> Folder:
    """Rename a folder, keeping sibling names unique.

    Args:
        folder_id: ID of folder to rename.
        owner: Owner of the folder.
        new_name: New folder name.

    Returns:
        Updated Folder instance.

    Raises:
        ValidationError: If the name is invalid.
        NotFoundError: If the folder does not exist.
        AccessDeniedError: If the folder belongs to someone else.
        DuplicateNameError: If a sibling already has that name.
    """
    folder = get_owned_folder(folder_id, owner)
    name = clean_item_name(new_name)

    _ensure_unique_name(owner, folder.parent_id, name, exclude_id=folder.pk)

    old_name = folder.name
    folder.name = name
    try:
        with transaction.atomic():
            folder.save(update_fields=['name', 'updated_at'])
    except IntegrityError as error:
        folder.name = old_name
        raise DuplicateNameError(
            f'Folder {name!r} already exists in this location',
        ) from error

    logger.info('Folder renamed: %s -> %s (ID: %d)', old_name, name, folder.pk)
    return folder


def list_folders(
    owner: User,
    parent_id: int | None = None,
) -> QuerySet[Folder]:
    """List direct subfolders with content counts.

    Each folder is annotated with ``files_count`` (stored files only)
    and ``folders_count``.

    Args:
        owner: Owner of folders.
        parent_id: Parent folder, None for the root.

    Returns:
        QuerySet of folders ordered by name.

    Raises:
        NotFoundError: If the parent does not exist.
        AccessDeniedError: If the parent belongs to someone else.
    """
    if parent_id is not None:
        get_owned_folder(parent_id, owner)

    return Folder.objects.filter(
        owner=owner,
        parent_id=parent_id,
    ).annotate(
        files_count=Count(
            'files',
            filter=Q(files__object_key__gt=''),
            distinct=True,
        ),
        folders_count=Count('children', distinct=True),
    ).order_by('name')


def collect_subtree_files(folder: Folder) -> list[File]:
    """Collect every stored file below ``folder``, depth first.

    Uses an explicit stack instead of recursion, so deep trees do not
    grow the call stack.

    Args:
        folder: Root of the subtree.

    Returns:
        Files in the folder and all of its descendants.
    """
    files: list[File] = []
    stack = [folder.pk]

    while stack:
        current_id = stack.pop()
        files.extend(
            File.objects.filter(folder_id=current_id).only(
                'id',
                'object_key',
                'size_bytes',
            ),
        )
        stack.extend(
            Folder.objects.filter(parent_id=current_id).values_list(
                'pk',
                flat=True,
            ),
        )

    return files


def delete_folder(folder_id: int, owner: User) -> FolderDeletion:
    """Delete a folder with all its subfolders and files.

    Blob deletion is best-effort: a failure is logged and the
    deletion continues, because the metadata cascade removes the rows
    either way. Leftover blobs are orphans for out-of-band cleanup.

    The released size is summed again inside the final transaction,
    so files uploaded into the subtree during blob cleanup are still
    accounted for when the cascade removes them.

    Args:
        folder_id: ID of folder to delete.
        owner: Owner of the folder.

    Returns:
        FolderDeletion with the number of files removed and bytes
        released.

    Raises:
        NotFoundError: If the folder does not exist.
        AccessDeniedError: If the folder belongs to someone else.
    """
    folder = get_owned_folder(folder_id, owner)

    for file_instance in collect_subtree_files(folder):
        try:
            delete_stored_blob(file_instance)
        except StorageUnavailableError:
            logger.exception(
                'Failed to delete blob of file %d (orphaned): %s',
                file_instance.pk,
                file_instance.object_key,
            )

    with transaction.atomic():
        folder = get_owned_folder(folder_id, owner, for_update=True)
        doomed = collect_subtree_files(folder)
        released = sum(file_instance.size_bytes for file_instance in doomed)

        # Cascade removes descendant folders, files and their shares
        folder.delete()
        if released:
            decrement_usage(owner, released)

    logger.info(
        'Folder deleted: ID=%d, files=%d, released=%d bytes',
        folder_id,
        len(doomed),
        released,
    )
    return FolderDeletion(deleted_files=len(doomed), released_bytes=released)
