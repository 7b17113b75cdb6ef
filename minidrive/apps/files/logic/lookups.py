"""Ownership-checked lookups shared by file, folder and share logic."""

from minidrive.apps.accounts.models import User
from minidrive.apps.files.exceptions import AccessDeniedError, NotFoundError
from minidrive.apps.files.models import File, Folder


def get_owned_file(
    file_id: int,
    owner: User,
    *,
    for_update: bool = False,
) -> File:
    """Get a stored file owned by ``owner``.

    Pending uploads are invisible here and reported as missing.

    Args:
        file_id: ID of the file.
        owner: Expected owner.
        for_update: Lock the row (only inside a transaction).

    Returns:
        File instance.

    Raises:
        NotFoundError: If the file does not exist.
        AccessDeniedError: If the file belongs to someone else.
    """
    queryset = File.objects.all()
    if for_update:
        queryset = queryset.select_for_update()
    try:
        file_instance = queryset.get(pk=file_id)
    except File.DoesNotExist:
        raise NotFoundError(f'File {file_id} not found') from None

    if file_instance.owner_id != owner.pk:
        raise AccessDeniedError(f'File {file_id} is not yours')
    return file_instance


def get_owned_folder(
    folder_id: int,
    owner: User,
    *,
    for_update: bool = False,
) -> Folder:
    """Get a folder owned by ``owner``.

    Args:
        folder_id: ID of the folder.
        owner: Expected owner.
        for_update: Lock the row (only inside a transaction), so a
            concurrent delete cannot remove it before the caller commits.

    Returns:
        Folder instance.

    Raises:
        NotFoundError: If the folder does not exist.
        AccessDeniedError: If the folder belongs to someone else.
    """
    queryset = Folder.objects.all()
    if for_update:
        queryset = queryset.select_for_update()
    try:
        folder = queryset.get(pk=folder_id)
    except Folder.DoesNotExist:
        raise NotFoundError(f'Folder {folder_id} not found') from None

    if folder.owner_id != owner.pk:
        raise AccessDeniedError(f'Folder {folder_id} is not yours')
    return folder
