"""Shared fixtures for files app tests."""

import pytest

from minidrive.apps.files.logic.file_operations import upload_file
from minidrive.apps.files.logic.folder_operations import create_folder


@pytest.fixture
def folder(user):
    """Create a root-level folder for the test user.

    Returns:
        Folder instance.
    """
    return create_folder(user, 'Documents')


@pytest.fixture
def stored_file(user, mock_s3):
    """Upload a small file to the user's root.

    Returns:
        Stored File instance.
    """
    return upload_file(user, 'notes.txt', b'test file content')
