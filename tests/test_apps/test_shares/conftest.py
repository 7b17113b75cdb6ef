"""Shared fixtures for shares app tests."""

import pytest

from minidrive.apps.files.logic.file_operations import upload_file


@pytest.fixture
def shared_file(user, mock_s3):
    """Upload a file that tests can share.

    Returns:
        Stored File instance.
    """
    return upload_file(user, 'report.pdf', b'%PDF-1.4 shared content')
