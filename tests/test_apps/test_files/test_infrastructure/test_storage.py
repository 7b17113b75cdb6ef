"""Tests for the encrypted S3 storage backend."""

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError
from django.core.files.storage import default_storage

from minidrive.apps.files.exceptions import (
    DecryptionFailedError,
    StorageUnavailableError,
)
from minidrive.apps.files.infrastructure.storage import EncryptedFileStorage

_KEY = b'k' * 32


def _client_error(status, code='Error'):
    return ClientError(
        {
            'Error': {'Code': code, 'Message': 'mocked'},
            'ResponseMetadata': {'HTTPStatusCode': status},
        },
        'GetObject',
    )


class _FailingObject:
    """Stand-in for a boto3 Object whose every call raises."""

    def __init__(self, error):
        self._error = error

    def put(self, **kwargs):
        raise self._error

    def get(self, **kwargs):
        raise self._error

    def delete(self, **kwargs):
        raise self._error


class _FailingBucket:
    """Stand-in for a boto3 Bucket handing out failing objects."""

    def __init__(self, error):
        self._error = error

    def Object(self, key):  # noqa: N802
        return _FailingObject(self._error)


@pytest.fixture
def fail_storage(monkeypatch):
    """Make the storage bucket raise the given error on every call."""

    def factory(error):
        monkeypatch.setattr(
            EncryptedFileStorage,
            'bucket',
            property(lambda storage: _FailingBucket(error)),
        )

    return factory


def test_default_storage_is_encrypted():
    """Default storage is configured with the encrypted backend."""
    assert isinstance(default_storage, EncryptedFileStorage)


def test_put_and_get_round_trip(mock_s3, bucket):
    """Content written with a key reads back with the same key."""
    key = default_storage.put_encrypted(
        '1/10',
        b'secret payload',
        _KEY,
        {'original-filename': 'a.txt', 'content-type': 'text/plain'},
    )

    assert key == '1/10'
    assert default_storage.get_decrypted('1/10', _KEY) == b'secret payload'

    head = mock_s3.meta.client.head_object(
        Bucket=bucket.name,
        Key='1/10',
        SSECustomerAlgorithm='AES256',
        SSECustomerKey=_KEY,
    )
    assert head['Metadata']['original-filename'] == 'a.txt'


def test_delete_removes_object(mock_s3, bucket):
    """Deleted object is gone from the bucket."""
    default_storage.put_encrypted('1/11', b'data', _KEY)

    default_storage.delete('1/11')

    assert [obj.key for obj in bucket.objects.all()] == []


def test_presigned_url_points_at_object(mock_s3):
    """Presigned URL names bucket and key and is signed."""
    default_storage.put_encrypted('1/12', b'data', _KEY)

    url = default_storage.presigned_url('1/12', 3600)

    assert 'minidrive-files' in url
    assert '1/12' in url
    assert 'Signature' in url


@pytest.mark.parametrize('status', [400, 403])
def test_get_rejected_key_is_decryption_failure(fail_storage, status):
    """A refused customer key means the blob cannot be decrypted."""
    fail_storage(_client_error(status))

    with pytest.raises(DecryptionFailedError):
        default_storage.get_decrypted('1/13', _KEY)


@pytest.mark.parametrize(
    'error',
    [
        _client_error(500, 'InternalError'),
        _client_error(404, 'NoSuchKey'),
        EndpointConnectionError(endpoint_url='http://minio:9000'),
    ],
)
def test_get_other_failures_are_unavailable(fail_storage, error):
    """Everything else on read is an infrastructure failure."""
    fail_storage(error)

    with pytest.raises(StorageUnavailableError):
        default_storage.get_decrypted('1/14', _KEY)


def test_put_failure_is_unavailable(fail_storage):
    """Write failures surface as StorageUnavailableError."""
    fail_storage(EndpointConnectionError(endpoint_url='http://minio:9000'))

    with pytest.raises(StorageUnavailableError):
        default_storage.put_encrypted('1/15', b'data', _KEY)


def test_delete_failure_is_unavailable(fail_storage):
    """Delete failures surface as StorageUnavailableError."""
    fail_storage(_client_error(500, 'InternalError'))

    with pytest.raises(StorageUnavailableError):
        default_storage.delete('1/16')


def test_rollback_upload_swallows_failure(fail_storage):
    """Rollback is best-effort and never raises."""
    fail_storage(_client_error(500, 'InternalError'))

    default_storage.rollback_upload('1/17')
