"""Custom storage backend for encrypted objects in S3-compatible storage."""

import logging
from typing import Final, final, override

from botocore.exceptions import BotoCoreError, ClientError
from storages.backends.s3 import S3Storage
from storages.utils import clean_name

from minidrive.apps.files.exceptions import (
    DecryptionFailedError,
    StorageUnavailableError,
)

logger = logging.getLogger(__name__)

_SSE_ALGORITHM: Final = 'AES256'

# S3 answers a GET with a wrong or missing customer key with one of these
_KEY_REJECTED_STATUSES: Final = frozenset((400, 403))


def _http_status(error: ClientError) -> int | None:
    return error.response.get('ResponseMetadata', {}).get('HTTPStatusCode')


@final
class EncryptedFileStorage(S3Storage):
    """S3 storage backend for user file blobs.

    Extends django-storages S3Storage with:
    - SSE-C writes and reads: the caller supplies the per-object key
      on every request, the store never keeps it
    - Presigned download URLs for share links
    - Translation of botocore failures into storage-core errors
    - Rollback support for failed metadata commits
    """

    def put_encrypted(
        self,
        name: str,
        content: bytes,
        encryption_key: bytes,
        metadata: dict[str, str] | None = None,
    ) -> str:
        """Write an object encrypted with a customer-provided key.

        Args:
            name: Object key.
            content: Plaintext bytes to store.
            encryption_key: Raw 32-byte AES key.
            metadata: Optional user metadata (ASCII values).

        Returns:
            Normalized object key that was written.

        Raises:
            StorageUnavailableError: If the object store rejects or
                cannot be reached.
        """
        key = self._normalize_name(clean_name(name))
        try:
            logger.info('Uploading encrypted object: %s', key)
            self.bucket.Object(key).put(
                Body=content,
                Metadata=metadata or {},
                SSECustomerAlgorithm=_SSE_ALGORITHM,
                SSECustomerKey=encryption_key,
            )
        except (BotoCoreError, ClientError) as error:
            logger.exception('Failed to upload encrypted object: %s', key)
            raise StorageUnavailableError(
                f'Failed to store object {key}',
            ) from error
        logger.info('Successfully uploaded encrypted object: %s', key)
        return key

    def get_decrypted(self, name: str, encryption_key: bytes) -> bytes:
        """Read an object written by ``put_encrypted``.

        Args:
            name: Object key.
            encryption_key: The same raw key used for the write.

        Returns:
            Plaintext bytes.

        Raises:
            DecryptionFailedError: If the store refuses the key.
            StorageUnavailableError: On any other store failure.
        """
        key = self._normalize_name(clean_name(name))
        try:
            response = self.bucket.Object(key).get(
                SSECustomerAlgorithm=_SSE_ALGORITHM,
                SSECustomerKey=encryption_key,
            )
            return response['Body'].read()
        except ClientError as error:
            if _http_status(error) in _KEY_REJECTED_STATUSES:
                logger.exception('Object rejected its derived key: %s', key)
                raise DecryptionFailedError(
                    f'Cannot decrypt object {key}',
                ) from error
            logger.exception('Failed to download object: %s', key)
            raise StorageUnavailableError(
                f'Failed to read object {key}',
            ) from error
        except BotoCoreError as error:
            logger.exception('Failed to download object: %s', key)
            raise StorageUnavailableError(
                f'Failed to read object {key}',
            ) from error

    @override
    def delete(self, name: str) -> None:
        """Delete object from S3 with error handling and logging.

        Args:
            name: Storage path of object to delete.

        Raises:
            StorageUnavailableError: If S3 delete fails.
        """
        try:
            logger.info('Deleting object from storage: %s', name)
            super().delete(name)
        except (BotoCoreError, ClientError) as error:
            logger.exception('Failed to delete object from storage: %s', name)
            raise StorageUnavailableError(
                f'Failed to delete object {name}',
            ) from error
        logger.info('Successfully deleted object: %s', name)

    def presigned_url(self, name: str, ttl: int) -> str:
        """Issue a time-limited unauthenticated GET URL.

        The URL does not carry the customer key, so whoever holds it
        bypasses per-object key gating for ``ttl`` seconds. Stores that
        enforce SSE-C on presigned GETs will refuse such a request.

        Args:
            name: Object key.
            ttl: Lifetime of the URL in seconds.

        Returns:
            Presigned URL.

        Raises:
            StorageUnavailableError: If the URL cannot be signed.
        """
        key = self._normalize_name(clean_name(name))
        try:
            return self.bucket.meta.client.generate_presigned_url(
                'get_object',
                Params={'Bucket': self.bucket_name, 'Key': key},
                ExpiresIn=ttl,
            )
        except (BotoCoreError, ClientError) as error:
            logger.exception('Failed to presign object: %s', key)
            raise StorageUnavailableError(
                f'Failed to presign object {key}',
            ) from error

    def rollback_upload(self, name: str) -> None:
        """Delete uploaded object for DB transaction rollback.

        This method is called when the metadata commit fails after the
        blob has been written. It attempts to delete the blob to keep
        the bucket free of unreferenced objects.

        This is a best-effort operation - if deletion fails, the error
        is logged but not raised, as the DB rollback has already occurred.

        Args:
            name: Storage path of object to delete.
        """
        try:
            logger.warning('Rolling back upload, deleting object: %s', name)
            self.delete(name)
        except StorageUnavailableError:
            # The blob stays behind without a row; out-of-band GC owns it
            logger.exception(
                'Failed to rollback upload, orphaned object: %s',
                name,
            )
