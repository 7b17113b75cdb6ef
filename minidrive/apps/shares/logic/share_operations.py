"""Business logic for share links."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Final

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.files.storage import default_storage
from django.db import transaction
from django.db.models import F, Q, QuerySet
from django.utils import timezone

from minidrive.apps.accounts.models import User
from minidrive.apps.files.exceptions import AccessDeniedError, NotFoundError
from minidrive.apps.files.infrastructure.encryption import generate_token
from minidrive.apps.files.logic.lookups import get_owned_file
from minidrive.apps.shares.exceptions import (
    ShareExpiredError,
    ShareLimitReachedError,
)
from minidrive.apps.shares.models import Share

if TYPE_CHECKING:
    from minidrive.apps.files.infrastructure.storage import EncryptedFileStorage

_SHARE_PATH: Final = '/api/v1/shares/'

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ShareInfo:
    """Preview of a shared file, as shown before downloading."""

    filename: str
    size_bytes: int
    mime_type: str
    expires_at: datetime
    remaining_downloads: int | None


@dataclass(frozen=True, slots=True)
class ShareAccess:
    """Result of consuming one download of a share link."""

    presigned_url: str
    filename: str
    size_bytes: int
    mime_type: str
    expires_at: datetime
    remaining_downloads: int | None


def get_max_expiry_hours() -> int:
    """Get the longest allowed share lifetime in hours.

    Returns:
        Limit from settings or default of 168 (7 days).
    """
    return getattr(settings, 'SHARE_MAX_EXPIRY_HOURS', 168)


def get_presigned_url_ttl() -> int:
    """Get lifetime of the presigned URL handed out per download.

    Returns:
        TTL in seconds from settings or default of 3600 (1 hour).
    """
    return getattr(settings, 'SHARE_PRESIGNED_URL_TTL', 3600)


def _get_storage() -> 'EncryptedFileStorage':
    return default_storage  # type: ignore[return-value]


def build_share_url(token: str) -> str:
    """Public URL under which a share token is served."""
    base_url = getattr(settings, 'MINIDRIVE_APP_URL', 'http://localhost:8000')
    return f'{base_url.rstrip("/")}{_SHARE_PATH}{token}'


def create_share(
    file_id: int,
    owner: User,
    expires_in_hours: int,
    max_downloads: int | None = None,
) -> Share:
    """Create a temporary share link for a file.

    Args:
        file_id: ID of the file to share.
        owner: Owner of the file.
        expires_in_hours: Lifetime of the link, 1 to the configured max.
        max_downloads: Optional download limit (at least 1).

    Returns:
        Created Share instance.

    Raises:
        ValidationError: If the lifetime or limit is out of range.
        NotFoundError: If the file does not exist.
        AccessDeniedError: If the file belongs to someone else.
    """
    max_hours = get_max_expiry_hours()
    if not 1 <= expires_in_hours <= max_hours:
        raise ValidationError(
            f'expires_in_hours must be between 1 and {max_hours}',
        )
    if max_downloads is not None and max_downloads < 1:
        raise ValidationError('max_downloads must be at least 1')

    file_instance = get_owned_file(file_id, owner)

    share = Share.objects.create(
        token=generate_token(),
        file=file_instance,
        expires_at=timezone.now() + timedelta(hours=expires_in_hours),
        max_downloads=max_downloads,
    )

    logger.info(
        'Share created for file %d: %s (expires %s, max %s)',
        file_instance.pk,
        share.token[:8],
        share.expires_at.isoformat(),
        max_downloads,
    )
    return share


def _get_share(token: str) -> Share:
    try:
        return Share.objects.select_related('file').get(token=token)
    except Share.DoesNotExist:
        raise NotFoundError('Share link not found') from None


def _ensure_live(share: Share, now: datetime) -> None:
    """Raise the reason a share cannot be used; expiry wins over limit."""
    if share.is_expired(now):
        raise ShareExpiredError('Share link has expired')
    if share.is_exhausted():
        raise ShareLimitReachedError(
            'Download limit reached for this share link',
        )


def get_share_info(token: str) -> ShareInfo:
    """Get share information without consuming a download.

    Args:
        token: Share token.

    Returns:
        ShareInfo preview.

    Raises:
        NotFoundError: If the token is unknown.
        ShareExpiredError: If the link has expired.
        ShareLimitReachedError: If no downloads are left.
    """
    share = _get_share(token)
    _ensure_live(share, timezone.now())

    return ShareInfo(
        filename=share.file.name,
        size_bytes=share.file.size_bytes,
        mime_type=share.file.mime_type,
        expires_at=share.expires_at,
        remaining_downloads=share.remaining_downloads(),
    )


def resolve_share(token: str) -> ShareAccess:
    """Consume one download of a share link.

    The limit check and the increment are one conditional UPDATE, so
    two concurrent resolutions of a single-use link cannot both
    succeed. The presigned URL is signed inside the same transaction;
    if signing fails the consumed download is rolled back.

    The returned URL does not carry the file's encryption key: anyone
    holding it can fetch the object until it expires.

    Args:
        token: Share token.

    Returns:
        ShareAccess with a presigned URL and the downloads left.

    Raises:
        NotFoundError: If the token is unknown.
        ShareExpiredError: If the link has expired.
        ShareLimitReachedError: If no downloads are left.
        StorageUnavailableError: If the URL cannot be signed.
    """
    now = timezone.now()

    with transaction.atomic():
        consumed = Share.objects.filter(
            token=token,
            expires_at__gt=now,
        ).filter(
            Q(max_downloads__isnull=True)
            | Q(download_count__lt=F('max_downloads')),
        ).update(download_count=F('download_count') + 1)

        share = _get_share(token)
        if consumed == 0:
            _ensure_live(share, now)
            raise ShareLimitReachedError(
                'Download limit reached for this share link',
            )

        presigned_url = _get_storage().presigned_url(
            share.file.object_key,
            get_presigned_url_ttl(),
        )

    logger.info(
        'Share %s resolved (downloads: %d)',
        token[:8],
        share.download_count,
    )
    return ShareAccess(
        presigned_url=presigned_url,
        filename=share.file.name,
        size_bytes=share.file.size_bytes,
        mime_type=share.file.mime_type,
        expires_at=share.expires_at,
        remaining_downloads=share.remaining_downloads(),
    )


def list_shares(owner: User) -> QuerySet[Share]:
    """List owner's live-by-time shares across all their files.

    Args:
        owner: Owner of the shared files.

    Returns:
        QuerySet of non-expired shares, newest first.
    """
    return Share.objects.filter(
        file__owner=owner,
        expires_at__gt=timezone.now(),
    ).select_related('file')


def delete_share(share_id: int, owner: User) -> None:
    """Delete a share link, checking ownership through its file.

    Args:
        share_id: ID of the share.
        owner: Owner of the shared file.

    Raises:
        NotFoundError: If the share does not exist.
        AccessDeniedError: If the file belongs to someone else.
    """
    try:
        share = Share.objects.select_related('file').get(pk=share_id)
    except Share.DoesNotExist:
        raise NotFoundError(f'Share {share_id} not found') from None

    if share.file.owner_id != owner.pk:
        raise AccessDeniedError(f'Share {share_id} is not yours')

    share.delete()
    logger.info('Share deleted: ID=%d', share_id)


def expired_shares(now: datetime | None = None) -> QuerySet[Share]:
    """Shares past their expiry time, oldest first."""
    return Share.objects.filter(
        expires_at__lte=now or timezone.now(),
    ).order_by('expires_at')


def purge_expired_shares(batch_size: int, now: datetime | None = None) -> int:
    """Delete up to ``batch_size`` expired shares.

    Args:
        batch_size: Max shares to delete.
        now: Reference time, defaults to the current time.

    Returns:
        Number of shares deleted.
    """
    share_ids = list(
        expired_shares(now).values_list('pk', flat=True)[:batch_size],
    )
    deleted, _ = Share.objects.filter(pk__in=share_ids).delete()

    if deleted:
        logger.info('Purged %d expired shares', deleted)
    return deleted
