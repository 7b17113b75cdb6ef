"""Business logic for storage quota operations."""

import logging
from typing import Final

from django.db import models, transaction
from django.db.models import Case, ExpressionWrapper, F, Sum, Value, When  # noqa: WPS347

from minidrive.apps.accounts.models import Tier, User
from minidrive.apps.files.exceptions import QuotaExceededError
from minidrive.apps.files.models import File

_MIB: Final = 1024 * 1024

TIER_LIMITS: Final[dict[str, int]] = {
    Tier.FREE: 50 * _MIB,
    Tier.PRO: 500 * _MIB,
    Tier.PREMIUM: 1024 * _MIB,
}

# Field name constant to avoid string literal over-use
_USED_FIELD: Final = 'storage_used'  # noqa: WPS226

logger = logging.getLogger(__name__)


def limit_for(tier: str) -> int:
    """Get quota limit in bytes for a tier.

    Args:
        tier: One of the Tier values.

    Returns:
        Quota in bytes.

    Raises:
        ValueError: If the tier is unknown.
    """
    try:
        return TIER_LIMITS[tier]
    except KeyError:
        raise ValueError(f'Unknown tier: {tier!r}') from None


def _tier_limit_expression() -> Case:
    """SQL expression evaluating to the quota of the row's current tier."""
    return Case(
        *[
            When(tier=tier, then=Value(limit))
            for tier, limit in TIER_LIMITS.items()
        ],
        output_field=models.BigIntegerField(),
    )


def _current_usage(user: User) -> tuple[str, int]:
    """Read tier and usage straight from the database."""
    return User.objects.values_list('tier', _USED_FIELD).get(pk=user.pk)


def get_available_bytes(user: User) -> int:
    """Get remaining storage space.

    Args:
        user: User to check.

    Returns:
        Available bytes (never negative).
    """
    tier, used = _current_usage(user)
    return max(0, limit_for(tier) - used)


def check_quota(user: User, size_bytes: int) -> None:
    """Check if user has enough quota for an upload.

    This is an early, non-binding check. The binding one is
    ``reserve_usage``, which re-checks atomically when bytes are
    actually committed.

    Args:
        user: User to check quota for.
        size_bytes: Size of the upload in bytes.

    Raises:
        QuotaExceededError: If upload would exceed quota.
    """
    tier, used = _current_usage(user)
    limit = limit_for(tier)

    if used + size_bytes > limit:
        logger.info(
            'Quota exceeded for user %s: need %d, have %d available',
            user.username,
            size_bytes,
            max(0, limit - used),
        )
        raise QuotaExceededError(
            quota_bytes=limit,
            used_bytes=used,
            required_bytes=size_bytes,
        )


def reserve_usage(user: User, size_bytes: int) -> None:
    """Atomically check the quota and add bytes to usage.

    A single conditional UPDATE: the row only changes if the new usage
    stays within the limit of the tier stored in the same row, so two
    concurrent uploads cannot both pass the check.

    Args:
        user: User to charge.
        size_bytes: Bytes to add to usage.

    Raises:
        QuotaExceededError: If the bytes do not fit.
    """
    headroom = ExpressionWrapper(
        _tier_limit_expression() - Value(size_bytes),
        output_field=models.BigIntegerField(),
    )
    updated = User.objects.filter(
        pk=user.pk,
        storage_used__lte=headroom,
    ).update(storage_used=F(_USED_FIELD) + size_bytes)

    if updated == 0:
        tier, used = _current_usage(user)
        logger.info(
            'Quota reservation refused for user %s: %d bytes',
            user.username,
            size_bytes,
        )
        raise QuotaExceededError(
            quota_bytes=limit_for(tier),
            used_bytes=used,
            required_bytes=size_bytes,
        )

    user.refresh_from_db(fields=[_USED_FIELD])
    logger.debug(
        'Reserved %d bytes for user %s (new: %d)',
        size_bytes,
        user.username,
        user.storage_used,
    )


def increment_usage(user: User, size_bytes: int) -> None:
    """Atomically increment user's storage usage without a limit check.

    Args:
        user: User to increment usage for.
        size_bytes: Bytes to add to usage.
    """
    User.objects.filter(pk=user.pk).update(
        storage_used=F(_USED_FIELD) + size_bytes,
    )
    user.refresh_from_db(fields=[_USED_FIELD])

    logger.debug(
        'Incremented usage for user %s by %d bytes',
        user.username,
        size_bytes,
    )


def decrement_usage(user: User, size_bytes: int) -> None:
    """Atomically decrement user's storage usage.

    Prevents negative values by clamping to 0. Clamping means the
    counter had drifted, so it is logged as a warning.

    Args:
        user: User to decrement usage for.
        size_bytes: Bytes to subtract from usage.
    """
    with transaction.atomic():
        used = (
            User.objects.select_for_update()
            .values_list(_USED_FIELD, flat=True)
            .get(pk=user.pk)
        )

        new_usage = used - size_bytes
        if new_usage < 0:
            logger.warning(
                'Usage of user %s would drop below zero (%d - %d), clamping',
                user.username,
                used,
                size_bytes,
            )
            new_usage = 0

        User.objects.filter(pk=user.pk).update(storage_used=new_usage)

    user.storage_used = new_usage
    logger.debug(
        'Decremented usage for user %s by %d bytes (new: %d)',
        user.username,
        size_bytes,
        new_usage,
    )


def adjust_usage(user: User, delta_bytes: int) -> None:
    """Apply a positive or negative delta to storage usage.

    Args:
        user: User to adjust usage for.
        delta_bytes: Bytes to add (positive) or release (negative).
    """
    if delta_bytes > 0:
        increment_usage(user, delta_bytes)
    elif delta_bytes < 0:
        decrement_usage(user, -delta_bytes)
    # If delta_bytes == 0, no adjustment needed


def recalculate_usage(user: User) -> int:
    """Recalculate user's storage usage from stored files.

    This is useful for fixing inconsistencies. Pending uploads are not
    counted.

    Args:
        user: User to recalculate usage for.

    Returns:
        New calculated usage in bytes.
    """
    with transaction.atomic():
        total = File.objects.filter(owner=user).aggregate(
            total=Sum('size_bytes'),
        )['total'] or 0

        old_usage = (
            User.objects.select_for_update()
            .values_list(_USED_FIELD, flat=True)
            .get(pk=user.pk)
        )
        User.objects.filter(pk=user.pk).update(storage_used=total)

    user.storage_used = total
    logger.info(
        'Recalculated usage for user %s: %d -> %d bytes',
        user.username,
        old_usage,
        total,
    )

    return total
