"""Business logic for subscription tiers and usage reporting."""

import logging
from dataclasses import dataclass
from typing import Final

from django.db import transaction
from django.db.models import QuerySet

from minidrive.apps.accounts.models import SubscriptionHistory, Tier, User
from minidrive.apps.files.exceptions import InvalidTierTransitionError
from minidrive.apps.files.logic.quota_operations import limit_for

_UNITS: Final = ('B', 'KB', 'MB', 'GB')
_UNIT_STEP: Final = 1024
_DEFAULT_HISTORY_LIMIT: Final = 10

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TierInfo:
    """A storage plan as offered to users."""

    name: str
    quota_bytes: int
    quota_formatted: str


@dataclass(frozen=True, slots=True)
class UsageSummary:
    """Current storage usage of a user against their tier."""

    tier: str
    used_bytes: int
    quota_bytes: int

    @property
    def remaining_bytes(self) -> int:
        """Bytes left before uploads are refused (never negative)."""
        return max(0, self.quota_bytes - self.used_bytes)

    @property
    def usage_percentage(self) -> int:
        """Whole-number percentage of the quota in use."""
        return self.used_bytes * 100 // self.quota_bytes

    @property
    def used_formatted(self) -> str:
        """Human-readable usage."""
        return format_bytes(self.used_bytes)

    @property
    def quota_formatted(self) -> str:
        """Human-readable quota."""
        return format_bytes(self.quota_bytes)


def format_bytes(size_bytes: int) -> str:
    """Format a byte count, e.g. ``52428800 -> '50.00 MB'``.

    Args:
        size_bytes: Size in bytes.

    Returns:
        Size with two decimals in the largest fitting unit up to GB.
    """
    size = float(size_bytes)
    unit_index = 0
    while size >= _UNIT_STEP and unit_index < len(_UNITS) - 1:
        size /= _UNIT_STEP
        unit_index += 1
    return f'{size:.2f} {_UNITS[unit_index]}'


def list_tiers() -> list[TierInfo]:
    """Get available subscription tiers, smallest first."""
    return [
        TierInfo(
            name=tier.value,
            quota_bytes=limit_for(tier),
            quota_formatted=format_bytes(limit_for(tier)),
        )
        for tier in Tier
    ]


def change_tier(user: User, new_tier: str) -> User:
    """Move a user to another tier.

    Upgrades always succeed. A downgrade is refused when current usage
    exceeds the new limit; usage equal to the limit is allowed. The
    tier update is conditional on usage in the same statement, so an
    upload committing concurrently cannot push usage over the new
    limit unnoticed.

    Args:
        user: User to change.
        new_tier: Target tier.

    Returns:
        The user with refreshed tier and usage.

    Raises:
        ValueError: If the tier is unknown.
        InvalidTierTransitionError: If usage exceeds the new limit.
    """
    new_limit = limit_for(new_tier)

    with transaction.atomic():
        old_tier = User.objects.values_list('tier', flat=True).get(pk=user.pk)
        updated = User.objects.filter(
            pk=user.pk,
            storage_used__lte=new_limit,
        ).update(tier=new_tier)

        if updated == 0:
            used = User.objects.values_list(
                'storage_used',
                flat=True,
            ).get(pk=user.pk)
            logger.info(
                'Tier change refused for user %s: %s -> %s (used %d)',
                user.username,
                old_tier,
                new_tier,
                used,
            )
            raise InvalidTierTransitionError(
                from_tier=old_tier,
                to_tier=new_tier,
                used_bytes=used,
                limit_bytes=new_limit,
            )

        SubscriptionHistory.objects.create(
            user=user,
            from_tier=old_tier,
            to_tier=new_tier,
        )

    user.refresh_from_db(fields=['tier', 'storage_used'])
    logger.info(
        'Tier changed for user %s: %s -> %s',
        user.username,
        old_tier,
        new_tier,
    )
    return user


def get_usage(user: User) -> UsageSummary:
    """Get user's current storage usage and quota."""
    user.refresh_from_db(fields=['tier', 'storage_used'])
    return UsageSummary(
        tier=user.tier,
        used_bytes=user.storage_used,
        quota_bytes=limit_for(user.tier),
    )


def get_subscription_history(
    user: User,
    limit: int = _DEFAULT_HISTORY_LIMIT,
) -> QuerySet[SubscriptionHistory]:
    """Get the most recent tier changes of a user, newest first."""
    return SubscriptionHistory.objects.filter(user=user)[:limit]
