"""Database models for accounts app."""

from typing import ClassVar, Final, final, override

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models

# Constants for field max lengths
_TIER_MAX_LENGTH: Final = 16
_TOKEN_MAX_LENGTH: Final = 64


class Tier(models.TextChoices):
    """Storage plans, each with a fixed byte quota."""

    FREE = 'FREE', 'Free'
    PRO = 'PRO', 'Pro'
    PREMIUM = 'PREMIUM', 'Premium'


class User(AbstractUser):
    """Storage account.

    ``storage_used`` is the sum of ``size_bytes`` of every stored file
    the user owns. It is only changed through quota operations, never
    assigned directly by services.
    """

    email = models.EmailField(unique=True)

    tier = models.CharField(
        max_length=_TIER_MAX_LENGTH,
        choices=Tier.choices,
        default=Tier.FREE,
    )

    storage_used = models.BigIntegerField(
        default=0,
        help_text='Currently used storage in bytes',
    )

    class Meta:
        """Model metadata."""

        verbose_name = 'User'  # type: ignore[mutable-override]
        verbose_name_plural = 'Users'  # type: ignore[mutable-override]
        constraints: ClassVar[list[models.BaseConstraint]] = [
            models.CheckConstraint(
                condition=models.Q(storage_used__gte=0),
                name='storage_used_non_negative',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.username} ({self.tier})'


@final
class SubscriptionHistory(models.Model):
    """Append-only record of tier changes."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='subscription_history',
        db_index=True,
    )

    from_tier = models.CharField(
        max_length=_TIER_MAX_LENGTH,
        choices=Tier.choices,
    )

    to_tier = models.CharField(
        max_length=_TIER_MAX_LENGTH,
        choices=Tier.choices,
    )

    changed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'Subscription change'  # type: ignore[mutable-override]
        verbose_name_plural = 'Subscription history'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['-changed_at', '-id']

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.user.username}: {self.from_tier} -> {self.to_tier}'


@final
class Session(models.Model):
    """Opaque bearer session issued after a successful login ceremony."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='sessions',
        db_index=True,
    )

    token = models.CharField(
        max_length=_TOKEN_MAX_LENGTH,
        unique=True,
        help_text='URL-safe random bearer token',
    )

    created_at = models.DateTimeField(auto_now_add=True)

    expires_at = models.DateTimeField(db_index=True)

    class Meta:
        """Model metadata."""

        verbose_name = 'Session'  # type: ignore[mutable-override]
        verbose_name_plural = 'Sessions'  # type: ignore[mutable-override]
        ordering: ClassVar[list[str]] = ['-created_at']

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.user.username} ({self.token[:8]})'
