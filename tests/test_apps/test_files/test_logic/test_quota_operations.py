"""Tests for quota operations business logic."""

import pytest

from minidrive.apps.accounts.models import Tier, User
from minidrive.apps.files.exceptions import QuotaExceededError
from minidrive.apps.files.logic.quota_operations import (
    TIER_LIMITS,
    adjust_usage,
    check_quota,
    decrement_usage,
    get_available_bytes,
    increment_usage,
    limit_for,
    recalculate_usage,
    reserve_usage,
)
from minidrive.apps.files.models import File

_MIB = 1024 * 1024


def _set_usage(user, used_bytes):
    User.objects.filter(pk=user.pk).update(storage_used=used_bytes)
    user.refresh_from_db()


def test_tier_limits():
    """Tier quotas are 50 MiB, 500 MiB and 1 GiB."""
    assert limit_for(Tier.FREE) == 52428800
    assert limit_for(Tier.PRO) == 524288000
    assert limit_for(Tier.PREMIUM) == 1073741824
    assert set(TIER_LIMITS) == set(Tier.values)


def test_limit_for_unknown_tier():
    """Unknown tiers are a programming error."""
    with pytest.raises(ValueError, match='Unknown tier'):
        limit_for('GOLD')


@pytest.mark.django_db
class TestQuotaOperations:
    """Tests for quota checks and usage accounting."""

    def test_check_quota_sufficient(self, user):
        """Test quota check passes with sufficient space."""
        check_quota(user, 1000)

    def test_check_quota_exact_fit(self, user):
        """Filling the quota exactly is allowed."""
        check_quota(user, limit_for(Tier.FREE))

    def test_check_quota_exceeded(self, user):
        """Test quota check fails when insufficient space."""
        _set_usage(user, 49 * _MIB)

        with pytest.raises(QuotaExceededError) as exc_info:
            check_quota(user, 2 * _MIB)

        assert exc_info.value.quota_bytes == 50 * _MIB
        assert exc_info.value.used_bytes == 49 * _MIB
        assert exc_info.value.required_bytes == 2 * _MIB

    def test_check_quota_reads_fresh_usage(self, user):
        """A stale in-memory user does not fool the check."""
        User.objects.filter(pk=user.pk).update(storage_used=50 * _MIB)

        with pytest.raises(QuotaExceededError):
            check_quota(user, 1)

    def test_get_available_bytes(self, user):
        """Available space is limit minus usage."""
        _set_usage(user, 10 * _MIB)

        assert get_available_bytes(user) == 40 * _MIB

    def test_get_available_bytes_never_negative(self, user):
        """Usage above the limit reports zero, not a negative number."""
        _set_usage(user, 60 * _MIB)

        assert get_available_bytes(user) == 0

    def test_reserve_usage_adds_bytes(self, user):
        """Reservation increments usage and refreshes the instance."""
        reserve_usage(user, 1000)

        assert user.storage_used == 1000
        user.refresh_from_db()
        assert user.storage_used == 1000

    def test_reserve_usage_up_to_limit(self, user):
        """Reservation filling the quota exactly succeeds."""
        _set_usage(user, 49 * _MIB)

        reserve_usage(user, _MIB)

        assert user.storage_used == 50 * _MIB

    def test_reserve_usage_refused_leaves_usage(self, user):
        """A refused reservation changes nothing."""
        _set_usage(user, 49 * _MIB)

        with pytest.raises(QuotaExceededError):
            reserve_usage(user, _MIB + 1)

        user.refresh_from_db()
        assert user.storage_used == 49 * _MIB

    def test_reserve_usage_second_of_two_refused(self, user):
        """Two reservations that each fit alone cannot both pass."""
        _set_usage(user, 40 * _MIB)
        stale_copy = User.objects.get(pk=user.pk)

        reserve_usage(user, 6 * _MIB)
        with pytest.raises(QuotaExceededError):
            reserve_usage(stale_copy, 6 * _MIB)

        user.refresh_from_db()
        assert user.storage_used == 46 * _MIB

    def test_reserve_usage_uses_current_tier(self, user):
        """The limit comes from the tier stored in the database."""
        User.objects.filter(pk=user.pk).update(tier=Tier.PRO)

        reserve_usage(user, 100 * _MIB)

        assert user.storage_used == 100 * _MIB

    def test_increment_usage(self, user):
        """Increment ignores the limit."""
        increment_usage(user, 60 * _MIB)

        assert user.storage_used == 60 * _MIB

    def test_decrement_usage(self, user):
        """Test atomic usage decrement."""
        _set_usage(user, 1000)

        decrement_usage(user, 400)

        user.refresh_from_db()
        assert user.storage_used == 600

    def test_decrement_usage_clamps_at_zero(self, user):
        """Usage never becomes negative."""
        _set_usage(user, 100)

        decrement_usage(user, 500)

        user.refresh_from_db()
        assert user.storage_used == 0

    @pytest.mark.parametrize(
        ('delta', 'expected'),
        [(300, 1300), (-300, 700), (0, 1000)],
    )
    def test_adjust_usage(self, user, delta, expected):
        """Delta is applied in either direction."""
        _set_usage(user, 1000)

        adjust_usage(user, delta)

        user.refresh_from_db()
        assert user.storage_used == expected

    def test_recalculate_usage_counts_stored_files_only(self, user):
        """Recalculation sums stored files and skips pending uploads."""
        File.all_objects.create(
            name='a.txt',
            size_bytes=100,
            mime_type='text/plain',
            encryption_salt='salt',
            object_key=f'{user.pk}/1',
            owner=user,
        )
        File.all_objects.create(
            name='b.txt',
            size_bytes=250,
            mime_type='text/plain',
            encryption_salt='salt',
            object_key=f'{user.pk}/2',
            owner=user,
        )
        File.all_objects.create(
            name='pending.txt',
            size_bytes=999,
            mime_type='text/plain',
            encryption_salt='salt',
            owner=user,
        )
        _set_usage(user, 12345)

        assert recalculate_usage(user) == 350

        user.refresh_from_db()
        assert user.storage_used == 350

    def test_recalculate_usage_ignores_other_users(self, user, other_user):
        """Only the user's own files count."""
        File.all_objects.create(
            name='theirs.txt',
            size_bytes=500,
            mime_type='text/plain',
            encryption_salt='salt',
            object_key=f'{other_user.pk}/1',
            owner=other_user,
        )

        assert recalculate_usage(user) == 0
