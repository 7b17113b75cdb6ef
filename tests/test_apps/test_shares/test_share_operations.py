"""Tests for share link business logic."""

from datetime import timedelta

import pytest
from django.core.exceptions import ValidationError
from django.utils import timezone

from minidrive.apps.files.exceptions import (
    AccessDeniedError,
    NotFoundError,
    StorageUnavailableError,
)
from minidrive.apps.files.infrastructure.storage import EncryptedFileStorage
from minidrive.apps.files.logic.file_operations import delete_file
from minidrive.apps.shares.exceptions import (
    ShareExpiredError,
    ShareLimitReachedError,
)
from minidrive.apps.shares.logic.share_operations import (
    build_share_url,
    create_share,
    delete_share,
    get_share_info,
    list_shares,
    resolve_share,
)
from minidrive.apps.shares.models import Share


def _expire(share):
    Share.objects.filter(pk=share.pk).update(
        expires_at=timezone.now() - timedelta(seconds=1),
    )


@pytest.mark.django_db
class TestCreateShare:
    """Tests for share creation."""

    def test_create_share(self, user, shared_file):
        """Share gets a token, an expiry and no downloads yet."""
        share = create_share(shared_file.pk, user, expires_in_hours=24)

        assert share.file == shared_file
        assert len(share.token) == 43
        assert share.download_count == 0
        assert share.max_downloads is None
        lifetime = share.expires_at - timezone.now()
        assert timedelta(hours=23) < lifetime <= timedelta(hours=24)

    @pytest.mark.parametrize('hours', [0, -1, 169])
    def test_invalid_lifetime(self, user, shared_file, hours):
        """Lifetime must be between 1 hour and the configured maximum."""
        with pytest.raises(ValidationError):
            create_share(shared_file.pk, user, expires_in_hours=hours)

    def test_invalid_download_limit(self, user, shared_file):
        """A download limit must allow at least one download."""
        with pytest.raises(ValidationError):
            create_share(
                shared_file.pk,
                user,
                expires_in_hours=1,
                max_downloads=0,
            )

    def test_foreign_file(self, other_user, shared_file):
        """Only the owner can share a file."""
        with pytest.raises(AccessDeniedError):
            create_share(shared_file.pk, other_user, expires_in_hours=1)

    def test_missing_file(self, user):
        """Unknown files cannot be shared."""
        with pytest.raises(NotFoundError):
            create_share(99999, user, expires_in_hours=1)


@pytest.mark.django_db
class TestResolveShare:
    """Tests for consuming share downloads."""

    def test_single_use_share(self, user, shared_file):
        """A one-download link works exactly once."""
        share = create_share(
            shared_file.pk,
            user,
            expires_in_hours=1,
            max_downloads=1,
        )

        access = resolve_share(share.token)

        assert access.filename == 'report.pdf'
        assert access.size_bytes == shared_file.size_bytes
        assert access.mime_type == 'application/pdf'
        assert access.remaining_downloads == 0
        assert shared_file.object_key in access.presigned_url

        with pytest.raises(ShareLimitReachedError):
            resolve_share(share.token)

        share.refresh_from_db()
        assert share.download_count == 1

    def test_unlimited_share(self, user, shared_file):
        """Without a limit every resolution counts but none is refused."""
        share = create_share(shared_file.pk, user, expires_in_hours=1)

        for _ in range(3):
            access = resolve_share(share.token)

        assert access.remaining_downloads is None
        share.refresh_from_db()
        assert share.download_count == 3

    def test_remaining_downloads_count_down(self, user, shared_file):
        """Each resolution reports what is left after it."""
        share = create_share(
            shared_file.pk,
            user,
            expires_in_hours=1,
            max_downloads=3,
        )

        remaining = [
            resolve_share(share.token).remaining_downloads for _ in range(3)
        ]

        assert remaining == [2, 1, 0]

    def test_expired_share(self, user, shared_file):
        """Expired links are refused and not counted."""
        share = create_share(shared_file.pk, user, expires_in_hours=1)
        _expire(share)

        with pytest.raises(ShareExpiredError):
            resolve_share(share.token)

        share.refresh_from_db()
        assert share.download_count == 0

    def test_expiry_reported_before_limit(self, user, shared_file):
        """An exhausted and expired link reports expiry."""
        share = create_share(
            shared_file.pk,
            user,
            expires_in_hours=1,
            max_downloads=1,
        )
        resolve_share(share.token)
        _expire(share)

        with pytest.raises(ShareExpiredError):
            resolve_share(share.token)

    def test_unknown_token(self, db):
        """Unknown tokens are not found."""
        with pytest.raises(NotFoundError):
            resolve_share('no-such-token')

    def test_presign_failure_does_not_consume(
        self,
        user,
        shared_file,
        monkeypatch,
    ):
        """If signing fails the download is given back."""
        share = create_share(
            shared_file.pk,
            user,
            expires_in_hours=1,
            max_downloads=1,
        )

        def failing_presign(storage, name, ttl):
            raise StorageUnavailableError('mocked outage')

        monkeypatch.setattr(
            EncryptedFileStorage,
            'presigned_url',
            failing_presign,
        )

        with pytest.raises(StorageUnavailableError):
            resolve_share(share.token)

        share.refresh_from_db()
        assert share.download_count == 0

    def test_presigned_url_ttl_from_settings(
        self,
        settings,
        user,
        shared_file,
        monkeypatch,
    ):
        """URL lifetime follows SHARE_PRESIGNED_URL_TTL."""
        settings.SHARE_PRESIGNED_URL_TTL = 120
        seen = []

        def recording_presign(storage, name, ttl):
            seen.append((name, ttl))
            return f'https://example.test/{name}'

        monkeypatch.setattr(
            EncryptedFileStorage,
            'presigned_url',
            recording_presign,
        )
        share = create_share(shared_file.pk, user, expires_in_hours=1)

        resolve_share(share.token)

        assert seen == [(shared_file.object_key, 120)]


@pytest.mark.django_db
class TestShareInfo:
    """Tests for share previews."""

    def test_info_does_not_consume(self, user, shared_file):
        """Previewing never counts as a download."""
        share = create_share(
            shared_file.pk,
            user,
            expires_in_hours=1,
            max_downloads=2,
        )

        info = get_share_info(share.token)
        get_share_info(share.token)

        assert info.filename == 'report.pdf'
        assert info.size_bytes == shared_file.size_bytes
        assert info.expires_at == share.expires_at
        assert info.remaining_downloads == 2
        share.refresh_from_db()
        assert share.download_count == 0

    def test_info_expired(self, user, shared_file):
        """Expired links have no preview."""
        share = create_share(shared_file.pk, user, expires_in_hours=1)
        _expire(share)

        with pytest.raises(ShareExpiredError):
            get_share_info(share.token)

    def test_info_exhausted(self, user, shared_file):
        """Exhausted links have no preview."""
        share = create_share(
            shared_file.pk,
            user,
            expires_in_hours=1,
            max_downloads=1,
        )
        resolve_share(share.token)

        with pytest.raises(ShareLimitReachedError):
            get_share_info(share.token)

    def test_info_unknown_token(self, db):
        """Unknown tokens are not found."""
        with pytest.raises(NotFoundError):
            get_share_info('no-such-token')


@pytest.mark.django_db
class TestListAndDeleteShares:
    """Tests for managing a user's shares."""

    def test_list_shares(self, user, other_user, shared_file, mock_s3):
        """Only the owner's unexpired shares are listed."""
        live = create_share(shared_file.pk, user, expires_in_hours=1)
        _expire(create_share(shared_file.pk, user, expires_in_hours=1))

        assert list(list_shares(user)) == [live]
        assert list(list_shares(other_user)) == []

    def test_delete_share(self, user, shared_file):
        """The owner can revoke a share."""
        share = create_share(shared_file.pk, user, expires_in_hours=1)

        delete_share(share.pk, user)

        assert not Share.objects.filter(pk=share.pk).exists()
        with pytest.raises(NotFoundError):
            resolve_share(share.token)

    def test_delete_foreign_share(self, user, other_user, shared_file):
        """Other users cannot revoke the share."""
        share = create_share(shared_file.pk, user, expires_in_hours=1)

        with pytest.raises(AccessDeniedError):
            delete_share(share.pk, other_user)

        assert Share.objects.filter(pk=share.pk).exists()

    def test_delete_missing_share(self, user):
        """Unknown shares are not found."""
        with pytest.raises(NotFoundError):
            delete_share(99999, user)

    def test_deleting_file_removes_shares(self, user, shared_file):
        """Shares go with their file."""
        share = create_share(shared_file.pk, user, expires_in_hours=1)

        delete_file(shared_file.pk, user)

        assert not Share.objects.filter(pk=share.pk).exists()


def test_build_share_url(settings):
    """Share URLs live under the configured application URL."""
    settings.MINIDRIVE_APP_URL = 'https://drive.example.com/'

    assert build_share_url('abc') == (
        'https://drive.example.com/api/v1/shares/abc'
    )
