"""Management command to remove expired share links."""

from typing import Any, Final, final, override

from django.core.management.base import BaseCommand
from django.utils import timezone

from minidrive.apps.shares.logic.share_operations import (
    expired_shares,
    purge_expired_shares,
)

_DEFAULT_BATCH_SIZE: Final = 1000


@final
class Command(BaseCommand):
    """Delete share links whose expiry time has passed."""

    help = 'Delete expired share links'

    @override
    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without deleting',
        )
        parser.add_argument(
            '--batch-size',
            type=int,
            default=_DEFAULT_BATCH_SIZE,
            help=f'Max shares to process (default: {_DEFAULT_BATCH_SIZE})',
        )

    @override
    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the purge.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        dry_run = options['dry_run']
        batch_size = options['batch_size']
        now = timezone.now()

        self.stdout.write(f'Looking for shares expired before {now}')

        if dry_run:
            doomed = expired_shares(now).select_related('file')[:batch_size]
            count = 0
            for share in doomed:
                self.stdout.write(
                    f'Would delete: {share.token[:8]} '
                    f'(file: {share.file.name}, expired: {share.expires_at})',
                )
                count += 1
            self.stdout.write(
                self.style.SUCCESS(f'Would purge {count} expired shares'),
            )
            return

        deleted = purge_expired_shares(batch_size, now=now)
        self.stdout.write(
            self.style.SUCCESS(f'Purged {deleted} expired shares'),
        )
