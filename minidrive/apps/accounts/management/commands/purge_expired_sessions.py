"""Management command to remove expired login sessions."""

from typing import Any, final, override

from django.core.management.base import BaseCommand

from minidrive.apps.accounts.logic.session_operations import (
    cleanup_expired_sessions,
)


@final
class Command(BaseCommand):
    """Delete sessions past their expiry time."""

    help = 'Delete expired login sessions'

    @override
    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the cleanup.

        Args:
            args: Positional arguments (unused).
            options: Command options (unused).
        """
        deleted = cleanup_expired_sessions()
        self.stdout.write(
            self.style.SUCCESS(f'Purged {deleted} expired sessions'),
        )
