"""Exceptions for shares app."""

from minidrive.apps.files.exceptions import MiniDriveError


class ShareExpiredError(MiniDriveError):
    """Raised when a share link is past its expiry time."""


class ShareLimitReachedError(MiniDriveError):
    """Raised when a share link has used up its downloads."""
