"""Exceptions for the storage core.

Validation-level errors (ownership, duplicates, quota, tiers) are
expected outcomes for the caller. StorageUnavailableError and
DecryptionFailedError signal infrastructure or integrity problems.
"""


class MiniDriveError(Exception):
    """Base class for every error raised by the storage core."""


class NotFoundError(MiniDriveError):
    """Raised when the requested object does not exist."""


class AccessDeniedError(MiniDriveError):
    """Raised when the object exists but belongs to another user."""


class DuplicateNameError(MiniDriveError):
    """Raised when a sibling folder with the same name already exists."""


class StorageUnavailableError(MiniDriveError):
    """Raised when the object store fails or cannot be reached."""


class DecryptionFailedError(MiniDriveError):
    """Raised when a blob cannot be read back with its derived key."""


class QuotaExceededError(MiniDriveError):
    """Raised when upload would exceed user's storage quota."""

    def __init__(
        self,
        quota_bytes: int,
        used_bytes: int,
        required_bytes: int,
    ) -> None:
        """Initialize QuotaExceededError.

        Args:
            quota_bytes: Total quota limit in bytes.
            used_bytes: Currently used bytes.
            required_bytes: Bytes needed for the operation.
        """
        self.quota_bytes = quota_bytes
        self.used_bytes = used_bytes
        self.required_bytes = required_bytes

        available = max(0, quota_bytes - used_bytes)
        super().__init__(
            f'Quota exceeded: need {required_bytes} bytes, '
            f'only {available} bytes available '
            f'(quota: {quota_bytes}, used: {used_bytes})',
        )


class InvalidTierTransitionError(MiniDriveError):
    """Raised when a tier change would leave usage above the new limit."""

    def __init__(
        self,
        from_tier: str,
        to_tier: str,
        used_bytes: int,
        limit_bytes: int,
    ) -> None:
        """Initialize InvalidTierTransitionError.

        Args:
            from_tier: Current tier.
            to_tier: Requested tier.
            used_bytes: Current storage usage in bytes.
            limit_bytes: Quota of the requested tier.
        """
        self.from_tier = from_tier
        self.to_tier = to_tier
        self.used_bytes = used_bytes
        self.limit_bytes = limit_bytes
        super().__init__(
            f'Cannot change tier {from_tier} -> {to_tier}: '
            f'usage {used_bytes} bytes exceeds limit {limit_bytes} bytes',
        )
