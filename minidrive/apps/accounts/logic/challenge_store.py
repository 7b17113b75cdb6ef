"""Short-lived storage for WebAuthn challenges."""

import logging
from typing import Final

from django.conf import settings
from django.core.cache import BaseCache, caches

_KEY_PREFIX: Final = 'minidrive:webauthn-challenge:'

logger = logging.getLogger(__name__)


class ChallengeStore:
    """Challenges issued between the two steps of a WebAuthn ceremony.

    Keyed by email and backed by a Django cache, so entries expire on
    their own after ``ttl`` seconds. A challenge can be taken only once.
    """

    def __init__(
        self,
        cache: BaseCache | None = None,
        ttl: int | None = None,
    ) -> None:
        """Create the store.

        Args:
            cache: Cache backend, the default cache when omitted.
            ttl: Lifetime in seconds, ``WEBAUTHN_CHALLENGE_TTL`` when
                omitted.
        """
        self._cache = cache if cache is not None else caches['default']
        self._ttl = (
            ttl
            if ttl is not None
            else getattr(settings, 'WEBAUTHN_CHALLENGE_TTL', 60)
        )

    @property
    def ttl(self) -> int:
        """Challenge lifetime in seconds."""
        return self._ttl

    def set(self, email: str, challenge: bytes) -> None:
        """Remember a challenge, replacing any earlier one for ``email``."""
        self._cache.set(self._key(email), challenge, timeout=self._ttl)
        logger.debug('Challenge stored for %s', email)

    def pop(self, email: str) -> bytes | None:
        """Take the challenge for ``email``.

        Returns:
            The challenge, or None if it was never set, already taken
            or has expired.
        """
        key = self._key(email)
        challenge = self._cache.get(key)
        if challenge is not None:
            self._cache.delete(key)
        return challenge

    def _key(self, email: str) -> str:
        return f'{_KEY_PREFIX}{email.strip().lower()}'
