"""Bearer session management.

Sessions are opaque random tokens with a fixed lifetime. Expired
sessions are removed when they are looked up and by the periodic
``purge_expired_sessions`` command.
"""

import logging
from datetime import timedelta

from django.conf import settings
from django.utils import timezone

from minidrive.apps.accounts.models import Session, User
from minidrive.apps.files.infrastructure.encryption import generate_token

logger = logging.getLogger(__name__)


def get_session_expiry_hours() -> int:
    """Get session lifetime in hours.

    Returns:
        Lifetime from settings or default of 168 (7 days).
    """
    return getattr(settings, 'SESSION_EXPIRY_HOURS', 168)


def create_session(user: User) -> Session:
    """Issue a new session for a user who completed a login ceremony.

    Args:
        user: Authenticated user.

    Returns:
        Created Session instance.
    """
    session = Session.objects.create(
        user=user,
        token=generate_token(),
        expires_at=timezone.now() + timedelta(
            hours=get_session_expiry_hours(),
        ),
    )

    logger.info(
        'Session created for user %s: %s',
        user.username,
        session.token[:8],
    )
    return session


def get_user_from_session(token: str) -> User | None:
    """Resolve a bearer token to its user.

    Args:
        token: Session token.

    Returns:
        The session's user, or None when the token is unknown or expired.
    """
    try:
        session = Session.objects.select_related('user').get(token=token)
    except Session.DoesNotExist:
        return None

    if session.expires_at <= timezone.now():
        session.delete()
        logger.info('Expired session removed: %s', token[:8])
        return None

    return session.user


def end_session(token: str) -> bool:
    """End a session (logout).

    Args:
        token: Session token.

    Returns:
        True if the session existed and was deleted, False otherwise.
    """
    deleted, _ = Session.objects.filter(token=token).delete()

    if deleted:
        logger.info('Session ended: %s', token[:8])

    return deleted > 0


def cleanup_expired_sessions() -> int:
    """Remove every session past its expiry time.

    Returns:
        Number of sessions cleaned up.
    """
    deleted, _ = Session.objects.filter(
        expires_at__lte=timezone.now(),
    ).delete()

    if deleted:
        logger.info('Cleaned up %d expired sessions', deleted)

    return deleted
