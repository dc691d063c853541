"""
Password Reset Service

Redis-backed single-use password reset tokens.
"""
from __future__ import annotations

import logging
import secrets
import uuid

import redis

from photorate.config import get_settings
from photorate.errors import Unavailable

logger = logging.getLogger(__name__)
settings = get_settings()


class PasswordResetService:
    """
    Issues and consumes password reset tokens.

    Keys:
    - photorate:reset:{token} - user id, expires after reset_token_ttl_seconds
    """

    KEY_PREFIX = "photorate:reset"

    def __init__(self, client: redis.Redis | None = None):
        """Initialize Redis connection."""
        self.redis = client or redis.from_url(
            settings.redis_url,
            decode_responses=True,
        )
        self.ttl = settings.reset_token_ttl_seconds

    def issue(self, user_id: uuid.UUID) -> str:
        """
        Create a reset token for a user.

        Returns:
            The opaque token to deliver to the user
        """
        token = secrets.token_urlsafe(32)
        try:
            self.redis.set(f"{self.KEY_PREFIX}:{token}", str(user_id), ex=self.ttl)
        except redis.RedisError as e:
            logger.error(f"Failed to store reset token: {e}")
            raise Unavailable("Password reset is temporarily unavailable")
        return token

    def consume(self, token: str) -> uuid.UUID | None:
        """
        Redeem a token. Each token works once.

        Returns:
            The user id, or None if the token is unknown or expired
        """
        try:
            value = self.redis.getdel(f"{self.KEY_PREFIX}:{token}")
        except redis.RedisError as e:
            logger.error(f"Failed to read reset token: {e}")
            raise Unavailable("Password reset is temporarily unavailable")
        return uuid.UUID(value) if value else None

    def deliver(self, email: str, token: str) -> None:
        """Hand the token to the user. No mailer is wired in."""
        logger.info("Password reset token issued for %s", email)
        logger.debug("Reset token for %s: %s", email, token)

    def health_check(self) -> bool:
        """Check Redis connectivity."""
        try:
            return self.redis.ping()
        except redis.RedisError:
            return False


# Singleton instance
_reset_service: PasswordResetService | None = None


def get_reset_service() -> PasswordResetService:
    """Get or create reset service singleton."""
    global _reset_service
    if _reset_service is None:
        _reset_service = PasswordResetService()
    return _reset_service
