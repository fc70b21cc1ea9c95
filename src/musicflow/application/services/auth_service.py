"""Subsonic authentication.

Two schemes, both carried in query parameters:

- ``u`` + ``p``: password in clear text, or ``enc:`` followed by its hex encoding
- ``u`` + ``t`` + ``s``: ``t = md5(password + s)`` as hex
"""

import hashlib
import logging
import secrets

from sqlalchemy.ext.asyncio import AsyncSession

from musicflow.config import AuthSettings
from musicflow.domain.exceptions import (
    AuthenticationError,
    MissingParameterError,
    ValidationException,
)
from musicflow.infrastructure.persistence.models import UserModel
from musicflow.infrastructure.persistence.repositories import UserRepository

logger = logging.getLogger(__name__)


def decode_password(password: str) -> str:
    """Decode the ``enc:<hex>`` form; plain passwords pass through."""
    if not password.startswith("enc:"):
        return password
    try:
        return bytes.fromhex(password[4:]).decode("utf-8")
    except ValueError as e:
        raise ValidationException("Malformed enc: password") from e


def make_token(password: str, salt: str) -> str:
    return hashlib.md5((password + salt).encode("utf-8")).hexdigest()  # nosec B324


def verify_password(candidate: str, stored: str) -> bool:
    """Constant-time comparison. compare_digest only takes ASCII str, so compare bytes."""
    return secrets.compare_digest(candidate.encode("utf-8"), stored.encode("utf-8"))


def verify_token(password: str, token: str, salt: str) -> bool:
    """Constant-time check of ``token`` against md5(password + salt), case-insensitive."""
    expected = make_token(password, salt)
    return secrets.compare_digest(expected.encode("utf-8"), token.lower().encode("utf-8"))


class AuthService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.users = UserRepository(session)

    async def authenticate(
        self,
        username: str | None,
        password: str | None = None,
        token: str | None = None,
        salt: str | None = None,
    ) -> UserModel:
        """Resolve the calling user.

        Raises:
            MissingParameterError: ``u`` or any credential is missing.
            AuthenticationError: Unknown user or wrong credentials.
        """
        if not username:
            raise MissingParameterError("u")
        if not password and not (token and salt):
            raise MissingParameterError("p or t+s")

        user = await self.users.get_by_username(username)
        if user is None:
            logger.info(f"Authentication failed: unknown user {username}")
            raise AuthenticationError()

        if password:
            try:
                ok = verify_password(decode_password(password), user.password)
            except ValidationException:
                ok = False
        else:
            ok = verify_token(user.password, token or "", salt or "")

        if not ok:
            logger.info(f"Authentication failed: bad credentials for {username}")
            raise AuthenticationError()
        return user

    async def ensure_default_admin(self, settings: AuthSettings) -> bool:
        """Create the bootstrap admin when no admin exists. Returns True if created."""
        if await self.users.any_admin():
            return False
        existing = await self.users.get_by_username(settings.default_admin_username)
        if existing is not None:
            existing.is_admin = True
            logger.warning(f"Promoted existing user {existing.username} to admin")
            return True
        self.session.add(
            UserModel(
                username=settings.default_admin_username,
                password=settings.default_admin_password,
                is_admin=True,
            )
        )
        logger.warning(
            f"Created default admin user '{settings.default_admin_username}' - change its password"
        )
        return True
