"""
Encrypted cookie session store for the Speed Funnel
Handles sealing, expiry and the step invariants of a visitor's funnel session
"""

import base64
import hashlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Mapping, Optional

from cryptography.fernet import Fernet, InvalidToken
from fastapi import Response
from pydantic import ValidationError as PydanticValidationError

from config import Settings
from funnel.errors import ConfigurationError, PersistenceError
from models import FunnelSession

logger = logging.getLogger(__name__)

# Browsers drop cookies larger than this, name and value included
MAX_COOKIE_BYTES = 4096


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SessionCipher:
    """
    Authenticated encryption of a FunnelSession into a cookie-safe token.

    The Fernet key is derived from the configured secret, so rotating the
    secret invalidates every outstanding session.
    """

    MIN_SECRET_LENGTH = 32

    def __init__(self, secret: str):
        if not secret:
            raise ConfigurationError("SESSION_SECRET is not configured")
        if len(secret) < self.MIN_SECRET_LENGTH:
            raise ConfigurationError(
                f"SESSION_SECRET must be at least {self.MIN_SECRET_LENGTH} characters"
            )

        key = base64.urlsafe_b64encode(hashlib.sha256(secret.encode("utf-8")).digest())
        self._fernet = Fernet(key)

    def seal(self, session: FunnelSession) -> str:
        token = self._fernet.encrypt(session.model_dump_json().encode("utf-8")).decode("ascii")
        # Padding is stripped so the cookie value never needs quoting
        return token.rstrip("=")

    def unseal(self, token: str) -> Optional[FunnelSession]:
        """Decrypt a cookie value. Tampered or unreadable tokens yield None."""
        token = token.strip('"')
        token += "=" * (-len(token) % 4)
        try:
            payload = self._fernet.decrypt(token.encode("ascii"))
        except (InvalidToken, UnicodeEncodeError):
            logger.warning("Discarding session cookie that failed decryption")
            return None

        try:
            return FunnelSession.model_validate_json(payload)
        except PydanticValidationError as e:
            logger.warning(f"Discarding malformed session payload: {e.error_count()} errors")
            return None


class SessionStore:
    """
    One visitor's funnel session, read from the request cookie and written
    to the response.

    Expiry is checked when the session is read; there is no background sweep.
    """

    def __init__(
        self,
        settings: Settings,
        cookies: Mapping[str, str],
        response: Response,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.settings = settings
        self.cipher = SessionCipher(settings.SESSION_SECRET)
        self.response = response
        self.clock = clock
        self.cookie_name = settings.SESSION_COOKIE_NAME
        self.max_age = timedelta(seconds=settings.SESSION_MAX_AGE)

        raw = cookies.get(self.cookie_name)
        self._session: Optional[FunnelSession] = self.cipher.unseal(raw) if raw else None

    def get(self) -> Optional[FunnelSession]:
        """
        Get the current session.

        Returns:
            The session, or None when absent, corrupt or older than the max age
            (an expired session is destroyed before returning)
        """
        session = self._session
        if session is None:
            return None

        if self.clock() - session.timestamp > self.max_age:
            logger.info("Session expired, clearing it")
            self.clear()
            return None

        return session

    def update(self, **changes: Any) -> FunnelSession:
        """
        Merge fields into the existing (or a new) session and persist it.

        The timestamp is always refreshed.

        Raises:
            PersistenceError: If the cookie cannot be written
        """
        current = self.get()
        data = current.model_dump() if current is not None else {}
        data.update(changes)
        data["timestamp"] = self.clock()

        session = FunnelSession.model_validate(data)
        self._write(session)
        self._session = session
        return session

    def clear(self) -> None:
        """Destroy the session. Never raises."""
        self._session = None
        try:
            self.response.delete_cookie(
                self.cookie_name,
                httponly=True,
                samesite="lax",
                secure=self.settings.is_production,
            )
        except Exception as e:
            logger.error(f"Failed to clear session cookie: {str(e)}")

    def validate(self) -> Optional[FunnelSession]:
        """
        Return the session only if it satisfies the invariant of its step.

        A stored "url" step is treated as no session; sessions are only ever
        created at the "email" step.
        """
        session = self.get()
        if session is None or not session.url:
            return None

        if session.step == "email":
            return session if session.analysis is not None else None
        if session.step == "results":
            if session.analysis is not None and session.email:
                return session
            return None
        return None

    def _write(self, session: FunnelSession) -> None:
        token = self.cipher.seal(session)
        if len(self.cookie_name) + len(token) + 1 > MAX_COOKIE_BYTES:
            raise PersistenceError(
                f"Session cookie would be {len(token)} bytes, over the {MAX_COOKIE_BYTES} byte limit"
            )

        try:
            self.response.set_cookie(
                self.cookie_name,
                token,
                max_age=self.settings.SESSION_MAX_AGE,
                httponly=True,
                samesite="lax",
                secure=self.settings.is_production,
            )
        except Exception as e:
            logger.error(f"❌ Session cookie write failed: {str(e)}")
            raise PersistenceError(f"Failed to update session: {str(e)}") from e
