"""
Admin Access Gate - HTTP Basic authentication for the admin surface.

Provides:
- Password verification against a bcrypt hash (passlib) or a plain
  configured secret, both compared in constant time
- Per-client throttling of failed attempts
- FastAPI dependency `require_admin` for protected routes
"""

import logging
import secrets
import threading
import time
from collections import deque
from functools import lru_cache
from typing import Deque, Dict, Hashable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from passlib.context import CryptContext

from app.core.config import Settings, get_settings
from app.core.exceptions import AuthenticationError, TooManyAttemptsError

logger = logging.getLogger(__name__)

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Basic credentials extractor; missing header is handled by the gate
basic_scheme = HTTPBasic(auto_error=False, realm="Careers Admin")


def hash_password(password: str) -> str:
    """Hash password with bcrypt (used to produce ADMIN_PASSWORD_HASH)."""
    return pwd_context.hash(password)


class LoginThrottle:
    """
    Sliding-window counter of failed logins per key.

    Keys are (client address, attempted login) pairs, so guesses against one
    login do not lock out a different one sharing the same address.
    """

    def __init__(self, max_attempts: int = 5, window_seconds: int = 300, clock=time.monotonic):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._clock = clock
        self._failures: Dict[Hashable, Deque[float]] = {}
        self._lock = threading.Lock()

    def _prune(self, key: Hashable, now: float) -> Optional[Deque[float]]:
        failures = self._failures.get(key)
        if failures is None:
            return None
        while failures and now - failures[0] >= self.window_seconds:
            failures.popleft()
        if not failures:
            del self._failures[key]
            return None
        return failures

    def check(self, key: Hashable) -> None:
        """Raise TooManyAttemptsError if `key` is locked out."""
        with self._lock:
            now = self._clock()
            failures = self._prune(key, now)
            if failures is not None and len(failures) >= self.max_attempts:
                retry_after = int(self.window_seconds - (now - failures[0])) + 1
                raise TooManyAttemptsError(retry_after=retry_after)

    def record_failure(self, key: Hashable) -> None:
        with self._lock:
            now = self._clock()
            self._prune(key, now)
            self._failures.setdefault(key, deque()).append(now)

    def reset(self, key: Hashable) -> None:
        with self._lock:
            self._failures.pop(key, None)

    def __len__(self) -> int:
        return len(self._failures)


class AdminGate:
    """
    Checks a single configured admin credential pair.

    The password is verified against ADMIN_PASSWORD_HASH when set, otherwise
    against ADMIN_PASSWORD. With neither configured every request is denied.
    """

    def __init__(self, login: str, password: str = "", password_hash: str = "",
                 throttle: Optional[LoginThrottle] = None):
        self.login = login
        self.password = password
        self.password_hash = password_hash
        self.throttle = throttle or LoginThrottle()

    @classmethod
    def from_settings(cls, settings: Settings) -> "AdminGate":
        return cls(
            login=settings.admin_login,
            password=settings.admin_password,
            password_hash=settings.admin_password_hash,
            throttle=LoginThrottle(settings.admin_max_failed_attempts, settings.admin_lockout_seconds),
        )

    @property
    def configured(self) -> bool:
        return bool(self.login) and bool(self.password or self.password_hash)

    def _password_matches(self, candidate: str) -> bool:
        if self.password_hash:
            try:
                return pwd_context.verify(candidate, self.password_hash)
            except ValueError:
                logger.error("ADMIN_PASSWORD_HASH is not a valid bcrypt hash")
                return False
        return secrets.compare_digest(candidate.encode("utf-8"), self.password.encode("utf-8"))

    def verify(self, username: str, password: str) -> bool:
        if not self.configured:
            return False
        login_ok = secrets.compare_digest(username.encode("utf-8"), self.login.encode("utf-8"))
        # Always check the password so timing does not reveal which half failed
        password_ok = self._password_matches(password)
        return login_ok and password_ok

    def authenticate(self, credentials: Optional[HTTPBasicCredentials], client: str) -> str:
        """Return the admin login or raise AuthenticationError / TooManyAttemptsError."""
        if credentials is None:
            raise AuthenticationError()

        key = (client, credentials.username)
        self.throttle.check(key)

        if not self.verify(credentials.username, credentials.password):
            self.throttle.record_failure(key)
            logger.warning("Rejected admin credentials from %s", client)
            raise AuthenticationError()

        self.throttle.reset(key)
        return credentials.username


@lru_cache()
def get_admin_gate() -> AdminGate:
    settings = get_settings()
    gate = AdminGate.from_settings(settings)
    if not gate.configured:
        logger.warning("ADMIN_LOGIN / ADMIN_PASSWORD(_HASH) not set; admin routes will deny all requests")
    return gate


def require_admin(
    request: Request,
    credentials: Optional[HTTPBasicCredentials] = Depends(basic_scheme),
    gate: AdminGate = Depends(get_admin_gate),
) -> str:
    """
    FastAPI dependency - guard an admin route.

    Usage:
        @router.get("/admin-only")
        def route(admin: str = Depends(require_admin)):
            ...
    """
    client = request.client.host if request.client else "unknown"
    return gate.authenticate(credentials, client)
