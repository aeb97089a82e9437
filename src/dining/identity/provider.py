"""Identity provider port and the in-memory adapter used for development and tests.

Credential issuance and session management belong to an external service.
The rest of the application only sees ``Session`` objects.
"""

import hashlib
import secrets
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime

import structlog
from protean.exceptions import ValidationError

logger = structlog.get_logger(__name__)

_HASH_ITERATIONS = 100_000


@dataclass(frozen=True)
class Session:
    token: str
    user_id: str
    email: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class IdentityProvider(ABC):
    """What the application needs from an identity service."""

    #: True while the provider is still restoring sessions, e.g. right after start-up.
    loading = False

    @abstractmethod
    def sign_in(self, email, password):
        """Return a new ``Session`` or raise ``ValidationError`` for bad credentials."""

    @abstractmethod
    def sign_out(self, token):
        """End the session. Unknown tokens are ignored."""

    @abstractmethod
    def session_for(self, token):
        """The live ``Session`` for ``token``, or None."""


def _hash_password(password, salt):
    return hashlib.pbkdf2_hmac("sha256", password.encode(), salt, _HASH_ITERATIONS)


class InMemoryIdentityProvider(IdentityProvider):
    def __init__(self):
        self._users = {}  # email -> (user_id, salt, digest)
        self._sessions = {}
        self._lock = threading.Lock()

    def sign_up(self, email, password):
        """Register a user and return the new user id."""
        email = (email or "").strip().lower()
        errors = {}
        if "@" not in email:
            errors["email"] = ["A valid email address is required"]
        if not password or len(password) < 6:
            errors["password"] = ["Password must be at least 6 characters"]
        if errors:
            raise ValidationError(errors)

        with self._lock:
            if email in self._users:
                raise ValidationError({"email": ["An account with this email already exists"]})
            user_id = str(uuid.uuid4())
            salt = secrets.token_bytes(16)
            self._users[email] = (user_id, salt, _hash_password(password, salt))

        logger.info("User signed up", user_id=user_id)
        return user_id

    def sign_in(self, email, password):
        email = (email or "").strip().lower()
        record = self._users.get(email)
        if record is None or not secrets.compare_digest(record[2], _hash_password(password or "", record[1])):
            raise ValidationError({"credentials": ["Invalid email or password"]})

        session = Session(token=secrets.token_urlsafe(32), user_id=record[0], email=email)
        with self._lock:
            self._sessions[session.token] = session
        logger.info("User signed in", user_id=session.user_id)
        return session

    def sign_out(self, token):
        with self._lock:
            session = self._sessions.pop(token, None)
        if session:
            logger.info("User signed out", user_id=session.user_id)

    def session_for(self, token):
        if not token:
            return None
        return self._sessions.get(token)

    def reset(self):
        with self._lock:
            self._users.clear()
            self._sessions.clear()
        self.loading = False


identity_provider = InMemoryIdentityProvider()
