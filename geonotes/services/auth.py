"""Account sign-up, sign-in and session state."""

from __future__ import annotations

import hashlib
import hmac
import logging
import re
import secrets
import uuid
from datetime import datetime
from typing import Callable, List, Optional

from geonotes.common.errors import AuthError, NotAuthenticatedError
from geonotes.common.models import User
from geonotes.store.user_store import UserStore

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
HASH_ITERATIONS = 260_000

AUTH_MESSAGES = {
    "user-not-found": "No user found with this email.",
    "wrong-password": "Wrong password provided.",
    "invalid-email": "The email address is invalid.",
    "weak-password": "The password is too weak.",
    "email-already-in-use": "An account already exists for this email.",
}
GENERIC_AUTH_MESSAGE = "An error occurred. Please try again."


def hash_password(password: str, salt: Optional[str] = None, iterations: int = HASH_ITERATIONS) -> str:
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations)
    return f"pbkdf2_sha256${iterations}${salt}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        algorithm, iterations, salt, _ = encoded.split("$", 3)
    except ValueError:
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    candidate = hash_password(password, salt=salt, iterations=int(iterations))
    return hmac.compare_digest(candidate, encoded)


class AuthService:
    """Holds the signed-in user and talks to the user store."""

    def __init__(self, users: UserStore, min_password_length: int = 6) -> None:
        self.users = users
        self.min_password_length = min_password_length
        self._current: Optional[User] = None
        self._listeners: List[Callable[[Optional[User]], None]] = []

    @property
    def current_user(self) -> Optional[User]:
        return self._current

    def require_user(self) -> User:
        if self._current is None:
            raise NotAuthenticatedError()
        return self._current

    def add_listener(self, callback: Callable[[Optional[User]], None]) -> None:
        """Auth-state changes; ``callback`` gets the new user or ``None``."""

        self._listeners.append(callback)

    def sign_up(self, email: str, password: str, full_name: str) -> User:
        email = email.strip()
        if not EMAIL_PATTERN.match(email):
            raise AuthError("invalid-email")
        if len(password) < self.min_password_length:
            raise AuthError("weak-password")
        if self.users.find_by_email(email) is not None:
            raise AuthError("email-already-in-use")

        user = User(
            user_id=uuid.uuid4().hex,
            email=email,
            full_name=full_name.strip(),
            created_at=datetime.now(),
        )
        self.users.add(user, hash_password(password))
        logger.info("Registered user %s", user.user_id)
        self._set_current(user)
        return user

    def sign_in(self, email: str, password: str) -> User:
        email = email.strip()
        if not EMAIL_PATTERN.match(email):
            raise AuthError("invalid-email")
        user = self.users.find_by_email(email)
        if user is None:
            raise AuthError("user-not-found")
        encoded = self.users.password_hash(user.user_id) or ""
        if not verify_password(password, encoded):
            raise AuthError("wrong-password")
        logger.info("User %s signed in", user.user_id)
        self._set_current(user)
        return user

    def sign_out(self) -> None:
        if self._current is not None:
            logger.info("User %s signed out", self._current.user_id)
        self._set_current(None)

    def get_user_full_name(self) -> Optional[str]:
        if self._current is None:
            return None
        stored = self.users.get(self._current.user_id)
        return stored.full_name if stored is not None else None

    def _set_current(self, user: Optional[User]) -> None:
        self._current = user
        for callback in list(self._listeners):
            callback(user)


class AuthController:
    """Wraps ``AuthService`` so the views only ever see message strings."""

    def __init__(self, service: AuthService) -> None:
        self.service = service

    @property
    def current_user(self) -> Optional[User]:
        return self.service.current_user

    def sign_in(self, email: str, password: str) -> Optional[str]:
        try:
            self.service.sign_in(email=email, password=password)
        except AuthError as exc:
            return _message_for(exc)
        return None

    def sign_up(self, email: str, password: str, full_name: str) -> Optional[str]:
        try:
            self.service.sign_up(email=email, password=password, full_name=full_name)
        except AuthError as exc:
            return _message_for(exc)
        return None

    def sign_out(self) -> Optional[str]:
        try:
            self.service.sign_out()
        except Exception as exc:  # listener failures
            logger.exception("Sign-out failed")
            return f"Failed to sign out: {exc}"
        return None

    def get_user_full_name(self) -> Optional[str]:
        try:
            return self.service.get_user_full_name()
        except Exception:
            logger.exception("Could not look up the user's full name")
            return None


def _message_for(error: AuthError) -> str:
    return AUTH_MESSAGES.get(error.code, GENERIC_AUTH_MESSAGE)
