"""User Directory - Signup and login lookup over registered users.

Identity only: there are no passwords or tokens. A user is found by email.
"""

import logging

from ..core.errors import UserAlreadyExistsError, UserNotFoundError
from ..core.models import User
from .persistence import PersistenceGateway


logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_NAME = "User"


def normalize_email(email: str | None) -> str:
    """Normalize an email for comparison (trimmed, lower-cased).

    Non-string values normalize to an empty string, which never matches a user.
    """
    if not isinstance(email, str):
        return ""
    return email.strip().lower()


def validate_email_format(email: str | None) -> bool:
    """Check if an email looks usable as a login identity.

    Args:
        email: The email to validate

    Returns:
        True if format is valid
    """
    email = normalize_email(email)
    if not email:
        return False
    local, sep, domain = email.partition("@")
    if not sep or not local or not domain:
        return False
    if " " in email:
        return False
    return True


class UserDirectory:
    """Registered users kept in the key/value store."""

    def __init__(self, gateway: PersistenceGateway) -> None:
        """Initialize user directory.

        Args:
            gateway: Persistence gateway holding the registered-users key
        """
        self._gateway = gateway

    def find_by_email(self, email: str) -> User | None:
        email = normalize_email(email)
        return next(
            (u for u in self._gateway.load_registered_users() if normalize_email(u.email) == email),
            None,
        )

    def signup(self, email: str, name: str | None = None) -> User:
        """Register a new user.

        Args:
            email: User's email address
            name: Display name (defaults to "User")

        Returns:
            The created user

        Raises:
            ValueError: If the email is not valid or the name is not text
            UserAlreadyExistsError: If the email is already registered
        """
        if not validate_email_format(email):
            raise ValueError("Valid email is required")
        if name is not None and not isinstance(name, str):
            raise ValueError("Name must be text")

        users = self._gateway.load_registered_users()
        email = normalize_email(email)
        if any(normalize_email(u.email) == email for u in users):
            logger.info("Signup rejected, user already exists: %s", email)
            raise UserAlreadyExistsError("User already exists! Please login.")

        user = User(email=email, name=(name or "").strip() or DEFAULT_DISPLAY_NAME)
        users.append(user)
        if not self._gateway.save_registered_users(users):
            logger.warning("User %s registered but the user list was not persisted", user.id[:8])

        logger.info("User registered successfully: %s", user.id[:8])
        return user

    def login(self, email: str) -> User:
        """Look up an existing user by email.

        Raises:
            UserNotFoundError: If no user is registered with this email
        """
        user = self.find_by_email(email)
        if user is None:
            logger.info("Login rejected, user not found: %s", normalize_email(email))
            raise UserNotFoundError("User not found. Please sign up first.")
        return user

    def list_users(self) -> list[User]:
        """All registered users, in registration order."""
        return self._gateway.load_registered_users()
