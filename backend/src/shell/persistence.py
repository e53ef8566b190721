"""Persistence Gateway - Namespaced JSON persistence for per-user collections.

This module handles all storage I/O for the health tracker.
All I/O is contained here; business logic is in the core module.
"""

import json
import logging
from typing import Any

from pydantic import TypeAdapter, ValidationError

from ..core.collections import (
    COLLECTIONS,
    EXERCISES,
    FOODS,
    PROFILE,
    WATER_LOGS,
    decode_exercises,
    decode_foods,
    decode_profile,
    decode_water_logs,
    default_profile,
    encode_collection,
)
from ..core.errors import StorageError, StorageReadError, StorageWriteError
from ..core.models import ExerciseItem, FoodItem, User, UserData, UserProfile, WaterLog
from .storage import KeyValueStore


logger = logging.getLogger(__name__)

GUEST_NAMESPACE = "guest"
SESSION_KEY = "session_user"
REGISTERED_USERS_KEY = "registered_users"

_users_adapter = TypeAdapter(list[User])


def _short(user_id: str | None) -> str:
    return user_id[:8] if user_id else GUEST_NAMESPACE


class PersistenceGateway:
    """Gateway between per-user collections and a key/value store.

    Key layout:
        {prefix}_{user_id|guest}_profile
        {prefix}_{user_id|guest}_foods
        {prefix}_{user_id|guest}_exercises
        {prefix}_{user_id|guest}_water_logs
        {prefix}_session_user
        {prefix}_registered_users
    """

    def __init__(self, store: KeyValueStore, prefix: str = "hg") -> None:
        """Initialize gateway.

        Args:
            store: Key/value substrate shared by all users
            prefix: Prefix of every key written by this gateway
        """
        self.store = store
        self.prefix = prefix

    def namespaced_key(self, user_id: str | None, collection: str) -> str:
        """Derive the storage key for a user's collection.

        Args:
            user_id: The user's ID (None for the guest namespace)
            collection: One of the four collection names

        Returns:
            Storage key for the collection
        """
        if collection not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {collection}")
        return f"{self.prefix}_{user_id or GUEST_NAMESPACE}_{collection}"

    def _singleton_key(self, name: str) -> str:
        return f"{self.prefix}_{name}"

    # ==================== Raw Operations ====================

    def _read(self, key: str) -> Any | None:
        """Read and parse a key. Corrupt or unreadable data yields None."""
        try:
            raw = self.store.get_item(key)
            if raw is None:
                return None
            return json.loads(raw)
        except (StorageError, OSError, ValueError, TypeError) as e:
            err = e if isinstance(e, StorageReadError) else StorageReadError(str(e))
            logger.warning("Failed to read %s, using defaults: %s", key, err)
            return None

    def _write(self, key: str, value: Any) -> bool:
        """Serialize and write a key. Failures are logged, never raised."""
        try:
            self.store.set_item(key, json.dumps(value))
            return True
        except (StorageError, OSError, ValueError, TypeError) as e:
            err = e if isinstance(e, StorageWriteError) else StorageWriteError(str(e))
            logger.error("Failed to write %s: %s", key, err)
            return False

    def load(self, user_id: str | None, collection: str) -> Any | None:
        """Read a user's collection as parsed JSON.

        Args:
            user_id: The user's ID (None for guest)
            collection: Collection name

        Returns:
            Parsed value, or None if absent or unparseable
        """
        key = self.namespaced_key(user_id, collection)
        logger.debug("Loading %s for user: %s", collection, _short(user_id))
        return self._read(key)

    def save(self, user_id: str | None, collection: str, value: Any) -> bool:
        """Write a user's collection.

        Args:
            user_id: The user's ID (None for guest)
            collection: Collection name
            value: JSON-ready value

        Returns:
            True if successful
        """
        key = self.namespaced_key(user_id, collection)
        logger.debug("Saving %s for user: %s", collection, _short(user_id))
        return self._write(key, value)

    # ==================== Collection Operations ====================

    def _decode(self, user_id: str | None, collection: str, decoder, default):
        raw = self.load(user_id, collection)
        if raw is None:
            return default
        try:
            return decoder(raw)
        except (ValidationError, ValueError, TypeError) as e:
            logger.warning(
                "Stored %s for user %s is invalid, using defaults: %s",
                collection,
                _short(user_id),
                StorageReadError(str(e)),
            )
            return default

    def load_profile(self, user_id: str | None, default_name: str = "") -> UserProfile:
        return self._decode(
            user_id,
            PROFILE,
            lambda raw: decode_profile(raw, default_name),
            default_profile(default_name),
        )

    def load_foods(self, user_id: str | None) -> list[FoodItem]:
        return self._decode(user_id, FOODS, decode_foods, [])

    def load_exercises(self, user_id: str | None) -> list[ExerciseItem]:
        return self._decode(user_id, EXERCISES, decode_exercises, [])

    def load_water_logs(self, user_id: str | None) -> WaterLog:
        return self._decode(user_id, WATER_LOGS, decode_water_logs, {})

    def load_user_data(self, user: User) -> UserData:
        """Load all four collections for a user, degrading each to its default."""
        logger.info("Loading data for user: %s", _short(user.id))
        return UserData(
            profile=self.load_profile(user.id, user.name),
            foods=self.load_foods(user.id),
            exercises=self.load_exercises(user.id),
            water_logs=self.load_water_logs(user.id),
        )

    def save_collection(self, user_id: str, data: UserData, collection: str) -> bool:
        """Encode one collection of a snapshot and write it."""
        return self.save(user_id, collection, encode_collection(data, collection))

    # ==================== Session Operations ====================

    def load_session_user(self) -> User | None:
        """Fetch the persisted session identity, if any."""
        raw = self._read(self._singleton_key(SESSION_KEY))
        if raw is None:
            return None
        try:
            return User.model_validate(raw)
        except ValidationError as e:
            logger.warning("Stored session user is invalid: %s", StorageReadError(str(e)))
            return None

    def save_session_user(self, user: User) -> bool:
        return self._write(self._singleton_key(SESSION_KEY), user.model_dump(mode="json"))

    def clear_session_user(self) -> None:
        try:
            self.store.remove_item(self._singleton_key(SESSION_KEY))
        except (StorageError, OSError) as e:
            logger.error("Failed to clear session user: %s", e)

    # ==================== Registered Users ====================

    def load_registered_users(self) -> list[User]:
        """Fetch every registered user (empty if none or corrupt)."""
        raw = self._read(self._singleton_key(REGISTERED_USERS_KEY))
        if raw is None:
            return []
        try:
            return _users_adapter.validate_python(raw)
        except ValidationError as e:
            logger.warning("Stored user list is invalid: %s", StorageReadError(str(e)))
            return []

    def save_registered_users(self, users: list[User]) -> bool:
        return self._write(
            self._singleton_key(REGISTERED_USERS_KEY),
            [u.model_dump(mode="json") for u in users],
        )
