"""Collection Schemas - Versioned encode/decode for per-user collections.

All functions are pure. Decoders raise ``ValueError`` (pydantic's
``ValidationError`` included) when stored data does not match its schema;
callers decide how to degrade.
"""

from datetime import date
from typing import Any

from pydantic import TypeAdapter

from .models import ExerciseItem, FoodItem, UserData, UserProfile, WaterLog


PROFILE = "profile"
FOODS = "foods"
EXERCISES = "exercises"
WATER_LOGS = "water_logs"

COLLECTIONS = (PROFILE, FOODS, EXERCISES, WATER_LOGS)

SCHEMA_VERSION = 1

_foods_adapter = TypeAdapter(list[FoodItem])
_exercises_adapter = TypeAdapter(list[ExerciseItem])
_water_adapter = TypeAdapter(WaterLog)


def default_profile(name: str = "") -> UserProfile:
    """Profile used for a user with nothing stored yet."""
    return UserProfile(name=name)


def default_user_data(name: str = "") -> UserData:
    """Empty collections plus a default profile carrying the user's name."""
    return UserData(profile=default_profile(name))


def encode(value: Any) -> dict:
    """Wrap a JSON-ready value in the current schema envelope."""
    return {"version": SCHEMA_VERSION, "data": value}


def unwrap(raw: Any) -> Any:
    """Extract the payload from a stored envelope.

    A bare value (no envelope) is legacy version 0 and decodes with the same
    schema.

    Raises:
        ValueError: If the envelope declares an unknown version
    """
    if isinstance(raw, dict) and set(raw) == {"version", "data"}:
        version = raw["version"]
        if not isinstance(version, int) or version < 0 or version > SCHEMA_VERSION:
            raise ValueError(f"Unsupported schema version: {version!r}")
        return raw["data"]
    return raw


def encode_profile(profile: UserProfile) -> dict:
    return encode(profile.model_dump(mode="json"))


def encode_foods(foods: list[FoodItem]) -> dict:
    return encode([f.model_dump(mode="json") for f in foods])


def encode_exercises(exercises: list[ExerciseItem]) -> dict:
    return encode([e.model_dump(mode="json") for e in exercises])


def encode_water_logs(water_logs: WaterLog) -> dict:
    return encode(dict(water_logs))


def encode_collection(data: UserData, collection: str) -> dict:
    """Encode one collection of a snapshot by name."""
    if collection == PROFILE:
        return encode_profile(data.profile)
    if collection == FOODS:
        return encode_foods(data.foods)
    if collection == EXERCISES:
        return encode_exercises(data.exercises)
    if collection == WATER_LOGS:
        return encode_water_logs(data.water_logs)
    raise ValueError(f"Unknown collection: {collection}")


def decode_profile(raw: Any, default_name: str = "") -> UserProfile:
    """Decode a stored profile, filling missing fields with defaults.

    A stored profile without a name takes the session user's name.
    """
    data = unwrap(raw)
    if not isinstance(data, dict):
        raise ValueError("Profile must be an object")
    data = dict(data)
    if not data.get("name"):
        data["name"] = default_name
    return UserProfile.model_validate(data)


def decode_foods(raw: Any) -> list[FoodItem]:
    foods = _foods_adapter.validate_python(unwrap(raw))
    _check_unique_ids([f.id for f in foods])
    return foods


def decode_exercises(raw: Any) -> list[ExerciseItem]:
    exercises = _exercises_adapter.validate_python(unwrap(raw))
    _check_unique_ids([e.id for e in exercises])
    return exercises


def decode_water_logs(raw: Any) -> WaterLog:
    water_logs = _water_adapter.validate_python(unwrap(raw))
    for day in water_logs:
        date.fromisoformat(day)
    return water_logs


def _check_unique_ids(ids: list[str]) -> None:
    if len(set(ids)) != len(ids):
        raise ValueError("Duplicate identifiers in stored collection")
