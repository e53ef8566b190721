"""Log Mutations - Pure functions over food, exercise and water collections.

Every function returns a new collection; inputs are never modified.
"""

from datetime import date
from typing import Any

from .errors import DuplicateEntryError
from .models import ExerciseItem, FoodItem, RecognizedFood, UserProfile, WaterLog


def accept_recognized(items: list[RecognizedFood]) -> list[FoodItem]:
    """Turn image analysis results into loggable food items with fresh IDs."""
    return [FoodItem(**item.model_dump()) for item in items]


def add_foods(foods: list[FoodItem], items: list[FoodItem]) -> list[FoodItem]:
    """Append food items to the end of the log.

    Raises:
        DuplicateEntryError: If an item's ID is already in the log
    """
    _ensure_new_ids([f.id for f in foods], [i.id for i in items])
    return [*foods, *items]


def update_food(foods: list[FoodItem], item: FoodItem) -> list[FoodItem]:
    """Replace the entry with the same ID.

    An unknown ID leaves the log unchanged; edits are only offered on
    existing entries.
    """
    return [item if f.id == item.id else f for f in foods]


def delete_food(foods: list[FoodItem], food_id: str) -> list[FoodItem]:
    return [f for f in foods if f.id != food_id]


def add_exercise(exercises: list[ExerciseItem], item: ExerciseItem) -> list[ExerciseItem]:
    """Append an exercise entry.

    Raises:
        DuplicateEntryError: If the item's ID is already in the log
    """
    _ensure_new_ids([e.id for e in exercises], [item.id])
    return [*exercises, item]


def delete_exercise(exercises: list[ExerciseItem], exercise_id: str) -> list[ExerciseItem]:
    return [e for e in exercises if e.id != exercise_id]


def adjust_water(water_logs: WaterLog, delta: int, reference_date: date) -> WaterLog:
    """Add a signed delta to a day's water total, clamped at zero.

    Args:
        water_logs: Current mapping of ISO date to millilitres
        delta: Millilitres to add (negative to remove)
        reference_date: Day to adjust

    Returns:
        New mapping with the adjusted day
    """
    day = reference_date.isoformat()
    updated = dict(water_logs)
    updated[day] = max(0, updated.get(day, 0) + int(delta))
    return updated


def update_profile(profile: UserProfile, changes: dict[str, Any]) -> UserProfile:
    """Apply field changes to a profile, re-validating the result.

    Raises:
        ValueError: If a change names an unknown field or fails validation
    """
    unknown = set(changes) - set(UserProfile.model_fields)
    if unknown:
        raise ValueError(f"Unknown profile fields: {', '.join(sorted(unknown))}")
    data = profile.model_dump()
    data.update(changes)
    return UserProfile.model_validate(data)


def _ensure_new_ids(existing: list[str], incoming: list[str]) -> None:
    seen = set(existing)
    for item_id in incoming:
        if item_id in seen:
            raise DuplicateEntryError(f"Duplicate entry id: {item_id}")
        seen.add(item_id)
