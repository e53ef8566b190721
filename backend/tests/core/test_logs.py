"""Unit tests for log mutations - pure functions, no mocks needed."""

from datetime import date

import pytest

from src.core.errors import DuplicateEntryError
from src.core.logs import (
    accept_recognized,
    add_exercise,
    add_foods,
    adjust_water,
    delete_exercise,
    delete_food,
    update_food,
    update_profile,
)
from src.core.models import ExerciseItem, FoodItem, RecognizedFood, UserProfile


DAY = date(2024, 12, 28)


def _foods():
    return [
        FoodItem(id="f1", name="Rice", calories=200),
        FoodItem(id="f2", name="Dal", calories=150),
        FoodItem(id="f3", name="Fish", calories=250),
    ]


class TestFoodMutations:
    """Tests for add/update/delete of food items."""

    def test_add_appends_in_order(self):
        """New items go to the end of the log."""
        foods = add_foods(_foods(), [FoodItem(id="f4", name="Curd", calories=60)])
        assert [f.id for f in foods] == ["f1", "f2", "f3", "f4"]

    def test_add_does_not_modify_input(self):
        """The original list is left untouched."""
        original = _foods()
        add_foods(original, [FoodItem(id="f4", name="Curd", calories=60)])
        assert len(original) == 3

    def test_add_duplicate_id_rejected(self):
        """An ID already in the log is rejected."""
        with pytest.raises(DuplicateEntryError):
            add_foods(_foods(), [FoodItem(id="f2", name="Again", calories=1)])

    def test_add_duplicate_within_batch_rejected(self):
        """Two new items with the same ID are rejected."""
        batch = [FoodItem(id="x", name="A", calories=1), FoodItem(id="x", name="B", calories=1)]
        with pytest.raises(DuplicateEntryError):
            add_foods([], batch)

    def test_update_replaces_matching_entry(self):
        """The entry with the same ID is replaced in place."""
        edited = FoodItem(id="f2", name="Masoor Dal", calories=170, portion="1 bowl")
        foods = update_food(_foods(), edited)
        assert [f.id for f in foods] == ["f1", "f2", "f3"]
        assert foods[1] == edited

    def test_update_unknown_id_is_noop(self):
        """Updating an unknown ID leaves the log unchanged."""
        original = _foods()
        foods = update_food(original, FoodItem(id="nope", name="X", calories=1))
        assert foods == original

    def test_delete_removes_one_and_keeps_order(self):
        """Deleting removes exactly one entry and preserves order."""
        foods = delete_food(_foods(), "f2")
        assert [f.id for f in foods] == ["f1", "f3"]

    def test_delete_unknown_id_is_noop(self):
        """Deleting an unknown ID leaves the log unchanged."""
        original = _foods()
        assert delete_food(original, "nope") == original

    def test_accept_recognized_assigns_ids(self):
        """Recognized foods get distinct fresh IDs."""
        recognized = [
            RecognizedFood(name="Rice", calories=200),
            RecognizedFood(name="Rice", calories=200),
        ]
        foods = accept_recognized(recognized)
        assert len({f.id for f in foods}) == 2
        assert foods[0].name == "Rice"


class TestExerciseMutations:
    """Tests for add/delete of exercise items."""

    def test_add_and_delete(self):
        """Exercises are appended and removed by ID."""
        run = ExerciseItem(id="e1", type="Run", duration=30, calories_burned=300)
        swim = ExerciseItem(id="e2", type="Swim", duration=20, calories_burned=200)
        exercises = add_exercise(add_exercise([], run), swim)
        assert [e.id for e in exercises] == ["e1", "e2"]
        assert [e.id for e in delete_exercise(exercises, "e1")] == ["e2"]

    def test_delete_unknown_id_is_noop(self):
        """Deleting an unknown ID leaves the log unchanged."""
        run = ExerciseItem(id="e1", type="Run", duration=30, calories_burned=300)
        assert delete_exercise([run], "nope") == [run]

    def test_add_duplicate_id_rejected(self):
        """An ID already in the log is rejected."""
        run = ExerciseItem(id="e1", type="Run", duration=30, calories_burned=300)
        with pytest.raises(DuplicateEntryError):
            add_exercise([run], run)


class TestAdjustWater:
    """Tests for adjust_water."""

    def test_adds_to_empty_day(self):
        """First log of the day starts from zero."""
        assert adjust_water({}, 250, DAY) == {"2024-12-28": 250}

    def test_clamps_at_zero(self):
        """250 + 500 - 1000 is clamped to 0."""
        log = {}
        for delta in (250, 500, -1000):
            log = adjust_water(log, delta, DAY)
        assert log["2024-12-28"] == 0

    def test_running_sum_never_negative(self):
        """Every intermediate amount is the clamped running sum."""
        log = {}
        expected = 0
        for delta in (500, -200, -400, 250, 250, -100, 1000):
            log = adjust_water(log, delta, DAY)
            expected = max(0, expected + delta)
            assert log["2024-12-28"] == expected
            assert log["2024-12-28"] >= 0

    def test_other_days_untouched(self):
        """Only the reference day changes."""
        log = adjust_water({"2024-12-27": 1500}, 500, DAY)
        assert log == {"2024-12-27": 1500, "2024-12-28": 500}


class TestUpdateProfile:
    """Tests for update_profile."""

    def test_partial_update(self):
        """Only the given fields change."""
        profile = update_profile(UserProfile(name="Alice"), {"weight": 62.5, "activity_level": "active"})
        assert profile.name == "Alice"
        assert profile.weight == 62.5
        assert profile.activity_level.value == "active"

    def test_invalid_value_rejected(self):
        """Invalid values raise instead of being stored."""
        with pytest.raises(ValueError):
            update_profile(UserProfile(), {"age": -3})

    def test_unknown_field_rejected(self):
        """Unknown fields raise."""
        with pytest.raises(ValueError):
            update_profile(UserProfile(), {"shoe_size": 42})
