"""Macro Calculations - Pure functions for nutrition and energy math.

All functions are pure: same input always produces same output, no side effects.
"""

from .models import ExerciseItem, FoodItem, MacroTotals


DEFAULT_CALORIE_TARGET = 2000
DEFAULT_WATER_GOAL_ML = 2500


def total_calories_in(foods: list[FoodItem]) -> float:
    """Sum of calories over the food log."""
    return sum(f.calories for f in foods)


def total_calories_out(exercises: list[ExerciseItem]) -> float:
    """Sum of calories burned over the exercise log."""
    return sum(e.calories_burned for e in exercises)


def net_calories(foods: list[FoodItem], exercises: list[ExerciseItem]) -> float:
    """Calories eaten minus calories burned. Negative means a deficit."""
    return total_calories_in(foods) - total_calories_out(exercises)


def macro_totals(foods: list[FoodItem]) -> MacroTotals:
    """Calculate per-macro sums from a list of food items.

    Args:
        foods: Food items to total

    Returns:
        MacroTotals with protein, carbs and fats in grams
    """
    return MacroTotals(
        protein=sum(f.protein or 0 for f in foods),
        carbs=sum(f.carbs or 0 for f in foods),
        fats=sum(f.fats or 0 for f in foods),
    )


def _capped_percent(amount: float, target: float) -> float:
    if target <= 0:
        return 0.0
    return min(amount / target * 100, 100.0)


def calorie_progress(total_in: float, target: float = DEFAULT_CALORIE_TARGET) -> float:
    """Percentage of the calorie target eaten, capped at 100."""
    return _capped_percent(total_in, target)


def water_progress(today_amount: float, goal: float = DEFAULT_WATER_GOAL_ML) -> float:
    """Percentage of the water goal drunk, capped at 100."""
    return _capped_percent(today_amount, goal)
