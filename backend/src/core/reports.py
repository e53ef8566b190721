"""Report Generation - Pure functions for dashboard views.

All functions are pure: same input always produces same output, no side effects.
"""

from datetime import date, timedelta

from .models import DashboardSummary, MacroTotals, UserData, WaterDay, WaterLog
from .macros import (
    DEFAULT_CALORIE_TARGET,
    DEFAULT_WATER_GOAL_ML,
    calorie_progress,
    macro_totals,
    total_calories_in,
    total_calories_out,
    water_progress,
)


WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
TODAY_LABEL = "Today"


def water_today(water_logs: WaterLog, reference_date: date) -> int:
    """Millilitres logged on the reference date (0 if nothing logged)."""
    return water_logs.get(reference_date.isoformat(), 0)


def water_history(water_logs: WaterLog, reference_date: date, days: int = 7) -> list[WaterDay]:
    """Generate the trailing water history ending at the reference date.

    Args:
        water_logs: Mapping of ISO date to millilitres
        reference_date: Last day of the window (inclusive)
        days: Window length

    Returns:
        Exactly ``days`` entries, oldest first. Each is labeled with its
        weekday abbreviation except the last, which is labeled "Today".
        Days without a log have amount 0.
    """
    history = []
    for offset in range(days - 1, -1, -1):
        day = reference_date - timedelta(days=offset)
        label = TODAY_LABEL if offset == 0 else WEEKDAY_LABELS[day.weekday()]
        history.append(WaterDay(label=label, amount=water_logs.get(day.isoformat(), 0)))
    return history


def build_dashboard(
    data: UserData,
    reference_date: date,
    calorie_target: int = DEFAULT_CALORIE_TARGET,
    water_goal: int = DEFAULT_WATER_GOAL_ML,
) -> DashboardSummary:
    """Generate the dashboard aggregates for a user's snapshot.

    Args:
        data: The user's collections
        reference_date: Day treated as "today"
        calorie_target: Daily calorie target
        water_goal: Daily water goal in millilitres

    Returns:
        DashboardSummary with calorie balance, macros and water progress
    """
    calories_in = total_calories_in(data.foods)
    calories_out = total_calories_out(data.exercises)
    today_water = water_today(data.water_logs, reference_date)
    macros = macro_totals(data.foods)

    return DashboardSummary(
        total_calories_in=calories_in,
        total_calories_out=calories_out,
        net_calories=calories_in - calories_out,
        calorie_target=calorie_target,
        calorie_progress=round(calorie_progress(calories_in, calorie_target), 1),
        macros=MacroTotals(
            protein=round(macros.protein, 1),
            carbs=round(macros.carbs, 1),
            fats=round(macros.fats, 1),
        ),
        water_today=today_water,
        water_goal=water_goal,
        water_progress=round(water_progress(today_water, water_goal), 1),
        water_history=water_history(data.water_logs, reference_date),
    )
