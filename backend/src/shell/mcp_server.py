"""MCP Server - Tool definitions for assistant integration.

Defines the MCP tools an assistant can invoke to log food, exercise and water
for the user currently logged into the app, and to read their dashboard.
"""

import logging

from mcp.server.fastmcp import FastMCP

from ..core.errors import AdvisoryError, CredentialMissingError, DuplicateEntryError
from ..core.models import ExerciseItem, FoodItem
from .context import get_context
from .session import SessionManager


logger = logging.getLogger(__name__)

mcp = FastMCP(
    "healthygrowth",
    instructions="""HealthyGrowth - Personal health tracking assistant.

Use these tools to log food, exercise and water for the user who is logged
into the app, and to read their dashboard.

After logging anything, show the updated dashboard figures.
Water is logged in millilitres; use a negative amount to correct a mistake.""",
    stateless_http=True,
)


def get_session() -> SessionManager:
    """Get the session of the logged-in user.

    Raises:
        RuntimeError: If no user's data is loaded
    """
    session = get_context().session
    if not session.is_ready:
        raise RuntimeError("No user is logged in. Log in through the app first.")
    return session


def _food_dict(food: FoodItem) -> dict:
    return {
        "id": food.id,
        "name": food.name,
        "calories": food.calories,
        "protein": food.protein,
        "carbs": food.carbs,
        "fats": food.fats,
        "portion": food.portion,
    }


def _summary(session: SessionManager) -> dict:
    summary = session.dashboard()
    return {
        "calories_in": summary.total_calories_in,
        "calories_out": summary.total_calories_out,
        "net_calories": summary.net_calories,
        "calorie_target": summary.calorie_target,
        "macros": summary.macros.model_dump(),
        "water_today": summary.water_today,
        "water_goal": summary.water_goal,
    }


# ==================== Logging Tools ====================


@mcp.tool()
def log_food(
    name: str,
    calories: float,
    protein: float = 0,
    carbs: float = 0,
    fats: float = 0,
    portion: str = "",
) -> dict:
    """Add a food item to today's log.

    Args:
        name: Name of the food (e.g., "Rice", "Dal")
        calories: Total calories for this portion
        protein: Protein in grams
        carbs: Carbohydrates in grams
        fats: Fats in grams
        portion: Portion descriptor (e.g., "1 cup")

    Returns:
        The created item with ID and updated dashboard figures
    """
    session = get_session()

    food = FoodItem(
        name=name,
        calories=calories,
        protein=protein,
        carbs=carbs,
        fats=fats,
        portion=portion,
    )
    session.add_foods([food])

    return {"food": _food_dict(food), "summary": _summary(session)}


@mcp.tool()
def update_food(
    food_id: str,
    name: str | None = None,
    calories: float | None = None,
    protein: float | None = None,
    carbs: float | None = None,
    fats: float | None = None,
    portion: str | None = None,
) -> dict:
    """Update an existing food item. Only provided fields are updated.

    Args:
        food_id: The ID of the item to update
        name: New name (optional)
        calories: New calorie count (optional)
        protein: New protein value (optional)
        carbs: New carbs value (optional)
        fats: New fats value (optional)
        portion: New portion descriptor (optional)

    Returns:
        Updated item and new dashboard figures
    """
    session = get_session()

    current = next((f for f in session.data.foods if f.id == food_id), None)
    if current is None:
        return {"error": "Food item not found."}

    updates = {
        key: value
        for key, value in {
            "name": name,
            "calories": calories,
            "protein": protein,
            "carbs": carbs,
            "fats": fats,
            "portion": portion,
        }.items()
        if value is not None
    }
    if not updates:
        return {"error": "No updates provided."}

    updated = FoodItem(**{**current.model_dump(), **updates})
    session.update_food(updated)

    return {"food": _food_dict(updated), "summary": _summary(session)}


@mcp.tool()
def delete_food(food_id: str) -> dict:
    """Delete a food item from today's log.

    Args:
        food_id: The ID of the item to delete

    Returns:
        Confirmation and updated dashboard figures
    """
    session = get_session()

    before = len(session.data.foods)
    foods = session.delete_food(food_id)
    if len(foods) == before:
        return {"error": "Food item not found."}

    return {"success": True, "items_remaining": len(foods), "summary": _summary(session)}


@mcp.tool()
def log_exercise(type: str, duration: float, calories_burned: float) -> dict:
    """Add an exercise session.

    Args:
        type: Kind of exercise (e.g., "Run", "Yoga")
        duration: Duration in minutes
        calories_burned: Estimated calories burned

    Returns:
        The created entry and updated dashboard figures
    """
    session = get_session()

    exercise = ExerciseItem(type=type, duration=duration, calories_burned=calories_burned)
    try:
        session.add_exercise(exercise)
    except DuplicateEntryError as e:
        return {"error": str(e)}

    return {"exercise": exercise.model_dump(), "summary": _summary(session)}


@mcp.tool()
def delete_exercise(exercise_id: str) -> dict:
    """Delete an exercise session.

    Args:
        exercise_id: The ID of the entry to delete

    Returns:
        Confirmation and updated dashboard figures
    """
    session = get_session()

    before = len(session.data.exercises)
    exercises = session.delete_exercise(exercise_id)
    if len(exercises) == before:
        return {"error": "Exercise not found."}

    return {"success": True, "entries_remaining": len(exercises), "summary": _summary(session)}


@mcp.tool()
def log_water(amount_ml: int) -> dict:
    """Add water to today's total.

    Args:
        amount_ml: Millilitres drunk (e.g., 250, 500). Negative values
            correct the total, which never drops below zero.

    Returns:
        Today's total and progress towards the goal
    """
    session = get_session()

    total = session.adjust_water(amount_ml)
    summary = session.dashboard()

    return {
        "water_today": total,
        "water_goal": summary.water_goal,
        "progress": summary.water_progress,
    }


# ==================== Query Tools ====================


@mcp.tool()
def get_today() -> dict:
    """Get today's food and exercise logs with the dashboard summary.

    Returns:
        Dictionary with date, food items, exercises and summary
    """
    session = get_session()
    data = session.data

    return {
        "date": session.today().isoformat(),
        "foods": [_food_dict(f) for f in data.foods],
        "exercises": [e.model_dump() for e in data.exercises],
        "summary": session.dashboard().model_dump(),
    }


@mcp.tool()
def get_water_history() -> list[dict]:
    """Get water intake for the last 7 days, oldest first.

    Returns:
        List of {label, amount} entries; the last is labeled "Today"
    """
    session = get_session()
    return [day.model_dump() for day in session.dashboard().water_history]


@mcp.tool()
def generate_diet_plan() -> dict:
    """Generate an AI diet plan from the user's profile.

    Returns:
        Diet plan with daily calories, meals and advice, or an error message
    """
    session = get_session()
    advisor = get_context().advisor

    try:
        plan = advisor.generate_plan(session.data.profile)
    except CredentialMissingError:
        return {"error": "AI features are offline (check API configuration)."}
    except AdvisoryError as e:
        return {"error": str(e)}

    return plan.model_dump()
