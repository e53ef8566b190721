"""Advice Parsing - Prompts and response parsing for the AI advisor.

All functions are pure. Parsers raise ``ValueError`` (pydantic's
``ValidationError`` included) when a response cannot be turned into models.
"""

import json
from typing import Any

from pydantic import TypeAdapter

from .models import DietPlan, RecognizedFood, UserProfile


IMAGE_ANALYSIS_PROMPT = (
    "Analyze this food image. Return a JSON array of food items, each with "
    "name, calories, protein, carbs, fats and portion. Use grams for macros and "
    "kcal for calories. Focus on South Asian/Bengali food if detected."
)

_recognized_adapter = TypeAdapter(list[RecognizedFood])


def build_plan_prompt(profile: UserProfile) -> str:
    """Create the diet plan prompt for a profile."""
    return (
        f"Generate a weight loss diet plan for a {profile.age}y/o {profile.gender.value}, "
        f"weight: {profile.weight:g}kg, height: {profile.height:g}cm, "
        f"target: {profile.target_weight:g}kg, activity: {profile.activity_level.value}.\n"
        "Return a JSON object with keys: dailyCalories (number), "
        "meals (array of {time, label, suggestions: [string], approxCalories}), "
        "advice (array of strings)."
    )


def extract_json(text: str) -> Any:
    """Parse JSON from a model response, tolerating markdown code fences.

    Raises:
        ValueError: If no JSON value can be parsed
    """
    cleaned = (text or "").strip()

    if "```" in cleaned:
        start = cleaned.find("```")
        start = cleaned.find("\n", start)
        end = cleaned.rfind("```")
        if start != -1 and end > start:
            cleaned = cleaned[start:end].strip()

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    # Fall back to the outermost array or object in surrounding prose,
    # trying whichever opens first
    brackets = sorted(
        (("[", "]"), ("{", "}")),
        key=lambda pair: (cleaned.find(pair[0]) == -1, cleaned.find(pair[0])),
    )
    for open_char, close_char in brackets:
        start = cleaned.find(open_char)
        end = cleaned.rfind(close_char)
        if start != -1 and end > start:
            try:
                return json.loads(cleaned[start:end + 1])
            except json.JSONDecodeError:
                continue

    raise ValueError("Response did not contain valid JSON")


def parse_recognized_foods(text: str) -> list[RecognizedFood]:
    """Parse an image analysis response into recognized food items.

    A single object is accepted as a one-item list. An empty response
    yields an empty list.
    """
    if not (text or "").strip():
        return []
    data = extract_json(text)
    if isinstance(data, dict):
        data = [data]
    return _recognized_adapter.validate_python(data)


def parse_diet_plan(text: str) -> DietPlan:
    """Parse a plan generation response into a DietPlan."""
    data = extract_json(text)
    if not isinstance(data, dict):
        raise ValueError("Diet plan response must be a JSON object")
    return DietPlan.model_validate(data)
