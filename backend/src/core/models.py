"""Core Data Models - Pydantic models for type safety.

All models are value objects with no behavior beyond validation. Legacy
camelCase keys written by the browser version of the app are accepted on input.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
import uuid


def generate_id() -> str:
    """Generate a collision-resistant identifier (random 128-bit, hex encoded)."""
    return uuid.uuid4().hex


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class ActivityLevel(str, Enum):
    SEDENTARY = "sedentary"
    MODERATE = "moderate"
    ACTIVE = "active"


class User(BaseModel):
    """A registered user. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=generate_id)
    email: str = Field(min_length=1)
    name: str = Field(default="User", description="Display name")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class UserProfile(BaseModel):
    """Body metrics and goals for a single user."""

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    name: str = ""
    age: int = Field(default=25, gt=0)
    gender: Gender = Gender.MALE
    weight: float = Field(default=70, gt=0, description="Current weight in kg")
    height: float = Field(default=170, gt=0, description="Height in cm")
    activity_level: ActivityLevel = Field(
        default=ActivityLevel.MODERATE,
        validation_alias=AliasChoices("activity_level", "activityLevel"),
    )
    target_weight: float = Field(
        default=65,
        gt=0,
        validation_alias=AliasChoices("target_weight", "targetWeight"),
        description="Target weight in kg",
    )


class RecognizedFood(BaseModel):
    """A food item as returned by image analysis, before it is logged."""

    name: str = Field(min_length=1, description="Name of the food")
    calories: float = Field(default=0, ge=0, description="Total calories")
    protein: float = Field(default=0, ge=0, description="Protein in grams")
    carbs: float = Field(default=0, ge=0, description="Carbohydrates in grams")
    fats: float = Field(default=0, ge=0, description="Fats in grams")
    portion: str = Field(default="", description="Free-text portion descriptor")


class FoodItem(RecognizedFood):
    """A single food item logged by the user."""

    id: str = Field(default_factory=generate_id)


class ExerciseItem(BaseModel):
    """A single exercise session logged by the user."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=generate_id)
    type: str = Field(min_length=1, description="Kind of exercise")
    duration: float = Field(default=0, ge=0, description="Duration in minutes")
    calories_burned: float = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("calories_burned", "caloriesBurned"),
    )


# ISO date (local day) -> millilitres logged that day
WaterLog = dict[str, Annotated[int, Field(ge=0)]]


class UserData(BaseModel):
    """Snapshot of the four per-user collections."""

    profile: UserProfile = Field(default_factory=UserProfile)
    foods: list[FoodItem] = Field(default_factory=list)
    exercises: list[ExerciseItem] = Field(default_factory=list)
    water_logs: WaterLog = Field(default_factory=dict)


class Meal(BaseModel):
    """One meal slot of a generated diet plan."""

    model_config = ConfigDict(populate_by_name=True)

    time: str
    label: str
    suggestions: list[str] = Field(default_factory=list)
    approx_calories: float = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("approx_calories", "approxCalories"),
    )


class DietPlan(BaseModel):
    """AI-generated diet plan for a profile."""

    model_config = ConfigDict(populate_by_name=True)

    daily_calories: float = Field(
        ge=0,
        validation_alias=AliasChoices("daily_calories", "dailyCalories"),
    )
    meals: list[Meal] = Field(default_factory=list)
    advice: list[str] = Field(default_factory=list)


class MacroTotals(BaseModel):
    """Per-macro sums in grams."""

    protein: float = 0
    carbs: float = 0
    fats: float = 0


class WaterDay(BaseModel):
    """One bar of the water history chart."""

    label: str
    amount: int = Field(ge=0)


class DashboardSummary(BaseModel):
    """Display-ready aggregates for the dashboard."""

    total_calories_in: float
    total_calories_out: float
    net_calories: float = Field(description="Negative if more burned than eaten")
    calorie_target: int
    calorie_progress: float = Field(ge=0, le=100)
    macros: MacroTotals
    water_today: int = Field(ge=0)
    water_goal: int
    water_progress: float = Field(ge=0, le=100)
    water_history: list[WaterDay]
