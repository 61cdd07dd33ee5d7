"""Domain models for logged meals."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class MealFeedback:
    """User ratings attached to a meal after eating it."""

    taste_rating: int = 0
    satiety_rating: int = 0
    energy_rating: int = 0
    heaviness_rating: int = 0
    submitted_at: datetime | None = None


@dataclass(frozen=True)
class MealPreferences:
    """Optional per-meal user state kept outside the nutrition fields."""

    is_favorite: bool = False
    feedback: MealFeedback | None = None


@dataclass(frozen=True)
class MealRecord:
    """Stored meal row."""

    meal_id: int
    user_id: str
    name: str | None
    image_url: str
    analysis_status: str
    created_at: datetime
    upload_time: datetime
    calories: float | None = None
    protein_g: float | None = None
    carbs_g: float | None = None
    fats_g: float | None = None
    fiber_g: float | None = None
    sugar_g: float | None = None
    sodium_mg: float | None = None
    preferences: MealPreferences = field(default_factory=MealPreferences)


@dataclass(frozen=True)
class MealData:
    """Nutrition payload used to create a meal."""

    name: str
    calories: float
    protein: float
    carbs: float
    fat: float
    description: str | None = None
    fiber: float | None = None
    sugar: float | None = None
    sodium: float | None = None


@dataclass(frozen=True)
class MealNutrition:
    """Nutrition columns written on create and update."""

    name: str | None
    calories: float | None
    protein_g: float | None
    carbs_g: float | None
    fats_g: float | None
    fiber_g: float | None
    sugar_g: float | None
    sodium_mg: float | None


@dataclass(frozen=True)
class DailyStats:
    """Totals for all meals logged on one date."""

    calories: float
    protein: float
    carbs: float
    fat: float
    fiber: float
    sugar: float
    meal_count: int
