"""Domain models for nutrition statistics."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Literal


class StatsPeriod(StrEnum):
    """Supported statistics windows."""

    WEEK = "week"
    MONTH = "month"
    CUSTOM = "custom"


@dataclass(frozen=True)
class DateRange:
    """Closed time window used to select meals."""

    start: datetime
    end: datetime


@dataclass(frozen=True)
class EstimatedMetric:
    """Report value that is not measured from logged meals."""

    value: float
    status: Literal["estimated", "unavailable"]


@dataclass(frozen=True)
class EatingWindow:
    """Earliest and latest meal times formatted as HH:MM."""

    start: str
    end: str


@dataclass(frozen=True)
class WeeklyTrends:
    """Per-weekday sums, index 0 is Sunday."""

    calories: list[float] = field(default_factory=lambda: [0.0] * 7)
    protein: list[float] = field(default_factory=lambda: [0.0] * 7)
    carbs: list[float] = field(default_factory=lambda: [0.0] * 7)
    fats: list[float] = field(default_factory=lambda: [0.0] * 7)


@dataclass(frozen=True)
class NutritionTotals:
    """Summed nutrition fields over a set of meals."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fats: float = 0.0
    fiber: float = 0.0
    sugar: float = 0.0
    sodium: float = 0.0


@dataclass(frozen=True)
class NutritionStatisticsReport:
    """Aggregated nutrition report for one period."""

    average_calories_daily: int
    calorie_goal_achievement_percent: int
    average_protein_daily: int
    average_carbs_daily: int
    average_fats_daily: int
    average_fiber_daily: int
    average_sodium_daily: int
    average_sugar_daily: int
    average_fluids_daily: EstimatedMetric
    processed_food_percentage: EstimatedMetric
    alcohol_caffeine_intake: EstimatedMetric
    vegetable_fruit_intake: EstimatedMetric
    full_logging_percentage: float
    allergen_alerts: list[str]
    health_risk_percentage: int
    average_eating_hours: EatingWindow
    intermittent_fasting_hours: int
    missed_meals_alert: int
    nutrition_score: int
    weekly_trends: WeeklyTrends
    insights: list[str]
    recommendations: list[str]
