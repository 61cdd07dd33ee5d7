"""Nutrition statistics over logged meals."""

import logging
import math
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import Protocol
from zoneinfo import ZoneInfo

from meal_tracker.domain.meals import MealRecord
from meal_tracker.domain.statistics import (
    DateRange,
    EatingWindow,
    EstimatedMetric,
    NutritionStatisticsReport,
    NutritionTotals,
    StatsPeriod,
    WeeklyTrends,
)
from meal_tracker.errors import InvalidPeriodError, StatisticsError

CALORIE_GOAL = 2000
MEALS_PER_DAY = 3
BODY_WEIGHT_KG = 70
PROTEIN_G_PER_KG = 1.6
PROTEIN_TARGET_G = BODY_WEIGHT_KG * PROTEIN_G_PER_KG
MIN_FASTING_HOURS = 8
MAX_FASTING_HOURS = 24
DEFAULT_FASTING_HOURS = 12
DEFAULT_SCORE = 50
SECONDS_PER_DAY = 86400
SECONDS_PER_HOUR = 3600

_PERIOD_DAYS = {StatsPeriod.WEEK: 7, StatsPeriod.MONTH: 30}

_logger = logging.getLogger(__name__)


class StatisticsRepository(Protocol):
    """Persistence interface for statistics queries."""

    def list_meals_between(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[MealRecord]:
        """Return meals created within the range, oldest first."""


@dataclass
class StatisticsService:
    """Builds nutrition reports for a user and period."""

    repository: StatisticsRepository
    timezone_name: str = "UTC"

    def get_nutrition_statistics(
        self,
        user_id: str,
        period: StatsPeriod | str = StatsPeriod.WEEK,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> NutritionStatisticsReport:
        """Return the statistics report for the requested period."""
        date_range = resolve_period(period, start, end, now=datetime.now(tz=UTC))
        try:
            meals = self.repository.list_meals_between(
                user_id, date_range.start, date_range.end
            )
            _logger.info(
                "Statistics input: user_id=%s period=%s meals=%s",
                user_id,
                period,
                len(meals),
            )
            if not meals:
                return default_report()
            return build_report(meals, date_range, ZoneInfo(self.timezone_name))
        except Exception as exc:
            _logger.exception("Failed to generate statistics for user %s", user_id)
            raise StatisticsError("Failed to generate nutrition statistics") from exc

    def generate_insights(self, user_id: str) -> list[str]:
        """Return recommendations derived from the weekly report."""
        report = self.get_nutrition_statistics(user_id, StatsPeriod.WEEK)
        return _recommendations(
            avg_protein=report.average_protein_daily,
            avg_fiber=report.average_fiber_daily,
            score=report.nutrition_score,
        )

    def generate_text_report(
        self,
        user_id: str,
        period: StatsPeriod | str = StatsPeriod.WEEK,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> str:
        """Render the period report as plain text."""
        report = self.get_nutrition_statistics(user_id, period, start=start, end=end)
        return format_text_report(
            user_id, StatsPeriod(period), report, datetime.now(tz=UTC)
        )


def resolve_period(
    period: StatsPeriod | str,
    start: datetime | None,
    end: datetime | None,
    now: datetime,
) -> DateRange:
    """Translate a period selector into a concrete window ending now."""
    try:
        selected = StatsPeriod(period)
    except ValueError as exc:
        raise InvalidPeriodError(f"Unknown statistics period: {period}") from exc
    if selected is StatsPeriod.CUSTOM:
        if start is None or end is None:
            raise InvalidPeriodError("Custom period requires start and end")
        # Bounds without an offset are read as UTC.
        start = start if start.tzinfo else start.replace(tzinfo=UTC)
        end = end if end.tzinfo else end.replace(tzinfo=UTC)
        if end <= start:
            raise InvalidPeriodError("Custom period end must be after start")
        return DateRange(start=start, end=end)
    return DateRange(start=now - timedelta(days=_PERIOD_DAYS[selected]), end=now)


def default_report() -> NutritionStatisticsReport:
    """Report returned when the window has no meals."""
    unavailable = EstimatedMetric(value=0, status="unavailable")
    return NutritionStatisticsReport(
        average_calories_daily=0,
        calorie_goal_achievement_percent=0,
        average_protein_daily=0,
        average_carbs_daily=0,
        average_fats_daily=0,
        average_fiber_daily=0,
        average_sodium_daily=0,
        average_sugar_daily=0,
        average_fluids_daily=unavailable,
        processed_food_percentage=unavailable,
        alcohol_caffeine_intake=unavailable,
        vegetable_fruit_intake=unavailable,
        full_logging_percentage=0,
        allergen_alerts=[],
        health_risk_percentage=0,
        average_eating_hours=EatingWindow(start="08:00", end="20:00"),
        intermittent_fasting_hours=DEFAULT_FASTING_HOURS,
        missed_meals_alert=0,
        nutrition_score=DEFAULT_SCORE,
        weekly_trends=WeeklyTrends(),
        insights=["Start logging meals to see personalized insights"],
        recommendations=["Begin by logging your meals regularly"],
    )


def build_report(
    meals: list[MealRecord], date_range: DateRange, tz: ZoneInfo
) -> NutritionStatisticsReport:
    """Aggregate a non-empty list of meals into a report."""
    elapsed = (date_range.end - date_range.start).total_seconds()
    total_days = max(1, math.ceil(elapsed / SECONDS_PER_DAY))
    totals = sum_nutrition(meals)
    meal_count = len(meals)

    avg_calories = totals.calories / total_days
    avg_protein = totals.protein / total_days
    avg_carbs = totals.carbs / total_days
    avg_fats = totals.fats / total_days
    avg_fiber = totals.fiber / total_days
    avg_sugar = totals.sugar / total_days
    avg_sodium = totals.sodium / total_days

    score = nutrition_score(avg_calories, avg_protein, avg_fiber, avg_sodium)
    expected_meals = total_days * MEALS_PER_DAY

    return NutritionStatisticsReport(
        average_calories_daily=round_half_up(avg_calories),
        calorie_goal_achievement_percent=round_half_up(
            min(100.0, avg_calories / CALORIE_GOAL * 100)
        ),
        average_protein_daily=round_half_up(avg_protein),
        average_carbs_daily=round_half_up(avg_carbs),
        average_fats_daily=round_half_up(avg_fats),
        average_fiber_daily=round_half_up(avg_fiber),
        average_sodium_daily=round_half_up(avg_sodium),
        average_sugar_daily=round_half_up(avg_sugar),
        # Not derivable from logged meals yet.
        average_fluids_daily=EstimatedMetric(value=2000, status="estimated"),
        processed_food_percentage=EstimatedMetric(value=25, status="estimated"),
        alcohol_caffeine_intake=EstimatedMetric(value=0, status="unavailable"),
        vegetable_fruit_intake=EstimatedMetric(value=60, status="estimated"),
        full_logging_percentage=min(100.0, meal_count / expected_meals * 100),
        allergen_alerts=[],
        health_risk_percentage=25 if score < 60 else 5,  # noqa: PLR2004
        average_eating_hours=eating_window(meals, tz),
        intermittent_fasting_hours=intermittent_fasting_hours(meals, tz),
        missed_meals_alert=max(0, expected_meals - meal_count),
        nutrition_score=score,
        weekly_trends=weekly_trends(meals, tz),
        insights=_insights(
            avg_calories=avg_calories,
            avg_protein=avg_protein,
            avg_fiber=avg_fiber,
            meal_count=meal_count,
            total_days=total_days,
        ),
        recommendations=_recommendations(
            avg_protein=avg_protein,
            avg_fiber=avg_fiber,
            score=score,
        ),
    )


def sum_nutrition(meals: list[MealRecord]) -> NutritionTotals:
    """Sum nutrition fields, counting missing values as zero."""
    total = NutritionTotals()
    for meal in meals:
        total = NutritionTotals(
            calories=total.calories + (meal.calories or 0),
            protein=total.protein + (meal.protein_g or 0),
            carbs=total.carbs + (meal.carbs_g or 0),
            fats=total.fats + (meal.fats_g or 0),
            fiber=total.fiber + (meal.fiber_g or 0),
            sugar=total.sugar + (meal.sugar_g or 0),
            sodium=total.sodium + (meal.sodium_mg or 0),
        )
    return total


def nutrition_score(
    avg_calories: float, avg_protein: float, avg_fiber: float, avg_sodium: float
) -> int:
    """Heuristic 0-100 score with independent per-nutrient deductions."""
    score = 100

    if avg_calories < 1200 or avg_calories > 2800:  # noqa: PLR2004
        score -= 20
    elif avg_calories < 1600 or avg_calories > 2400:  # noqa: PLR2004
        score -= 10

    if avg_protein < PROTEIN_TARGET_G * 0.7:
        score -= 15
    elif avg_protein < PROTEIN_TARGET_G * 0.9:
        score -= 5

    if avg_fiber < 15:  # noqa: PLR2004
        score -= 15
    elif avg_fiber < 20:  # noqa: PLR2004
        score -= 5

    if avg_sodium > 3000:  # noqa: PLR2004
        score -= 10
    elif avg_sodium > 2500:  # noqa: PLR2004
        score -= 5

    return max(0, min(100, score))


def weekly_trends(meals: list[MealRecord], tz: ZoneInfo) -> WeeklyTrends:
    """Sum macros per weekday, Sunday first."""
    trends = WeeklyTrends()
    for meal in meals:
        # isoweekday(): Monday=1 .. Sunday=7
        index = meal.created_at.astimezone(tz).isoweekday() % 7
        trends.calories[index] += meal.calories or 0
        trends.protein[index] += meal.protein_g or 0
        trends.carbs[index] += meal.carbs_g or 0
        trends.fats[index] += meal.fats_g or 0
    return trends


def eating_window(meals: list[MealRecord], tz: ZoneInfo) -> EatingWindow:
    """Return the earliest and latest time of day a meal was logged."""
    if not meals:
        return EatingWindow(start="08:00", end="20:00")
    hours = [_hour_of_day(meal.created_at.astimezone(tz)) for meal in meals]
    return EatingWindow(start=_format_hour(min(hours)), end=_format_hour(max(hours)))


def intermittent_fasting_hours(meals: list[MealRecord], tz: ZoneInfo) -> int:
    """Average overnight gap between consecutive logged days."""
    if len(meals) < 2:  # noqa: PLR2004
        return DEFAULT_FASTING_HOURS

    by_date: dict[date, list[datetime]] = {}
    for meal in meals:
        local = meal.created_at.astimezone(tz)
        by_date.setdefault(local.date(), []).append(local)

    dates = sorted(by_date)
    gaps: list[float] = []
    for current, following in zip(dates, dates[1:], strict=False):
        last_meal = max(by_date[current])
        first_meal = min(by_date[following])
        hours = (first_meal - last_meal).total_seconds() / SECONDS_PER_HOUR
        if MIN_FASTING_HOURS < hours < MAX_FASTING_HOURS:
            gaps.append(hours)

    if not gaps:
        return DEFAULT_FASTING_HOURS
    return round_half_up(sum(gaps) / len(gaps))


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up."""
    return math.floor(value + 0.5)


def format_text_report(
    user_id: str,
    period: StatsPeriod,
    report: NutritionStatisticsReport,
    generated_at: datetime,
) -> str:
    """Plain-text summary of a statistics report."""
    lines = [
        f"Nutrition Report for User: {user_id}",
        f"Period: {period.value}",
        f"Generated: {generated_at.isoformat()}",
        "",
        f"Nutrition score: {report.nutrition_score}/100",
        f"Average calories: {report.average_calories_daily} kcal/day "
        f"({report.calorie_goal_achievement_percent}% of goal)",
        f"Average protein: {report.average_protein_daily} g/day",
        f"Average carbs: {report.average_carbs_daily} g/day",
        f"Average fats: {report.average_fats_daily} g/day",
        f"Average fiber: {report.average_fiber_daily} g/day",
        f"Average sugar: {report.average_sugar_daily} g/day",
        f"Average sodium: {report.average_sodium_daily} mg/day",
        f"Eating window: {report.average_eating_hours.start}"
        f"-{report.average_eating_hours.end}",
        f"Fasting: {report.intermittent_fasting_hours} h",
        f"Logging completeness: {report.full_logging_percentage:.0f}%",
        "",
        "Insights:",
        *[f"- {insight}" for insight in report.insights],
        "",
        "Recommendations:",
        *[f"- {item}" for item in report.recommendations],
    ]
    return "\n".join(lines) + "\n"


def _hour_of_day(moment: datetime) -> float:
    return moment.hour + moment.minute / 60


def _format_hour(hour: float) -> str:
    hours, minutes = divmod(round_half_up(hour * 60), 60)
    return f"{hours:02d}:{minutes:02d}"


def _insights(
    *,
    avg_calories: float,
    avg_protein: float,
    avg_fiber: float,
    meal_count: int,
    total_days: int,
) -> list[str]:
    insights: list[str] = []

    if avg_calories < 1500:  # noqa: PLR2004
        insights.append(
            "Your calorie intake appears low. "
            "Consider adding healthy, nutrient-dense foods."
        )
    elif avg_calories > 2500:  # noqa: PLR2004
        insights.append(
            "Your calorie intake is quite high. "
            "Focus on portion control and nutrient density."
        )
    else:
        insights.append("Your calorie intake is within a reasonable range.")

    if avg_protein < 80:  # noqa: PLR2004
        insights.append(
            "Consider increasing protein intake with lean meats, fish, eggs, "
            "or plant-based options."
        )
    elif avg_protein > 150:  # noqa: PLR2004
        insights.append(
            "Your protein intake is quite high. "
            "Ensure you're balancing with other nutrients."
        )
    else:
        insights.append("Your protein intake looks good for maintaining muscle mass.")

    meals_per_day = meal_count / total_days
    if meals_per_day < 2:  # noqa: PLR2004
        insights.append(
            "Try to eat more regularly throughout the day for better energy levels."
        )
    elif meals_per_day > 5:  # noqa: PLR2004
        insights.append(
            "You're eating frequently, which can be good for metabolism "
            "if portions are controlled."
        )

    if avg_fiber < 20:  # noqa: PLR2004
        insights.append(
            "Increase fiber intake with more vegetables, fruits, and whole grains."
        )

    return insights


def _recommendations(
    *,
    avg_protein: float,
    avg_fiber: float,
    score: int,
) -> list[str]:
    if score < 60:  # noqa: PLR2004
        recommendations = [
            "Focus on eating more whole, unprocessed foods",
            "Try to include vegetables in every meal",
            "Consider consulting with a nutritionist",
        ]
    elif score < 80:  # noqa: PLR2004
        recommendations = [
            "You're doing well! Try to increase vegetable variety",
            "Consider adding more fiber-rich foods",
            "Stay consistent with your healthy eating patterns",
        ]
    else:
        recommendations = [
            "Excellent nutrition habits! Keep up the great work",
            "Consider sharing your success strategies with others",
            "Focus on maintaining these healthy patterns long-term",
        ]

    if avg_protein < 100:  # noqa: PLR2004
        recommendations.append("Add a protein source to each meal and snack")
    if avg_fiber < 25:  # noqa: PLR2004
        recommendations.append(
            "Include more beans, lentils, and whole grains in your diet"
        )
    return recommendations
