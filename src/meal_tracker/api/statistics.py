"""Nutrition statistics endpoints."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from meal_tracker.api.deps import require_user_id
from meal_tracker.domain.statistics import (
    EstimatedMetric,
    NutritionStatisticsReport,
    StatsPeriod,
)

if TYPE_CHECKING:
    from meal_tracker.containers import AppContainer

router = APIRouter(prefix="/api/statistics", tags=["statistics"])


@router.get("")
async def nutrition_statistics(
    request: Request,
    period: StatsPeriod = StatsPeriod.WEEK,
    start: datetime | None = None,
    end: datetime | None = None,
    user_id: str = Depends(require_user_id),
) -> dict[str, object]:
    """Return the nutrition report for a period."""
    container: AppContainer = request.app.state.container
    report = container.statistics_service.get_nutrition_statistics(
        user_id, period, start=start, end=end
    )
    return {"success": True, "data": statistics_payload(report)}


@router.get("/insights")
async def insights(
    request: Request, user_id: str = Depends(require_user_id)
) -> dict[str, object]:
    """Return recommendations based on the last week."""
    container: AppContainer = request.app.state.container
    return {
        "success": True,
        "data": container.statistics_service.generate_insights(user_id),
    }


@router.get("/report", response_class=PlainTextResponse)
async def text_report(
    request: Request,
    period: StatsPeriod = StatsPeriod.WEEK,
    start: datetime | None = None,
    end: datetime | None = None,
    user_id: str = Depends(require_user_id),
) -> PlainTextResponse:
    """Return the period report as a downloadable text file."""
    container: AppContainer = request.app.state.container
    body = container.statistics_service.generate_text_report(
        user_id, period, start=start, end=end
    )
    return PlainTextResponse(
        body,
        headers={
            "Content-Disposition": f'attachment; filename="nutrition-{period}.txt"'
        },
    )


def statistics_payload(report: NutritionStatisticsReport) -> dict[str, object]:
    """Serialize a report with the client's field names."""
    return {
        "averageCaloriesDaily": report.average_calories_daily,
        "calorieGoalAchievementPercent": report.calorie_goal_achievement_percent,
        "averageProteinDaily": report.average_protein_daily,
        "averageCarbsDaily": report.average_carbs_daily,
        "averageFatsDaily": report.average_fats_daily,
        "averageFiberDaily": report.average_fiber_daily,
        "averageSodiumDaily": report.average_sodium_daily,
        "averageSugarDaily": report.average_sugar_daily,
        "averageFluidsDaily": _metric(report.average_fluids_daily),
        "processedFoodPercentage": _metric(report.processed_food_percentage),
        "alcoholCaffeineIntake": _metric(report.alcohol_caffeine_intake),
        "vegetableFruitIntake": _metric(report.vegetable_fruit_intake),
        "fullLoggingPercentage": report.full_logging_percentage,
        "allergenAlerts": report.allergen_alerts,
        "healthRiskPercentage": report.health_risk_percentage,
        "averageEatingHours": {
            "start": report.average_eating_hours.start,
            "end": report.average_eating_hours.end,
        },
        "intermittentFastingHours": report.intermittent_fasting_hours,
        "missedMealsAlert": report.missed_meals_alert,
        "nutritionScore": report.nutrition_score,
        "weeklyTrends": {
            "calories": report.weekly_trends.calories,
            "protein": report.weekly_trends.protein,
            "carbs": report.weekly_trends.carbs,
            "fats": report.weekly_trends.fats,
        },
        "insights": report.insights,
        "recommendations": report.recommendations,
    }


def _metric(metric: EstimatedMetric) -> dict[str, object]:
    return {"value": metric.value, "status": metric.status}
