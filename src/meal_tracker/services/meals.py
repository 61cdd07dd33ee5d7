"""Meal logging service and client payload mapping."""

import logging
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime
from typing import Protocol

from meal_tracker.domain.analysis import MealAnalysis
from meal_tracker.domain.meals import (
    DailyStats,
    MealData,
    MealFeedback,
    MealNutrition,
    MealPreferences,
    MealRecord,
)
from meal_tracker.errors import MealNotFoundError
from meal_tracker.services.analysis import AnalysisService

ANALYSIS_COMPLETED = "COMPLETED"
IMAGE_PREVIEW_CHARS = 100

_logger = logging.getLogger(__name__)


class MealRepository(Protocol):
    """Persistence interface for meals, always scoped to the owner."""

    def create_meal(
        self,
        user_id: str,
        nutrition: MealNutrition,
        image_url: str,
        analysis_status: str,
        upload_time: datetime | None = None,
    ) -> MealRecord:
        """Create a meal row and return it."""

    def get_meal(self, meal_id: int, user_id: str) -> MealRecord | None:
        """Return a meal owned by the user."""

    def list_recent_meals(self, user_id: str, limit: int) -> list[MealRecord]:
        """Return the newest meals by upload time."""

    def list_meals_on_date(self, user_id: str, day: date) -> list[MealRecord]:
        """Return meals created on a calendar date, oldest first."""

    def update_meal_nutrition(
        self, meal_id: int, user_id: str, nutrition: MealNutrition
    ) -> MealRecord:
        """Overwrite the nutrition columns of a meal."""

    def update_meal_preferences(
        self, meal_id: int, user_id: str, preferences: MealPreferences
    ) -> None:
        """Overwrite the favorite flag and feedback of a meal."""


@dataclass
class MealService:
    """Creates, edits and lists a user's meals."""

    repository: MealRepository
    analysis_service: AnalysisService
    recent_limit: int = 100

    def save_meal(
        self, user_id: str, meal_data: MealData, image_base64: str | None = None
    ) -> dict[str, object]:
        """Persist an analyzed meal."""
        image_url = (
            f"data:image/jpeg;base64,{image_base64[:IMAGE_PREVIEW_CHARS]}..."
            if image_base64
            else ""
        )
        meal = self.repository.create_meal(
            user_id=user_id,
            nutrition=MealNutrition(
                name=meal_data.name,
                calories=meal_data.calories,
                protein_g=meal_data.protein,
                carbs_g=meal_data.carbs,
                fats_g=meal_data.fat,
                fiber_g=meal_data.fiber,
                sugar_g=meal_data.sugar,
                sodium_mg=meal_data.sodium,
            ),
            image_url=image_url,
            analysis_status=ANALYSIS_COMPLETED,
        )
        _logger.info("Saved meal %s for user %s", meal.meal_id, user_id)
        return transform_meal(meal)

    def get_user_meals(self, user_id: str) -> list[dict[str, object]]:
        """Return the user's most recent meals."""
        meals = self.repository.list_recent_meals(user_id, self.recent_limit)
        return [transform_meal(meal) for meal in meals]

    def get_daily_stats(self, user_id: str, day: date) -> DailyStats:
        """Return totals for meals created on the given date."""
        meals = self.repository.list_meals_on_date(user_id, day)
        return DailyStats(
            calories=sum(meal.calories or 0 for meal in meals),
            protein=sum(meal.protein_g or 0 for meal in meals),
            carbs=sum(meal.carbs_g or 0 for meal in meals),
            fat=sum(meal.fats_g or 0 for meal in meals),
            fiber=sum(meal.fiber_g or 0 for meal in meals),
            sugar=sum(meal.sugar_g or 0 for meal in meals),
            meal_count=len(meals),
        )

    async def update_meal(
        self, user_id: str, meal_id: int, update_text: str, language: str = "english"
    ) -> dict[str, object]:
        """Revise a saved meal from a free-text correction."""
        meal = self._require_meal(meal_id, user_id)
        revised = await self.analysis_service.revise(
            _analysis_from_meal(meal), update_text, language
        )
        updated = self.repository.update_meal_nutrition(
            meal_id,
            user_id,
            MealNutrition(
                name=revised.name,
                calories=revised.calories,
                protein_g=revised.protein,
                carbs_g=revised.carbs,
                fats_g=revised.fat,
                fiber_g=revised.fiber,
                sugar_g=revised.sugar,
                sodium_mg=revised.sodium,
            ),
        )
        _logger.info("Updated meal %s for user %s", meal_id, user_id)
        return transform_meal(updated)

    def save_meal_feedback(
        self, user_id: str, meal_id: int, feedback: MealFeedback
    ) -> MealFeedback:
        """Attach ratings to a meal, replacing earlier feedback."""
        meal = self._require_meal(meal_id, user_id)
        stored = replace(feedback, submitted_at=datetime.now(tz=UTC))
        self.repository.update_meal_preferences(
            meal_id, user_id, replace(meal.preferences, feedback=stored)
        )
        return stored

    def toggle_meal_favorite(self, user_id: str, meal_id: int) -> bool:
        """Flip the favorite flag and return the new value."""
        meal = self._require_meal(meal_id, user_id)
        is_favorite = not meal.preferences.is_favorite
        self.repository.update_meal_preferences(
            meal_id, user_id, replace(meal.preferences, is_favorite=is_favorite)
        )
        return is_favorite

    def duplicate_meal(
        self, user_id: str, meal_id: int, new_date: datetime | None = None
    ) -> dict[str, object]:
        """Log a copy of an existing meal, now or at the given time."""
        original = self._require_meal(meal_id, user_id)
        duplicate = self.repository.create_meal(
            user_id=user_id,
            nutrition=MealNutrition(
                name=original.name,
                calories=original.calories,
                protein_g=original.protein_g,
                carbs_g=original.carbs_g,
                fats_g=original.fats_g,
                fiber_g=original.fiber_g,
                sugar_g=original.sugar_g,
                sodium_mg=original.sodium_mg,
            ),
            image_url=original.image_url,
            analysis_status=ANALYSIS_COMPLETED,
            upload_time=new_date or datetime.now(tz=UTC),
        )
        return transform_meal(duplicate)

    def _require_meal(self, meal_id: int, user_id: str) -> MealRecord:
        meal = self.repository.get_meal(meal_id, user_id)
        if meal is None:
            raise MealNotFoundError(meal_id)
        return meal


def transform_meal(meal: MealRecord) -> dict[str, object]:
    """Map a stored meal to the client payload.

    Carries both the storage column names and the shorter client aliases,
    with zero defaults for missing numbers.
    """
    feedback = meal.preferences.feedback or MealFeedback()
    return {
        "meal_id": meal.meal_id,
        "user_id": meal.user_id,
        "image_url": meal.image_url,
        "upload_time": meal.upload_time.isoformat(),
        "analysis_status": meal.analysis_status,
        "meal_name": meal.name,
        "calories": meal.calories,
        "protein_g": meal.protein_g,
        "carbs_g": meal.carbs_g,
        "fats_g": meal.fats_g,
        "fiber_g": meal.fiber_g,
        "sugar_g": meal.sugar_g,
        "sodium_mg": meal.sodium_mg,
        "createdAt": meal.created_at.isoformat(),
        "id": str(meal.meal_id),
        "name": meal.name or "Unknown Meal",
        "description": meal.name,
        "imageUrl": meal.image_url,
        "protein": meal.protein_g or 0,
        "carbs": meal.carbs_g or 0,
        "fat": meal.fats_g or 0,
        "fiber": meal.fiber_g or 0,
        "sugar": meal.sugar_g or 0,
        "sodium": meal.sodium_mg or 0,
        "userId": meal.user_id,
        "isFavorite": meal.preferences.is_favorite,
        "tasteRating": feedback.taste_rating,
        "satietyRating": feedback.satiety_rating,
        "energyRating": feedback.energy_rating,
        "heavinessRating": feedback.heaviness_rating,
    }


def _analysis_from_meal(meal: MealRecord) -> MealAnalysis:
    return MealAnalysis(
        name=meal.name or "Unknown",
        description=meal.name or "",
        calories=meal.calories or 0,
        protein=meal.protein_g or 0,
        carbs=meal.carbs_g or 0,
        fat=meal.fats_g or 0,
        fiber=meal.fiber_g,
        sugar=meal.sugar_g,
        sodium=meal.sodium_mg,
        confidence=85,
    )
