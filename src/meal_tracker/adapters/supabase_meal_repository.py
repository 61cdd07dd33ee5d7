"""Supabase repository for meals."""

from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta

from supabase import Client

from meal_tracker.domain.meals import (
    MealFeedback,
    MealNutrition,
    MealPreferences,
    MealRecord,
)
from meal_tracker.services.meals import MealRepository

MEAL_COLUMNS = (
    "meal_id, user_id, meal_name, image_url, analysis_status, created_at, "
    "upload_time, calories, protein_g, carbs_g, fats_g, fiber_g, sugar_g, "
    "sodium_mg, is_favorite, taste_rating, satiety_rating, energy_rating, "
    "heaviness_rating, feedback_at"
)

_RATING_COLUMNS = ("taste_rating", "satiety_rating", "energy_rating", "heaviness_rating")


@dataclass
class SupabaseMealRepository(MealRepository):
    """Supabase implementation for meal persistence."""

    client: Client

    def create_meal(
        self,
        user_id: str,
        nutrition: MealNutrition,
        image_url: str,
        analysis_status: str,
        upload_time: datetime | None = None,
    ) -> MealRecord:
        """Insert a meal row and return it."""
        payload: dict[str, object] = {
            "user_id": user_id,
            "image_url": image_url,
            "analysis_status": analysis_status,
            **_nutrition_payload(nutrition),
        }
        if upload_time is not None:
            payload["upload_time"] = upload_time.isoformat()
        response = self.client.table("meals").insert(payload).execute()
        if not response.data:
            raise RuntimeError("Failed to create meal")
        return parse_meal(response.data[0])

    def get_meal(self, meal_id: int, user_id: str) -> MealRecord | None:
        """Return a meal owned by the user."""
        response = (
            self.client.table("meals")
            .select(MEAL_COLUMNS)
            .eq("meal_id", meal_id)
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return parse_meal(response.data[0])

    def list_recent_meals(self, user_id: str, limit: int) -> list[MealRecord]:
        """Return meals ordered by upload time, newest first."""
        response = (
            self.client.table("meals")
            .select(MEAL_COLUMNS)
            .eq("user_id", user_id)
            .order("upload_time", desc=True)
            .limit(limit)
            .execute()
        )
        return [parse_meal(row) for row in response.data or []]

    def list_meals_on_date(self, user_id: str, day: date) -> list[MealRecord]:
        """Return meals created on a UTC calendar date."""
        start = datetime.combine(day, time.min, tzinfo=UTC)
        end = start + timedelta(days=1)
        response = (
            self.client.table("meals")
            .select(MEAL_COLUMNS)
            .eq("user_id", user_id)
            .gte("created_at", start.isoformat())
            .lt("created_at", end.isoformat())
            .order("created_at", desc=False)
            .execute()
        )
        return [parse_meal(row) for row in response.data or []]

    def update_meal_nutrition(
        self, meal_id: int, user_id: str, nutrition: MealNutrition
    ) -> MealRecord:
        """Overwrite nutrition columns and return the updated row."""
        response = (
            self.client.table("meals")
            .update(_nutrition_payload(nutrition))
            .eq("meal_id", meal_id)
            .eq("user_id", user_id)
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update meal")
        return parse_meal(response.data[0])

    def update_meal_preferences(
        self, meal_id: int, user_id: str, preferences: MealPreferences
    ) -> None:
        """Write the favorite flag and feedback columns."""
        feedback = preferences.feedback
        self.client.table("meals").update(
            {
                "is_favorite": preferences.is_favorite,
                "taste_rating": feedback.taste_rating if feedback else None,
                "satiety_rating": feedback.satiety_rating if feedback else None,
                "energy_rating": feedback.energy_rating if feedback else None,
                "heaviness_rating": feedback.heaviness_rating if feedback else None,
                "feedback_at": (
                    feedback.submitted_at.isoformat()
                    if feedback and feedback.submitted_at
                    else None
                ),
            }
        ).eq("meal_id", meal_id).eq("user_id", user_id).execute()


def parse_meal(row: dict[str, object]) -> MealRecord:
    """Build a meal record from a `meals` row."""
    created_at = _parse_timestamp(row.get("created_at"))
    upload_time_raw = row.get("upload_time")
    return MealRecord(
        meal_id=int(row["meal_id"]),
        user_id=str(row["user_id"]),
        name=row.get("meal_name"),
        image_url=str(row.get("image_url") or ""),
        analysis_status=str(row.get("analysis_status") or "PENDING"),
        created_at=created_at,
        upload_time=(
            _parse_timestamp(upload_time_raw) if upload_time_raw else created_at
        ),
        calories=_to_optional_float(row.get("calories")),
        protein_g=_to_optional_float(row.get("protein_g")),
        carbs_g=_to_optional_float(row.get("carbs_g")),
        fats_g=_to_optional_float(row.get("fats_g")),
        fiber_g=_to_optional_float(row.get("fiber_g")),
        sugar_g=_to_optional_float(row.get("sugar_g")),
        sodium_mg=_to_optional_float(row.get("sodium_mg")),
        preferences=_parse_preferences(row),
    )


def _parse_preferences(row: dict[str, object]) -> MealPreferences:
    feedback_at = row.get("feedback_at")
    has_feedback = feedback_at is not None or any(
        row.get(column) is not None for column in _RATING_COLUMNS
    )
    feedback = (
        MealFeedback(
            taste_rating=int(row.get("taste_rating") or 0),
            satiety_rating=int(row.get("satiety_rating") or 0),
            energy_rating=int(row.get("energy_rating") or 0),
            heaviness_rating=int(row.get("heaviness_rating") or 0),
            submitted_at=_parse_timestamp(feedback_at) if feedback_at else None,
        )
        if has_feedback
        else None
    )
    return MealPreferences(is_favorite=bool(row.get("is_favorite")), feedback=feedback)


def _nutrition_payload(nutrition: MealNutrition) -> dict[str, object]:
    return {
        "meal_name": nutrition.name,
        "calories": nutrition.calories,
        "protein_g": nutrition.protein_g,
        "carbs_g": nutrition.carbs_g,
        "fats_g": nutrition.fats_g,
        "fiber_g": nutrition.fiber_g,
        "sugar_g": nutrition.sugar_g,
        "sodium_mg": nutrition.sodium_mg,
    }


def _parse_timestamp(value: object) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        parsed = datetime.fromisoformat(value)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    return datetime.min.replace(tzinfo=UTC)


def _to_optional_float(value: object) -> float | None:
    if value is None:
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return 0.0
    return 0.0
