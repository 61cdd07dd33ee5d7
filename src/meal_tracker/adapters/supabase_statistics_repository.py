"""Supabase repository for statistics queries."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from meal_tracker.adapters.supabase_meal_repository import MEAL_COLUMNS, parse_meal
from meal_tracker.domain.meals import MealRecord
from meal_tracker.services.statistics import StatisticsRepository


@dataclass
class SupabaseStatisticsRepository(StatisticsRepository):
    """Supabase implementation for statistics queries."""

    client: Client

    def list_meals_between(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[MealRecord]:
        """Return meals created in the closed range, oldest first."""
        response = (
            self.client.table("meals")
            .select(MEAL_COLUMNS)
            .eq("user_id", user_id)
            .gte("created_at", start.isoformat())
            .lte("created_at", end.isoformat())
            .order("created_at", desc=False)
            .execute()
        )
        return [parse_meal(row) for row in response.data or []]
