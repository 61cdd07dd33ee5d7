"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from meal_tracker.adapters.openai_analysis_client import OpenAIAnalysisClient
from meal_tracker.adapters.supabase_meal_repository import SupabaseMealRepository
from meal_tracker.adapters.supabase_quota_repository import SupabaseQuotaRepository
from meal_tracker.adapters.supabase_statistics_repository import (
    SupabaseStatisticsRepository,
)
from meal_tracker.config import Settings
from meal_tracker.services.analysis import AnalysisService, QuotaService
from meal_tracker.services.meals import MealService
from meal_tracker.services.statistics import StatisticsService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    analysis_service: AnalysisService
    meal_service: MealService
    statistics_service: StatisticsService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    openai_client = OpenAIAnalysisClient.create(resolved_settings.openai_api_key)
    analysis_service = AnalysisService(
        client=openai_client,
        quota_service=QuotaService(SupabaseQuotaRepository(supabase_client)),
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )
    meal_service = MealService(
        repository=SupabaseMealRepository(supabase_client),
        analysis_service=analysis_service,
        recent_limit=resolved_settings.recent_meals_limit,
    )
    statistics_service = StatisticsService(
        repository=SupabaseStatisticsRepository(supabase_client),
        timezone_name=resolved_settings.stats_timezone,
    )

    async def close_resources() -> None:
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        analysis_service=analysis_service,
        meal_service=meal_service,
        statistics_service=statistics_service,
        close_resources=close_resources,
    )
