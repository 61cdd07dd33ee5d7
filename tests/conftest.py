"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime

import pytest

from meal_tracker.config import Settings
from meal_tracker.containers import AppContainer
from meal_tracker.domain.meals import MealNutrition, MealPreferences, MealRecord
from meal_tracker.domain.users import UserQuotaState
from meal_tracker.services.analysis import (
    AnalysisClient,
    AnalysisService,
    QuotaRepository,
    QuotaService,
)
from meal_tracker.services.meals import MealRepository, MealService
from meal_tracker.services.statistics import StatisticsRepository, StatisticsService


def make_meal(  # noqa: PLR0913
    created_at: datetime,
    *,
    meal_id: int = 1,
    user_id: str = "user-1",
    name: str | None = "Chicken bowl",
    calories: float | None = None,
    protein_g: float | None = None,
    carbs_g: float | None = None,
    fats_g: float | None = None,
    fiber_g: float | None = None,
    sugar_g: float | None = None,
    sodium_mg: float | None = None,
    preferences: MealPreferences | None = None,
) -> MealRecord:
    return MealRecord(
        meal_id=meal_id,
        user_id=user_id,
        name=name,
        image_url="",
        analysis_status="COMPLETED",
        created_at=created_at,
        upload_time=created_at,
        calories=calories,
        protein_g=protein_g,
        carbs_g=carbs_g,
        fats_g=fats_g,
        fiber_g=fiber_g,
        sugar_g=sugar_g,
        sodium_mg=sodium_mg,
        preferences=preferences or MealPreferences(),
    )


@dataclass
class InMemoryMealRepository(MealRepository, StatisticsRepository):
    """In-memory meal store for tests."""

    meals: dict[int, MealRecord] = field(default_factory=dict)
    next_id: int = 1

    def add(self, meal: MealRecord) -> MealRecord:
        stored = replace(meal, meal_id=self.next_id)
        self.meals[stored.meal_id] = stored
        self.next_id += 1
        return stored

    def create_meal(
        self,
        user_id: str,
        nutrition: MealNutrition,
        image_url: str,
        analysis_status: str,
        upload_time: datetime | None = None,
    ) -> MealRecord:
        now = datetime.now(tz=UTC)
        return self.add(
            MealRecord(
                meal_id=0,
                user_id=user_id,
                name=nutrition.name,
                image_url=image_url,
                analysis_status=analysis_status,
                created_at=now,
                upload_time=upload_time or now,
                calories=nutrition.calories,
                protein_g=nutrition.protein_g,
                carbs_g=nutrition.carbs_g,
                fats_g=nutrition.fats_g,
                fiber_g=nutrition.fiber_g,
                sugar_g=nutrition.sugar_g,
                sodium_mg=nutrition.sodium_mg,
            )
        )

    def get_meal(self, meal_id: int, user_id: str) -> MealRecord | None:
        meal = self.meals.get(meal_id)
        if meal is None or meal.user_id != user_id:
            return None
        return meal

    def list_recent_meals(self, user_id: str, limit: int) -> list[MealRecord]:
        owned = [meal for meal in self.meals.values() if meal.user_id == user_id]
        return sorted(owned, key=lambda meal: meal.upload_time, reverse=True)[:limit]

    def list_meals_on_date(self, user_id: str, day: date) -> list[MealRecord]:
        return sorted(
            (
                meal
                for meal in self.meals.values()
                if meal.user_id == user_id
                and meal.created_at.astimezone(UTC).date() == day
            ),
            key=lambda meal: meal.created_at,
        )

    def update_meal_nutrition(
        self, meal_id: int, user_id: str, nutrition: MealNutrition
    ) -> MealRecord:
        meal = self.meals[meal_id]
        updated = replace(
            meal,
            name=nutrition.name,
            calories=nutrition.calories,
            protein_g=nutrition.protein_g,
            carbs_g=nutrition.carbs_g,
            fats_g=nutrition.fats_g,
            fiber_g=nutrition.fiber_g,
            sugar_g=nutrition.sugar_g,
            sodium_mg=nutrition.sodium_mg,
        )
        self.meals[meal_id] = updated
        return updated

    def update_meal_preferences(
        self, meal_id: int, user_id: str, preferences: MealPreferences
    ) -> None:
        self.meals[meal_id] = replace(self.meals[meal_id], preferences=preferences)

    def list_meals_between(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[MealRecord]:
        return sorted(
            (
                meal
                for meal in self.meals.values()
                if meal.user_id == user_id and start <= meal.created_at <= end
            ),
            key=lambda meal: meal.created_at,
        )


@dataclass
class FailingStatisticsRepository(StatisticsRepository):
    """Statistics repository whose store is down."""

    def list_meals_between(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[MealRecord]:
        raise ConnectionError("database unavailable")


@dataclass
class InMemoryQuotaRepository(QuotaRepository):
    """In-memory AI request ledger with injectable write conflicts."""

    states: dict[str, UserQuotaState] = field(default_factory=dict)
    conflicts: int = 0
    writes: int = 0

    def get_quota_state(self, user_id: str) -> UserQuotaState | None:
        return self.states.get(user_id)

    def compare_and_set_quota(
        self,
        user_id: str,
        *,
        expected_count: int | None,
        expected_reset_at: datetime | None,
        new_count: int,
        new_reset_at: datetime,
    ) -> bool:
        if self.conflicts > 0:
            self.conflicts -= 1
            return False
        current = self.states[user_id]
        if (
            current.ai_requests_count != expected_count
            or current.ai_requests_reset_at != expected_reset_at
        ):
            return False
        self.states[user_id] = replace(
            current, ai_requests_count=new_count, ai_requests_reset_at=new_reset_at
        )
        self.writes += 1
        return True


@dataclass
class FakeAnalysisClient(AnalysisClient):
    """Fake analysis client returning a fixed payload."""

    payload: dict[str, object] = field(
        default_factory=lambda: {
            "name": "Grilled salmon with rice",
            "description": "Salmon fillet on white rice",
            "calories": 620,
            "protein": 42,
            "carbs": 55,
            "fat": 22,
            "fiber": 3,
            "sugar": 2,
            "sodium": 480,
            "confidence": 82,
            "ingredients": ["salmon", "rice", "lemon"],
            "serving_size": "1 plate",
            "cooking_method": "Grilled",
            "health_notes": "Good source of omega-3",
        }
    )
    calls: list[dict[str, object]] = field(default_factory=list)
    error: Exception | None = None

    async def extract(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        schema: dict[str, object],
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        self.calls.append({"prompt": prompt, "image_data_url": image_data_url})
        if self.error is not None:
            raise self.error
        return self.payload


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        openai_api_key="openai-key",
    )


@pytest.fixture
def meal_repository() -> InMemoryMealRepository:
    return InMemoryMealRepository()


@pytest.fixture
def quota_repository() -> InMemoryQuotaRepository:
    return InMemoryQuotaRepository()


@pytest.fixture
def analysis_client() -> FakeAnalysisClient:
    return FakeAnalysisClient()


@pytest.fixture
def analysis_service(
    settings: Settings,
    analysis_client: FakeAnalysisClient,
    quota_repository: InMemoryQuotaRepository,
) -> AnalysisService:
    return AnalysisService(
        client=analysis_client,
        quota_service=QuotaService(quota_repository),
        model=settings.openai_model,
        reasoning_effort=settings.openai_reasoning_effort,
        store=settings.openai_store,
    )


@pytest.fixture
def container(
    settings: Settings,
    meal_repository: InMemoryMealRepository,
    analysis_service: AnalysisService,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        analysis_service=analysis_service,
        meal_service=MealService(
            repository=meal_repository,
            analysis_service=analysis_service,
        ),
        statistics_service=StatisticsService(meal_repository),
        close_resources=close_resources,
    )
