"""Tests for Supabase adapter implementations."""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime

import pytest

from meal_tracker.adapters.supabase_meal_repository import (
    SupabaseMealRepository,
    parse_meal,
)
from meal_tracker.adapters.supabase_quota_repository import SupabaseQuotaRepository
from meal_tracker.adapters.supabase_statistics_repository import (
    SupabaseStatisticsRepository,
)
from meal_tracker.domain.meals import MealFeedback, MealNutrition, MealPreferences


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {"select": [], "insert": [], "update": []}
    )
    last_payload: object | None = None
    last_filters: list[tuple[str, str, object]] = field(default_factory=list)

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        self.last_filters = []
        return self

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "insert"
        self.last_payload = payload
        self.last_filters = []
        return self

    def update(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "update"
        self.last_payload = payload
        self.last_filters = []
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append(("eq", column, value))
        return self

    def is_(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append(("is", column, value))
        return self

    def gte(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append(("gte", column, value))
        return self

    def lt(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append(("lt", column, value))
        return self

    def lte(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append(("lte", column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, _column: str, desc: bool = False) -> "FakeTable":
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def _meal_row(**overrides: object) -> dict[str, object]:
    row: dict[str, object] = {
        "meal_id": 7,
        "user_id": "user-1",
        "meal_name": "Tuna salad",
        "image_url": "",
        "analysis_status": "COMPLETED",
        "created_at": "2024-01-02T12:30:00+00:00",
        "upload_time": "2024-01-02T12:29:00+00:00",
        "calories": 420,
        "protein_g": "31.5",
        "carbs_g": None,
        "fats_g": 18,
        "fiber_g": None,
        "sugar_g": None,
        "sodium_mg": 650,
        "is_favorite": None,
        "taste_rating": None,
        "satiety_rating": None,
        "energy_rating": None,
        "heaviness_rating": None,
        "feedback_at": None,
    }
    row.update(overrides)
    return row


def _nutrition() -> MealNutrition:
    return MealNutrition(
        name="Tuna salad",
        calories=420,
        protein_g=31.5,
        carbs_g=None,
        fats_g=18,
        fiber_g=None,
        sugar_g=None,
        sodium_mg=650,
    )


def test_parse_meal_converts_columns() -> None:
    meal = parse_meal(_meal_row())

    assert meal.meal_id == 7
    assert meal.calories == 420.0
    assert meal.protein_g == 31.5
    assert meal.carbs_g is None
    assert meal.created_at == datetime(2024, 1, 2, 12, 30, tzinfo=UTC)
    assert meal.preferences == MealPreferences()


def test_parse_meal_reads_preferences() -> None:
    meal = parse_meal(
        _meal_row(
            is_favorite=True,
            taste_rating=4,
            energy_rating=2,
            feedback_at="2024-01-02T14:00:00",
        )
    )

    assert meal.preferences.is_favorite is True
    assert meal.preferences.feedback == MealFeedback(
        taste_rating=4,
        energy_rating=2,
        submitted_at=datetime(2024, 1, 2, 14, tzinfo=UTC),
    )


def test_parse_meal_falls_back_to_created_at_for_upload_time() -> None:
    meal = parse_meal(_meal_row(upload_time=None))

    assert meal.upload_time == meal.created_at


def test_meal_repository_create_meal() -> None:
    client = FakeSupabaseClient()
    meals_table = client.table("meals")
    meals_table.queue("insert", [_meal_row()])
    repository = SupabaseMealRepository(client)
    upload_time = datetime(2024, 1, 2, 12, 29, tzinfo=UTC)

    meal = repository.create_meal(
        "user-1", _nutrition(), "", "COMPLETED", upload_time=upload_time
    )

    assert meal.meal_id == 7
    assert isinstance(meals_table.last_payload, dict)
    assert meals_table.last_payload["meal_name"] == "Tuna salad"
    assert meals_table.last_payload["upload_time"] == upload_time.isoformat()


def test_meal_repository_create_meal_requires_row() -> None:
    client = FakeSupabaseClient()
    repository = SupabaseMealRepository(client)

    with pytest.raises(RuntimeError):
        repository.create_meal("user-1", _nutrition(), "", "COMPLETED")


def test_meal_repository_scopes_lookups_to_owner() -> None:
    client = FakeSupabaseClient()
    meals_table = client.table("meals")
    repository = SupabaseMealRepository(client)

    assert repository.get_meal(7, "user-1") is None
    assert meals_table.last_filters == [
        ("eq", "meal_id", 7),
        ("eq", "user_id", "user-1"),
    ]


def test_meal_repository_lists_meals_on_date() -> None:
    client = FakeSupabaseClient()
    meals_table = client.table("meals")
    meals_table.queue("select", [_meal_row()])
    repository = SupabaseMealRepository(client)

    meals = repository.list_meals_on_date("user-1", date(2024, 1, 2))

    assert [meal.meal_id for meal in meals] == [7]
    assert ("gte", "created_at", "2024-01-02T00:00:00+00:00") in meals_table.last_filters
    assert ("lt", "created_at", "2024-01-03T00:00:00+00:00") in meals_table.last_filters


def test_meal_repository_updates_preferences() -> None:
    client = FakeSupabaseClient()
    meals_table = client.table("meals")
    repository = SupabaseMealRepository(client)
    submitted_at = datetime(2024, 1, 3, 8, tzinfo=UTC)

    repository.update_meal_preferences(
        7,
        "user-1",
        MealPreferences(
            is_favorite=True,
            feedback=MealFeedback(taste_rating=5, submitted_at=submitted_at),
        ),
    )

    assert meals_table.last_payload == {
        "is_favorite": True,
        "taste_rating": 5,
        "satiety_rating": 0,
        "energy_rating": 0,
        "heaviness_rating": 0,
        "feedback_at": submitted_at.isoformat(),
    }
    assert ("eq", "user_id", "user-1") in meals_table.last_filters


def test_meal_repository_update_nutrition_requires_row() -> None:
    client = FakeSupabaseClient()
    repository = SupabaseMealRepository(client)

    with pytest.raises(RuntimeError):
        repository.update_meal_nutrition(7, "user-1", _nutrition())


def test_statistics_repository_filters_closed_range() -> None:
    client = FakeSupabaseClient()
    meals_table = client.table("meals")
    meals_table.queue("select", [_meal_row(), _meal_row(meal_id=8)])
    repository = SupabaseStatisticsRepository(client)
    start = datetime(2024, 1, 1, tzinfo=UTC)
    end = datetime(2024, 1, 8, tzinfo=UTC)

    meals = repository.list_meals_between("user-1", start, end)

    assert [meal.meal_id for meal in meals] == [7, 8]
    assert meals_table.last_filters == [
        ("eq", "user_id", "user-1"),
        ("gte", "created_at", start.isoformat()),
        ("lte", "created_at", end.isoformat()),
    ]


def test_quota_repository_reads_ledger() -> None:
    client = FakeSupabaseClient()
    client.table("users").queue(
        "select",
        [
            {
                "user_id": "user-1",
                "ai_requests_count": 3,
                "ai_requests_reset_at": "2024-01-02T08:00:00+00:00",
                "subscription_type": "BASIC",
            }
        ],
    )
    repository = SupabaseQuotaRepository(client)

    state = repository.get_quota_state("user-1")

    assert state is not None
    assert state.ai_requests_count == 3
    assert state.ai_requests_reset_at == datetime(2024, 1, 2, 8, tzinfo=UTC)
    assert state.subscription_type == "BASIC"
    assert repository.get_quota_state("missing") is None


def test_quota_repository_compare_and_set() -> None:
    client = FakeSupabaseClient()
    users_table = client.table("users")
    users_table.queue("update", [{"user_id": "user-1"}])
    repository = SupabaseQuotaRepository(client)
    expected_reset = datetime(2024, 1, 2, 8, tzinfo=UTC)
    new_reset = datetime(2024, 1, 3, 9, tzinfo=UTC)

    written = repository.compare_and_set_quota(
        "user-1",
        expected_count=3,
        expected_reset_at=expected_reset,
        new_count=4,
        new_reset_at=expected_reset,
    )
    conflicted = repository.compare_and_set_quota(
        "user-1",
        expected_count=0,
        expected_reset_at=None,
        new_count=1,
        new_reset_at=new_reset,
    )

    assert written is True
    assert conflicted is False
    assert users_table.last_payload == {
        "ai_requests_count": 1,
        "ai_requests_reset_at": new_reset.isoformat(),
    }
    assert ("eq", "ai_requests_count", 0) in users_table.last_filters
    assert ("is", "ai_requests_reset_at", "null") in users_table.last_filters


def test_quota_repository_matches_null_counter() -> None:
    client = FakeSupabaseClient()
    users_table = client.table("users")
    users_table.queue(
        "select",
        [
            {
                "user_id": "user-1",
                "ai_requests_count": None,
                "ai_requests_reset_at": "2024-01-02T08:00:00+00:00",
                "subscription_type": "FREE",
            }
        ],
    )
    repository = SupabaseQuotaRepository(client)

    state = repository.get_quota_state("user-1")
    assert state is not None
    repository.compare_and_set_quota(
        "user-1",
        expected_count=state.ai_requests_count,
        expected_reset_at=state.ai_requests_reset_at,
        new_count=1,
        new_reset_at=datetime(2024, 1, 2, 8, tzinfo=UTC),
    )

    assert state.ai_requests_count is None
    assert ("is", "ai_requests_count", "null") in users_table.last_filters
    assert ("eq", "ai_requests_reset_at", "2024-01-02T08:00:00+00:00") in (
        users_table.last_filters
    )
