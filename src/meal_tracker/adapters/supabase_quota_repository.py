"""Supabase-backed AI request ledger."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from meal_tracker.domain.users import UserQuotaState
from meal_tracker.services.analysis import QuotaRepository


@dataclass
class SupabaseQuotaRepository(QuotaRepository):
    """Stores AI request counters on the `users` table."""

    client: Client

    def get_quota_state(self, user_id: str) -> UserQuotaState | None:
        """Return the ledger columns for a user, if present."""
        response = (
            self.client.table("users")
            .select(
                "user_id, ai_requests_count, ai_requests_reset_at, subscription_type"
            )
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return UserQuotaState(
            user_id=str(row["user_id"]),
            ai_requests_count=_to_optional_int(row.get("ai_requests_count")),
            ai_requests_reset_at=_parse_reset_at(row.get("ai_requests_reset_at")),
            subscription_type=row.get("subscription_type"),
        )

    def compare_and_set_quota(
        self,
        user_id: str,
        *,
        expected_count: int | None,
        expected_reset_at: datetime | None,
        new_count: int,
        new_reset_at: datetime,
    ) -> bool:
        """Conditionally update the ledger; False when another write won."""
        query = (
            self.client.table("users")
            .update(
                {
                    "ai_requests_count": new_count,
                    "ai_requests_reset_at": new_reset_at.isoformat(),
                }
            )
            .eq("user_id", user_id)
        )
        if expected_count is None:
            query = query.is_("ai_requests_count", "null")
        else:
            query = query.eq("ai_requests_count", expected_count)
        if expected_reset_at is None:
            query = query.is_("ai_requests_reset_at", "null")
        else:
            query = query.eq("ai_requests_reset_at", expected_reset_at.isoformat())
        response = query.execute()
        return bool(response.data)


def _to_optional_int(value: object) -> int | None:
    return None if value is None else int(value)


def _parse_reset_at(value: object) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    parsed = datetime.fromisoformat(value)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
