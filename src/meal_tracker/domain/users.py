"""Domain models for users and AI request quotas."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class SubscriptionTier(StrEnum):
    """Subscription plans with distinct AI request limits."""

    FREE = "FREE"
    BASIC = "BASIC"
    PREMIUM = "PREMIUM"


PLAN_LIMITS: dict[SubscriptionTier, int] = {
    SubscriptionTier.FREE: 10,
    SubscriptionTier.BASIC: 50,
    SubscriptionTier.PREMIUM: 200,
}


def plan_limit(subscription_type: str | None) -> int:
    """Return the daily AI request limit, falling back to the free plan."""
    try:
        tier = SubscriptionTier(subscription_type)
    except ValueError:
        tier = SubscriptionTier.FREE
    return PLAN_LIMITS[tier]


@dataclass(frozen=True)
class UserQuotaState:
    """Per-user AI request ledger."""

    user_id: str
    ai_requests_count: int | None
    ai_requests_reset_at: datetime | None
    subscription_type: str | None
