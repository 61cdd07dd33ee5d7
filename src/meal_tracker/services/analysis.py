"""AI meal analysis gated by per-user request quotas."""

import base64
import binascii
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

from meal_tracker.domain.analysis import MealAnalysis
from meal_tracker.domain.users import UserQuotaState, plan_limit
from meal_tracker.errors import InvalidImageError, QuotaExceededError, UpstreamError

QUOTA_RESET_INTERVAL = timedelta(hours=24)

# (offset, magic bytes, MIME type); WEBP sits after the RIFF size field.
_IMAGE_SIGNATURES = (
    (0, b"\x89PNG\r\n\x1a\n", "image/png"),
    (0, b"GIF8", "image/gif"),
    (8, b"WEBP", "image/webp"),
    (0, b"\xff\xd8\xff", "image/jpeg"),
)

_NULLABLE_NUMBER = {"anyOf": [{"type": "number", "minimum": 0.0}, {"type": "null"}]}

ANALYSIS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "description": {"type": "string"},
        "calories": {"type": "number", "minimum": 0.0},
        "protein": {"type": "number", "minimum": 0.0},
        "carbs": {"type": "number", "minimum": 0.0},
        "fat": {"type": "number", "minimum": 0.0},
        "fiber": _NULLABLE_NUMBER,
        "sugar": _NULLABLE_NUMBER,
        "sodium": _NULLABLE_NUMBER,
        "confidence": {"type": "number", "minimum": 0.0, "maximum": 100.0},
        "ingredients": {"type": "array", "items": {"type": "string"}},
        "serving_size": {"type": "string"},
        "cooking_method": {"type": "string"},
        "health_notes": {"type": "string"},
    },
    "required": [
        "name",
        "description",
        "calories",
        "protein",
        "carbs",
        "fat",
        "fiber",
        "sugar",
        "sodium",
        "confidence",
        "ingredients",
        "serving_size",
        "cooking_method",
        "health_notes",
    ],
    "additionalProperties": False,
}

_logger = logging.getLogger(__name__)


class AnalysisClient(Protocol):
    """Interface for structured LLM meal analysis."""

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
        """Return structured analysis data."""


class QuotaRepository(Protocol):
    """Persistence interface for the AI request ledger."""

    def get_quota_state(self, user_id: str) -> UserQuotaState | None:
        """Return the user's ledger, if the user exists."""

    def compare_and_set_quota(
        self,
        user_id: str,
        *,
        expected_count: int | None,
        expected_reset_at: datetime | None,
        new_count: int,
        new_reset_at: datetime,
    ) -> bool:
        """Write the ledger only if it still holds the expected values."""


@dataclass
class QuotaService:
    """Per-user daily AI request limits."""

    repository: QuotaRepository
    max_attempts: int = 3

    def consume(self, user_id: str) -> int | None:
        """Record one AI request and return the new count.

        Raises QuotaExceededError when the plan limit is already reached.
        Users without a ledger are not limited and get None back.
        """
        for _ in range(self.max_attempts):
            state = self.repository.get_quota_state(user_id)
            if state is None:
                _logger.warning("No AI quota ledger for user %s", user_id)
                return None
            count, reset_at = _effective_window(state, datetime.now(tz=UTC))
            limit = plan_limit(state.subscription_type)
            if count >= limit:
                raise QuotaExceededError(limit)
            if self.repository.compare_and_set_quota(
                user_id,
                expected_count=state.ai_requests_count,
                expected_reset_at=state.ai_requests_reset_at,
                new_count=count + 1,
                new_reset_at=reset_at,
            ):
                return count + 1
            _logger.info("AI quota changed concurrently for user %s", user_id)
        raise UpstreamError("Could not record the AI request, please retry")


@dataclass
class AnalysisService:
    """Prepares analysis prompts and validates model output."""

    client: AnalysisClient
    quota_service: QuotaService
    model: str
    reasoning_effort: str | None
    store: bool

    async def analyze_meal(
        self,
        user_id: str,
        image_base64: str,
        language: str = "english",
        update_text: str | None = None,
    ) -> MealAnalysis:
        """Estimate nutrition for a meal photo, charging the user's quota."""
        image_data_url = _to_data_url(image_base64)
        self.quota_service.consume(user_id)
        prompt = (
            "Analyze the meal in the image and estimate its nutrition. "
            "Return the meal name, a short description, calories, protein, carbs "
            "and fat in grams, fiber and sugar in grams, sodium in milligrams, "
            "a confidence from 0 to 100, the visible ingredients, the serving "
            "size, the cooking method and short health notes. "
            f"Write all text in {language}."
        )
        if update_text:
            prompt += f" The user added this correction: {update_text}"
        analysis = await self._extract(prompt, image_data_url=image_data_url)
        _logger.info("Meal analysis completed for user %s", user_id)
        return analysis

    async def revise(
        self, previous: MealAnalysis, update_text: str, language: str = "english"
    ) -> MealAnalysis:
        """Apply a user's correction to an earlier analysis."""
        prompt = (
            "Here is an earlier nutrition analysis of a meal as JSON:\n"
            f"{previous.model_dump_json()}\n"
            f"The user says: {update_text}\n"
            "Return the corrected analysis with the same fields. "
            f"Write all text in {language}."
        )
        return await self._extract(prompt, image_data_url=None)

    async def _extract(self, prompt: str, image_data_url: str | None) -> MealAnalysis:
        try:
            raw = await self.client.extract(
                model=self.model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                prompt=prompt,
                schema=ANALYSIS_SCHEMA,
                image_data_url=image_data_url,
            )
            return MealAnalysis.model_validate(raw)
        except Exception as exc:
            _logger.exception("Meal analysis request failed")
            raise UpstreamError("Meal analysis failed") from exc


def _effective_window(
    state: UserQuotaState, now: datetime
) -> tuple[int, datetime]:
    """Return the count and reset time after applying the daily reset."""
    reset_at = state.ai_requests_reset_at
    if reset_at is None or now - reset_at >= QUOTA_RESET_INTERVAL:
        return 0, now
    return state.ai_requests_count or 0, reset_at


def _to_data_url(image_base64: str) -> str:
    """Normalize a base64 image (optionally already a data URL)."""
    if image_base64.startswith("data:"):
        return image_base64
    try:
        image_bytes = base64.b64decode(image_base64, validate=True)
    except binascii.Error as exc:
        raise InvalidImageError("Image is not valid base64 data") from exc
    return f"data:{_sniff_image_type(image_bytes)};base64,{image_base64}"


def _sniff_image_type(image_bytes: bytes) -> str:
    """Guess the photo MIME type from its leading bytes, JPEG when unknown."""
    for offset, signature, mime_type in _IMAGE_SIGNATURES:
        if image_bytes[offset : offset + len(signature)] == signature:
            return mime_type
    return "image/jpeg"
