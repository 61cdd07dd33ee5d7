"""Meal analysis and meal history endpoints."""

from __future__ import annotations

from dataclasses import asdict
from datetime import date  # noqa: TC003
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Request

from meal_tracker.api.deps import require_user_id
from meal_tracker.api.models import (
    AnalyzeMealRequest,
    DuplicateMealRequest,
    MealFeedbackRequest,
    SaveMealRequest,
    UpdateMealRequest,
)
from meal_tracker.domain.meals import MealData, MealFeedback

if TYPE_CHECKING:
    from meal_tracker.containers import AppContainer

router = APIRouter(prefix="/api/nutrition", tags=["nutrition"])


@router.post("/analyze")
async def analyze_meal(
    body: AnalyzeMealRequest,
    request: Request,
    user_id: str = Depends(require_user_id),
) -> dict[str, object]:
    """Estimate nutrition for a meal photo."""
    container: AppContainer = request.app.state.container
    analysis = await container.analysis_service.analyze_meal(
        user_id=user_id,
        image_base64=body.image_base64,
        language=body.language,
        update_text=body.update_text,
    )
    return {"success": True, "data": analysis.model_dump()}


@router.post("/meals")
async def save_meal(
    body: SaveMealRequest,
    request: Request,
    user_id: str = Depends(require_user_id),
) -> dict[str, object]:
    """Persist an analyzed meal."""
    container: AppContainer = request.app.state.container
    meal = container.meal_service.save_meal(
        user_id,
        MealData(**body.meal_data.model_dump()),
        image_base64=body.image_base64,
    )
    return {"success": True, "data": meal}


@router.get("/meals")
async def list_meals(
    request: Request, user_id: str = Depends(require_user_id)
) -> dict[str, object]:
    """Return the user's recent meals."""
    container: AppContainer = request.app.state.container
    return {"success": True, "data": container.meal_service.get_user_meals(user_id)}


@router.put("/meals/{meal_id}")
async def update_meal(
    meal_id: int,
    body: UpdateMealRequest,
    request: Request,
    user_id: str = Depends(require_user_id),
) -> dict[str, object]:
    """Apply a free-text correction to a saved meal."""
    container: AppContainer = request.app.state.container
    meal = await container.meal_service.update_meal(
        user_id, meal_id, body.update_text, body.language
    )
    return {"success": True, "data": meal}


@router.get("/stats/{day}")
async def daily_stats(
    day: date, request: Request, user_id: str = Depends(require_user_id)
) -> dict[str, object]:
    """Return nutrition totals for one date."""
    container: AppContainer = request.app.state.container
    stats = container.meal_service.get_daily_stats(user_id, day)
    data = asdict(stats)
    data["mealCount"] = data.pop("meal_count")
    return {"success": True, "data": data}


@router.post("/meals/{meal_id}/feedback")
async def meal_feedback(
    meal_id: int,
    body: MealFeedbackRequest,
    request: Request,
    user_id: str = Depends(require_user_id),
) -> dict[str, object]:
    """Store ratings for a meal."""
    container: AppContainer = request.app.state.container
    feedback = container.meal_service.save_meal_feedback(
        user_id,
        meal_id,
        MealFeedback(
            taste_rating=body.taste_rating,
            satiety_rating=body.satiety_rating,
            energy_rating=body.energy_rating,
            heaviness_rating=body.heaviness_rating,
        ),
    )
    return {
        "success": True,
        "data": {
            "tasteRating": feedback.taste_rating,
            "satietyRating": feedback.satiety_rating,
            "energyRating": feedback.energy_rating,
            "heavinessRating": feedback.heaviness_rating,
            "feedbackDate": (
                feedback.submitted_at.isoformat() if feedback.submitted_at else None
            ),
        },
    }


@router.post("/meals/{meal_id}/favorite")
async def toggle_favorite(
    meal_id: int, request: Request, user_id: str = Depends(require_user_id)
) -> dict[str, object]:
    """Flip the favorite flag of a meal."""
    container: AppContainer = request.app.state.container
    is_favorite = container.meal_service.toggle_meal_favorite(user_id, meal_id)
    return {"success": True, "data": {"isFavorite": is_favorite}}


@router.post("/meals/{meal_id}/duplicate")
async def duplicate_meal(
    meal_id: int,
    request: Request,
    body: DuplicateMealRequest | None = None,
    user_id: str = Depends(require_user_id),
) -> dict[str, object]:
    """Log a copy of an existing meal."""
    container: AppContainer = request.app.state.container
    meal = container.meal_service.duplicate_meal(
        user_id, meal_id, new_date=body.new_date if body else None
    )
    return {"success": True, "data": meal}
