"""Pydantic models for API request bodies."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class AnalyzeMealRequest(BaseModel):
    """Photo analysis request."""

    model_config = ConfigDict(populate_by_name=True)

    image_base64: str = Field(alias="imageBase64", min_length=1)
    language: str = "english"
    update_text: str | None = Field(default=None, alias="updateText")


class MealDataPayload(BaseModel):
    """Nutrition values for a meal being saved."""

    name: str
    description: str | None = None
    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    fiber: float | None = None
    sugar: float | None = None
    sodium: float | None = None


class SaveMealRequest(BaseModel):
    """Save an analyzed meal."""

    model_config = ConfigDict(populate_by_name=True)

    meal_data: MealDataPayload = Field(alias="mealData")
    image_base64: str | None = Field(default=None, alias="imageBase64")


class UpdateMealRequest(BaseModel):
    """Free-text correction for a saved meal."""

    model_config = ConfigDict(populate_by_name=True)

    update_text: str = Field(alias="updateText", min_length=1)
    language: str = "english"


class MealFeedbackRequest(BaseModel):
    """Post-meal ratings."""

    model_config = ConfigDict(populate_by_name=True)

    taste_rating: int = Field(default=0, alias="tasteRating", ge=0)
    satiety_rating: int = Field(default=0, alias="satietyRating", ge=0)
    energy_rating: int = Field(default=0, alias="energyRating", ge=0)
    heaviness_rating: int = Field(default=0, alias="heavinessRating", ge=0)


class DuplicateMealRequest(BaseModel):
    """Optional target time for a duplicated meal."""

    model_config = ConfigDict(populate_by_name=True)

    new_date: datetime | None = Field(default=None, alias="newDate")
