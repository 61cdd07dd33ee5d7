"""Models for AI meal analysis results."""

from pydantic import BaseModel, Field


class MealAnalysis(BaseModel):
    """Structured nutrition estimate for a meal photo."""

    name: str
    description: str = ""
    calories: float = Field(ge=0.0)
    protein: float = Field(ge=0.0)
    carbs: float = Field(ge=0.0)
    fat: float = Field(ge=0.0)
    fiber: float | None = Field(default=None, ge=0.0)
    sugar: float | None = Field(default=None, ge=0.0)
    sodium: float | None = Field(default=None, ge=0.0)
    confidence: float = Field(ge=0.0, le=100.0)
    ingredients: list[str] = Field(default_factory=list)
    serving_size: str = "1 serving"
    cooking_method: str = "Unknown"
    health_notes: str = ""
