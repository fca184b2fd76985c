"""Pydantic models for the analyze-meal HTTP contract."""

from pydantic import BaseModel

from meal_analyzer.domain.estimates import AnalysisResult


class AnalyzeMealResponse(BaseModel):
    """Successful analysis response."""

    calories: int
    protein: float
    carbs: float
    fat: float
    confidence: str
    meal_description: str | None = None
    source: str = "ai"
    ai_model_used: str | None = None

    @classmethod
    def from_result(cls, result: AnalysisResult) -> "AnalyzeMealResponse":
        """Build the response body from an accepted analysis."""
        estimate = result.estimate
        return cls(
            calories=estimate.calories,
            protein=estimate.protein,
            carbs=estimate.carbs,
            fat=estimate.fat,
            confidence=estimate.confidence.value,
            meal_description=estimate.description,
            ai_model_used=result.provider.value,
        )


class ErrorResponse(BaseModel):
    """Structured error body."""

    error: str
    details: str | None = None
