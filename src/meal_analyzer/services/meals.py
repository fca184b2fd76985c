"""Meal history persistence for analyzed meals."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from meal_analyzer.domain.estimates import AnalysisResult
from meal_analyzer.domain.requests import AnalysisRequest


class MealRepository(Protocol):
    """Persistence interface for meal history."""

    def create_meal(
        self,
        user_id: UUID,
        image_url: str | None,
        description: str | None,
        result: AnalysisResult,
    ) -> UUID:
        """Insert a meal row and return its id."""


@dataclass
class MealHistoryService:
    """Stores accepted analyses as meals."""

    repository: MealRepository

    def save(self, request: AnalysisRequest, result: AnalysisResult) -> UUID:
        """Persist the analyzed meal for the requesting user."""
        return self.repository.create_meal(
            user_id=request.user_id,
            image_url=request.image_url,
            description=request.description or result.estimate.description,
            result=result,
        )
