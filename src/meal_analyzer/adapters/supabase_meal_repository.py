"""Supabase repository for analyzed meals."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from meal_analyzer.domain.estimates import AnalysisResult
from meal_analyzer.services.meals import MealRepository


@dataclass
class SupabaseMealRepository(MealRepository):
    """Supabase implementation for the ``meals`` table."""

    client: Client

    def create_meal(
        self,
        user_id: UUID,
        image_url: str | None,
        description: str | None,
        result: AnalysisResult,
    ) -> UUID:
        """Insert a meal row built from an accepted estimate."""
        estimate = result.estimate
        response = (
            self.client.table("meals")
            .insert(
                {
                    "user_id": str(user_id),
                    "image_url": image_url,
                    "description": description,
                    "calories": estimate.calories,
                    "protein": estimate.protein,
                    "carbs": estimate.carbs,
                    "fat": estimate.fat,
                    "confidence": estimate.confidence.value,
                    "source": "ai",
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create meal in Supabase")
        return UUID(response.data[0]["id"])
