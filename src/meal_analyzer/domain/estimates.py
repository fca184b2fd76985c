"""Macro estimate domain models."""

from dataclasses import dataclass
from enum import Enum


class Confidence(Enum):
    """Confidence label emitted by an inference provider."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


CONFIDENCE_SCORES: dict[Confidence, float] = {
    Confidence.LOW: 0.3,
    Confidence.MEDIUM: 0.6,
    Confidence.HIGH: 0.9,
}


class Provider(Enum):
    """Inference backends that can produce an accepted estimate."""

    GEMINI = "gemini"
    OPENAI = "openai"


@dataclass(frozen=True)
class MacroEstimate:
    """Canonical macronutrient estimate for one meal."""

    calories: int
    protein: float
    carbs: float
    fat: float
    confidence: Confidence
    description: str | None = None

    def is_empty(self) -> bool:
        """Return true when every value is zero (treated as not food)."""
        return (
            self.calories == 0
            and self.protein == 0
            and self.carbs == 0
            and self.fat == 0
        )


@dataclass(frozen=True)
class AnalysisResult:
    """Accepted estimate with the provider that produced it."""

    estimate: MacroEstimate
    provider: Provider
