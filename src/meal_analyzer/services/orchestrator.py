"""Provider selection, fallback escalation and finalization for one request."""

import logging
from dataclasses import dataclass
from enum import Enum

from meal_analyzer.domain.errors import ProviderError, UnableToEstimate
from meal_analyzer.domain.estimates import (
    CONFIDENCE_SCORES,
    AnalysisResult,
    MacroEstimate,
    Provider,
)
from meal_analyzer.domain.requests import AnalysisRequest
from meal_analyzer.services.providers import InferenceProvider
from meal_analyzer.services.usage import UsageLedger

_logger = logging.getLogger(__name__)

GATEWAY_TIMEOUT = 504
NOT_FOOD_STATUS = 400


class Outcome(Enum):
    """Classified result of one provider attempt."""

    CONFIDENT = "confident"
    LOW = "low"
    FAILED = "failed"


class Step(Enum):
    """What to do after the primary provider answered."""

    ACCEPT_PRIMARY = "accept_primary"
    ESCALATE = "escalate"
    FALL_BACK = "fall_back"
    GIVE_UP = "give_up"


class Resolution(Enum):
    """Which attempt wins once the secondary provider answered."""

    USE_PRIMARY = "use_primary"
    USE_SECONDARY = "use_secondary"
    GIVE_UP = "give_up"


# (primary outcome, secondary configured) -> step
PRIMARY_POLICY: dict[tuple[Outcome, bool], Step] = {
    (Outcome.CONFIDENT, True): Step.ACCEPT_PRIMARY,
    (Outcome.CONFIDENT, False): Step.ACCEPT_PRIMARY,
    (Outcome.LOW, True): Step.ESCALATE,
    (Outcome.LOW, False): Step.ACCEPT_PRIMARY,
    (Outcome.FAILED, True): Step.FALL_BACK,
    (Outcome.FAILED, False): Step.GIVE_UP,
}

# (step, secondary outcome) -> resolution; escalation only ever upgrades.
SECONDARY_POLICY: dict[tuple[Step, Outcome], Resolution] = {
    (Step.ESCALATE, Outcome.CONFIDENT): Resolution.USE_SECONDARY,
    (Step.ESCALATE, Outcome.LOW): Resolution.USE_PRIMARY,
    (Step.ESCALATE, Outcome.FAILED): Resolution.USE_PRIMARY,
    (Step.FALL_BACK, Outcome.CONFIDENT): Resolution.USE_SECONDARY,
    (Step.FALL_BACK, Outcome.LOW): Resolution.USE_SECONDARY,
    (Step.FALL_BACK, Outcome.FAILED): Resolution.GIVE_UP,
}


@dataclass(frozen=True)
class Attempt:
    """One provider invocation and what came of it."""

    provider: Provider
    estimate: MacroEstimate | None = None
    error: ProviderError | None = None

    def result(self) -> AnalysisResult:
        """Return the attempt as an accepted result."""
        if self.estimate is None:
            raise ValueError("Failed attempt has no estimate")
        return AnalysisResult(estimate=self.estimate, provider=self.provider)


@dataclass
class MealAnalysisOrchestrator:
    """Drives the inference providers for one admitted request."""

    primary: InferenceProvider
    text: InferenceProvider
    ledger: UsageLedger
    secondary: InferenceProvider | None = None
    low_confidence_threshold: float = 0.6

    async def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        """Produce an accepted estimate and record its usage."""
        if request.image_url:
            result = await self._analyze_image(request.image_url, request.description)
        else:
            result = await self._analyze_text(request.description or "")
        return self._finalize(request, result)

    def classify(self, attempt: Attempt) -> Outcome:
        """Classify an attempt for the escalation tables."""
        if attempt.estimate is None:
            return Outcome.FAILED
        score = CONFIDENCE_SCORES[attempt.estimate.confidence]
        if score < self.low_confidence_threshold:
            return Outcome.LOW
        return Outcome.CONFIDENT

    async def _analyze_image(self, image_url: str, hint: str | None) -> AnalysisResult:
        primary = await _attempt(self.primary, image_url, hint)
        step = PRIMARY_POLICY[(self.classify(primary), self.secondary is not None)]
        if step is Step.ACCEPT_PRIMARY:
            return primary.result()
        if step is Step.GIVE_UP or self.secondary is None:
            raise _unable(
                primary, "AI analysis failed. Please check the image and try again."
            )

        _logger.info(
            "Invoking secondary provider: step=%s primary=%s",
            step.value,
            primary.provider.value,
        )
        secondary = await _attempt(self.secondary, image_url, hint)
        resolution = SECONDARY_POLICY[(step, self.classify(secondary))]
        if resolution is Resolution.USE_SECONDARY:
            return secondary.result()
        if resolution is Resolution.USE_PRIMARY:
            _logger.info("Secondary result not more confident; keeping primary")
            return primary.result()
        raise _unable(secondary, "AI model failed to analyze the image")

    async def _analyze_text(self, description: str) -> AnalysisResult:
        attempt = await _attempt(self.text, description, None)
        if attempt.estimate is None:
            raise _unable(
                attempt,
                "Failed to analyze meal description. Please provide more details.",
            )
        return attempt.result()

    def _finalize(
        self, request: AnalysisRequest, result: AnalysisResult
    ) -> AnalysisResult:
        if result.estimate.is_empty():
            subject = "Image" if request.image_url else "Description"
            raise UnableToEstimate(
                f"{subject} does not appear to contain food",
                status_code=NOT_FOOD_STATUS,
            )
        self.ledger.record_usage(request.user_id, result.provider)
        return result


async def _attempt(
    provider: InferenceProvider, subject: str, hint: str | None
) -> Attempt:
    try:
        estimate = await provider.infer(subject, hint)
    except ProviderError as exc:
        _logger.warning(
            "Provider %s failed (%s): %s",
            provider.name.value,
            type(exc).__name__,
            exc.details,
        )
        return Attempt(provider=provider.name, error=exc)
    return Attempt(provider=provider.name, estimate=estimate)


def _unable(attempt: Attempt, details: str) -> UnableToEstimate:
    timed_out = attempt.error is not None and attempt.error.timed_out
    return UnableToEstimate(
        details, status_code=GATEWAY_TIMEOUT if timed_out else None
    )
