"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from meal_analyzer.adapters.gemini_client import GeminiClient
from meal_analyzer.adapters.image_client import ImageClient
from meal_analyzer.config import Settings
from meal_analyzer.containers import AppContainer
from meal_analyzer.domain.errors import (
    ImageUnreachable,
    InvalidCredentials,
    ProviderError,
)
from meal_analyzer.domain.estimates import (
    AnalysisResult,
    Confidence,
    MacroEstimate,
    Provider,
)
from meal_analyzer.domain.images import FetchedImage, ImageProbe
from meal_analyzer.domain.usage import UsageRecord
from meal_analyzer.services.auth import TokenVerifier
from meal_analyzer.services.gate import RequestGate
from meal_analyzer.services.meals import MealHistoryService, MealRepository
from meal_analyzer.services.orchestrator import MealAnalysisOrchestrator
from meal_analyzer.services.providers import InferenceProvider, VisionChatClient
from meal_analyzer.services.usage import UsageLedger, UsageRepository

TODAY = date(2026, 3, 14)
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"jpeg-body"
VALID_TOKEN = "valid-token"


def make_estimate(  # noqa: PLR0913
    confidence: str = "medium",
    calories: int = 520,
    protein: float = 18.5,
    carbs: float = 64.0,
    fat: float = 14.2,
    description: str | None = "Dal rice with roti",
) -> MacroEstimate:
    return MacroEstimate(
        calories=calories,
        protein=protein,
        carbs=carbs,
        fat=fat,
        confidence=Confidence(confidence),
        description=description,
    )


@dataclass
class InMemoryUsageRepository(UsageRepository):
    """In-memory usage repository for tests."""

    records: dict[tuple[UUID, date], UsageRecord] = field(default_factory=dict)
    reads: int = 0

    def seed(self, user_id: UUID, usage_date: date, calls: int, cost: str) -> None:
        self.records[(user_id, usage_date)] = UsageRecord(
            user_id=user_id,
            usage_date=usage_date,
            calls=calls,
            estimated_cost=Decimal(cost),
        )

    def get_usage(self, user_id: UUID, usage_date: date) -> UsageRecord | None:
        self.reads += 1
        return self.records.get((user_id, usage_date))

    def list_costs_since(self, start: date) -> list[Decimal]:
        self.reads += 1
        return [
            record.estimated_cost
            for record in self.records.values()
            if record.usage_date >= start
        ]

    def increment_usage(self, user_id: UUID, usage_date: date, cost: Decimal) -> None:
        current = self.records.get((user_id, usage_date))
        if current is None:
            self.records[(user_id, usage_date)] = UsageRecord(
                user_id=user_id, usage_date=usage_date, calls=1, estimated_cost=cost
            )
            return
        self.records[(user_id, usage_date)] = UsageRecord(
            user_id=user_id,
            usage_date=usage_date,
            calls=current.calls + 1,
            estimated_cost=current.estimated_cost + cost,
        )


@dataclass
class FakeImageClient(ImageClient):
    """Fake image client with a canned probe and download."""

    probe_result: ImageProbe = field(
        default_factory=lambda: ImageProbe(status_code=200, content_type="image/jpeg")
    )
    content: bytes = JPEG_BYTES
    fetch_error: ImageUnreachable | None = None
    probed: list[str] = field(default_factory=list)
    fetched: list[str] = field(default_factory=list)

    async def probe(self, url: str, timeout: float) -> ImageProbe:
        self.probed.append(url)
        return self.probe_result

    async def fetch(self, url: str, timeout: float) -> FetchedImage:
        self.fetched.append(url)
        if self.fetch_error is not None:
            raise self.fetch_error
        return FetchedImage(content=self.content, content_type="image/jpeg")


@dataclass
class ScriptedProvider(InferenceProvider):
    """Provider returning (or raising) scripted outcomes in order."""

    name: Provider
    outcomes: list[MacroEstimate | ProviderError] = field(default_factory=list)
    calls: list[tuple[str, str | None]] = field(default_factory=list)

    async def infer(self, subject: str, hint: str | None = None) -> MacroEstimate:
        self.calls.append((subject, hint))
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, ProviderError):
            raise outcome
        return outcome


@dataclass
class FakeGeminiClient(GeminiClient):
    """Fake Gemini client that records requests."""

    reply: str = (
        '{"calories": 520, "protein": 18.54, "carbs": 64, "fat": 14.25, '
        '"confidence": "high", "meal_description": "Dal rice with roti"}'
    )
    requests: list[dict[str, object]] = field(default_factory=list)

    async def generate_content(
        self,
        *,
        system_instruction: str,
        parts: list[dict[str, object]],
        temperature: float,
        max_output_tokens: int,
        timeout: float,
    ) -> str:
        self.requests.append(
            {
                "system_instruction": system_instruction,
                "parts": parts,
                "temperature": temperature,
                "max_output_tokens": max_output_tokens,
                "timeout": timeout,
            }
        )
        return self.reply


@dataclass
class FakeVisionChatClient(VisionChatClient):
    """Fake OpenAI-style vision client."""

    reply: str = (
        '{"calories": 610, "protein": 22, "carbs": 70, "fat": 20, '
        '"confidence": "medium"}'
    )
    requests: list[dict[str, object]] = field(default_factory=list)

    async def complete(  # noqa: PLR0913
        self,
        *,
        model: str,
        system_instruction: str,
        prompt: str,
        image_url: str,
        timeout: float,
    ) -> str:
        self.requests.append(
            {
                "model": model,
                "system_instruction": system_instruction,
                "prompt": prompt,
                "image_url": image_url,
                "timeout": timeout,
            }
        )
        return self.reply


@dataclass
class FakeTokenVerifier(TokenVerifier):
    """Token verifier backed by a static token map."""

    tokens: dict[str, UUID] = field(default_factory=dict)

    def resolve_user_id(self, token: str) -> UUID:
        if token not in self.tokens:
            raise InvalidCredentials(details="invalid JWT")
        return self.tokens[token]


@dataclass
class InMemoryMealRepository(MealRepository):
    """In-memory meal repository for tests."""

    meals: dict[UUID, dict[str, object]] = field(default_factory=dict)

    def create_meal(
        self,
        user_id: UUID,
        image_url: str | None,
        description: str | None,
        result: AnalysisResult,
    ) -> UUID:
        meal_id = uuid4()
        self.meals[meal_id] = {
            "user_id": user_id,
            "image_url": image_url,
            "description": description,
            "calories": result.estimate.calories,
        }
        return meal_id


def build_ledger(repository: UsageRepository) -> UsageLedger:
    return UsageLedger(
        repository=repository,
        costs_per_call={
            Provider.GEMINI: Decimal("0.03"),
            Provider.OPENAI: Decimal("0.09"),
        },
        today=lambda: TODAY,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        gemini_api_key="gemini-key",
        environment="local",
    )


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def usage_repository() -> InMemoryUsageRepository:
    return InMemoryUsageRepository()


@pytest.fixture
def ledger(usage_repository: InMemoryUsageRepository) -> UsageLedger:
    return build_ledger(usage_repository)


@pytest.fixture
def image_client() -> FakeImageClient:
    return FakeImageClient()


@pytest.fixture
def primary() -> ScriptedProvider:
    return ScriptedProvider(name=Provider.GEMINI)


@pytest.fixture
def secondary() -> ScriptedProvider:
    return ScriptedProvider(name=Provider.OPENAI)


@pytest.fixture
def text_provider() -> ScriptedProvider:
    return ScriptedProvider(name=Provider.GEMINI)


@pytest.fixture
def token_verifier(user_id: UUID) -> FakeTokenVerifier:
    return FakeTokenVerifier(tokens={VALID_TOKEN: user_id})


@pytest.fixture
def meal_repository() -> InMemoryMealRepository:
    return InMemoryMealRepository()


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    ledger: UsageLedger,
    image_client: FakeImageClient,
    primary: ScriptedProvider,
    secondary: ScriptedProvider,
    text_provider: ScriptedProvider,
    token_verifier: FakeTokenVerifier,
) -> AppContainer:
    request_gate = RequestGate(
        ledger=ledger,
        image_client=image_client,
        daily_limit=settings.rate_limit_daily,
        monthly_cost_limit=settings.cost_limit_monthly,
    )
    orchestrator = MealAnalysisOrchestrator(
        primary=primary,
        text=text_provider,
        secondary=secondary,
        ledger=ledger,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        token_verifier=token_verifier,
        usage_ledger=ledger,
        request_gate=request_gate,
        orchestrator=orchestrator,
        meal_history_service=None,
        close_resources=close_resources,
    )


@pytest.fixture
def history_container(
    container: AppContainer, meal_repository: InMemoryMealRepository
) -> AppContainer:
    container.meal_history_service = MealHistoryService(meal_repository)
    return container
