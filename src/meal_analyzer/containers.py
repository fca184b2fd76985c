"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from meal_analyzer.adapters.gemini_client import HttpxGeminiClient
from meal_analyzer.adapters.image_client import HttpxImageClient
from meal_analyzer.adapters.openai_vision_client import OpenAIVisionClient
from meal_analyzer.adapters.supabase_meal_repository import SupabaseMealRepository
from meal_analyzer.adapters.supabase_token_verifier import SupabaseTokenVerifier
from meal_analyzer.adapters.supabase_usage_repository import SupabaseUsageRepository
from meal_analyzer.config import Settings
from meal_analyzer.domain.estimates import Provider
from meal_analyzer.services.auth import TokenVerifier
from meal_analyzer.services.gate import RequestGate
from meal_analyzer.services.meals import MealHistoryService
from meal_analyzer.services.orchestrator import MealAnalysisOrchestrator
from meal_analyzer.services.providers import (
    GeminiTextProvider,
    GeminiVisionProvider,
    OpenAIVisionProvider,
)
from meal_analyzer.services.usage import UsageLedger


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    token_verifier: TokenVerifier
    usage_ledger: UsageLedger
    request_gate: RequestGate
    orchestrator: MealAnalysisOrchestrator
    meal_history_service: MealHistoryService | None
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    usage_ledger = UsageLedger(
        repository=SupabaseUsageRepository(
            supabase_client,
            increment_function=resolved_settings.usage_increment_function,
        ),
        costs_per_call={
            Provider.GEMINI: resolved_settings.gemini_cost_per_call,
            Provider.OPENAI: resolved_settings.openai_cost_per_call,
        },
    )
    image_client = HttpxImageClient.create()
    gemini_client = HttpxGeminiClient.create(
        api_key=resolved_settings.gemini_api_key,
        model=resolved_settings.gemini_model,
        base_url=resolved_settings.gemini_base_url,
    )
    openai_client = None
    secondary = None
    if resolved_settings.openai_api_key:
        openai_client = OpenAIVisionClient.create(resolved_settings.openai_api_key)
        secondary = OpenAIVisionProvider(
            client=openai_client,
            model=resolved_settings.openai_model,
            timeout_seconds=resolved_settings.openai_timeout_seconds,
        )
    orchestrator = MealAnalysisOrchestrator(
        primary=GeminiVisionProvider(
            client=gemini_client,
            image_client=image_client,
            timeout_seconds=resolved_settings.gemini_timeout_seconds,
            image_fetch_timeout_seconds=resolved_settings.image_fetch_timeout_seconds,
        ),
        text=GeminiTextProvider(
            client=gemini_client,
            timeout_seconds=resolved_settings.gemini_text_timeout_seconds,
        ),
        secondary=secondary,
        ledger=usage_ledger,
        low_confidence_threshold=resolved_settings.low_confidence_threshold,
    )
    request_gate = RequestGate(
        ledger=usage_ledger,
        image_client=image_client,
        daily_limit=resolved_settings.rate_limit_daily,
        monthly_cost_limit=resolved_settings.cost_limit_monthly,
        probe_timeout_seconds=resolved_settings.image_probe_timeout_seconds,
    )
    meal_history_service = (
        MealHistoryService(SupabaseMealRepository(supabase_client))
        if resolved_settings.save_meals
        else None
    )

    async def close_resources() -> None:
        await image_client.close()
        await gemini_client.close()
        if openai_client is not None:
            await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        token_verifier=SupabaseTokenVerifier(supabase_client),
        usage_ledger=usage_ledger,
        request_gate=request_gate,
        orchestrator=orchestrator,
        meal_history_service=meal_history_service,
        close_resources=close_resources,
    )
