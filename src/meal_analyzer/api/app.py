"""FastAPI application factory."""

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from meal_analyzer.api.auth import require_user
from meal_analyzer.api.models import AnalyzeMealResponse, ErrorResponse
from meal_analyzer.app_logging import configure_logging
from meal_analyzer.config import Settings, parse_allowed_origins
from meal_analyzer.containers import AppContainer
from meal_analyzer.domain.errors import MealAnalysisError, ValidationFailure


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    app.add_middleware(
        CORSMiddleware,
        allow_origins=parse_allowed_origins(container.settings.cors_allow_origins),
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )

    @app.exception_handler(MealAnalysisError)
    async def handle_analysis_error(
        request: Request, exc: MealAnalysisError
    ) -> JSONResponse:
        if exc.status_code >= 500:  # noqa: PLR2004
            logger.error("Request failed: %s (%s)", exc.message, exc.details)
        return _error_response(exc.status_code, exc.message, exc.details)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post(
        "/analyze-meal",
        response_model=AnalyzeMealResponse,
        response_model_exclude_none=True,
    )
    async def analyze_meal(
        request: Request, user_id: UUID = Depends(require_user)
    ) -> AnalyzeMealResponse:
        """Estimate macros for a meal photo or description."""
        state_container: AppContainer = request.app.state.container
        payload = await _read_json(request)
        try:
            admission = await state_container.request_gate.admit(payload, user_id)
            result = await state_container.orchestrator.analyze(admission.request)
        except MealAnalysisError:
            raise
        except Exception as exc:
            logger.exception("Meal analysis failed", extra={"user_id": str(user_id)})
            raise MealAnalysisError(
                "Internal server error",
                _debug_detail(state_container.settings, exc),
            ) from exc

        logger.info(
            "Meal analyzed: user_id=%s provider=%s confidence=%s "
            "calls_today=%s month_cost=%s",
            user_id,
            result.provider.value,
            result.estimate.confidence.value,
            admission.daily_count + 1,
            admission.monthly_cost,
        )
        if state_container.meal_history_service is not None:
            try:
                state_container.meal_history_service.save(admission.request, result)
            except Exception:
                logger.exception("Failed to save meal", extra={"user_id": str(user_id)})
        return AnalyzeMealResponse.from_result(result)

    return app


async def _read_json(request: Request) -> object:
    """Return the decoded JSON body or raise a validation failure."""
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValidationFailure("Request body must be a JSON object") from exc


def _error_response(
    status_code: int, error: str, details: str | None = None
) -> JSONResponse:
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(
        status_code=status_code, content=body.model_dump(exclude_none=True)
    )


def _debug_detail(settings: Settings, exc: Exception) -> str | None:
    """Expose exception text to callers only in local development."""
    if settings.environment == "local":
        return f"{type(exc).__name__}: {exc}".strip()
    return None
