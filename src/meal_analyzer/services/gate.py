"""Admission control for analysis requests."""

import logging
import re
from dataclasses import dataclass
from decimal import Decimal
from urllib.parse import urlsplit
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_core import PydanticCustomError

from meal_analyzer.adapters.image_client import ImageClient
from meal_analyzer.domain.errors import (
    CostLimitExceeded,
    IdentityMismatch,
    ImageUnreachable,
    RateLimitExceeded,
    ValidationFailure,
)
from meal_analyzer.domain.requests import Admission, AnalysisRequest
from meal_analyzer.services.usage import UsageLedger

MIN_DESCRIPTION_LENGTH = 10

_UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)

_logger = logging.getLogger(__name__)


class AnalyzeMealPayload(BaseModel):
    """Inbound JSON body of an analysis request."""

    model_config = ConfigDict(strict=True, extra="ignore")

    user_id: str
    image_url: str | None = None
    description: str | None = None

    @field_validator("user_id")
    @classmethod
    def _check_user_id(cls, value: str) -> str:
        if not _UUID_PATTERN.match(value):
            raise PydanticCustomError("uuid_format", "must be a valid UUID")
        return value

    @field_validator("image_url")
    @classmethod
    def _check_image_url(cls, value: str | None) -> str | None:
        if not value:
            return None
        parts = urlsplit(value)
        if parts.scheme not in {"http", "https"} or not parts.netloc:
            raise PydanticCustomError("url_scheme", "must be a valid HTTP/HTTPS URL")
        return value

    @field_validator("description")
    @classmethod
    def _strip_description(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @model_validator(mode="after")
    def _check_inputs(self) -> "AnalyzeMealPayload":
        if not self.image_url and not self.description:
            raise PydanticCustomError(
                "missing_input", "Either image_url or description must be provided"
            )
        if not self.image_url and len(self.description or "") < MIN_DESCRIPTION_LENGTH:
            raise PydanticCustomError(
                "description_length",
                "Description must be at least {min_length} characters "
                "for text-only analysis",
                {"min_length": MIN_DESCRIPTION_LENGTH},
            )
        return self


def parse_request(payload: object) -> AnalysisRequest:
    """Validate a raw JSON body into an ``AnalysisRequest``."""
    if not isinstance(payload, dict):
        raise ValidationFailure("Request body must be a JSON object")
    try:
        parsed = AnalyzeMealPayload.model_validate(payload)
    except ValidationError as exc:
        raise ValidationFailure(_first_error(exc)) from exc
    return AnalysisRequest(
        user_id=UUID(parsed.user_id),
        image_url=parsed.image_url,
        description=parsed.description,
    )


@dataclass
class RequestGate:
    """Validates, authorizes and admits analysis requests before inference."""

    ledger: UsageLedger
    image_client: ImageClient
    daily_limit: int
    monthly_cost_limit: Decimal
    probe_timeout_seconds: float = 5.0

    async def admit(self, payload: object, authenticated_user_id: UUID) -> Admission:
        """Return an admission or raise the first failing check's error."""
        request = parse_request(payload)
        if request.user_id != authenticated_user_id:
            raise IdentityMismatch()

        daily_count = self.ledger.daily_count(request.user_id)
        if daily_count >= self.daily_limit:
            raise RateLimitExceeded(
                "Daily rate limit exceeded. "
                f"Max {self.daily_limit} AI analyses per day."
            )

        monthly_cost = self.ledger.monthly_cost()
        if monthly_cost >= self.monthly_cost_limit:
            _logger.warning(
                "Monthly cost ceiling reached: cost=%s limit=%s",
                monthly_cost,
                self.monthly_cost_limit,
            )
            raise CostLimitExceeded(
                f"Monthly cost limit reached ({self.monthly_cost_limit} INR). "
                "Please try again next month."
            )

        if request.image_url:
            await self._probe_image(request.image_url)
        return Admission(
            request=request, daily_count=daily_count, monthly_cost=monthly_cost
        )

    async def _probe_image(self, url: str) -> None:
        probe = await self.image_client.probe(url, timeout=self.probe_timeout_seconds)
        if not 200 <= probe.status_code < 300:  # noqa: PLR2004
            raise ImageUnreachable(f"Image URL returned status {probe.status_code}")
        if not probe.is_image:
            raise ImageUnreachable(
                "URL does not point to an image", f"content-type {probe.content_type}"
            )


def _first_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error.get("loc", ()))
    message = error.get("msg", "Invalid request")
    return f"{location}: {message}" if location else message
