"""Validated analysis request models."""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True)
class AnalysisRequest:
    """Inbound analysis request after structural validation."""

    user_id: UUID
    image_url: str | None = None
    description: str | None = None

    @property
    def is_image(self) -> bool:
        """Return true when the request carries an image."""
        return self.image_url is not None


@dataclass(frozen=True)
class Admission:
    """Admitted request with the ledger readings observed at admission."""

    request: AnalysisRequest
    daily_count: int
    monthly_cost: Decimal
