"""Per-user daily usage and global monthly spend accounting."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from meal_analyzer.domain.estimates import Provider
from meal_analyzer.domain.usage import UsageRecord

_logger = logging.getLogger(__name__)


class UsageRepository(Protocol):
    """Persistence interface for AI usage records."""

    def get_usage(self, user_id: UUID, usage_date: date) -> UsageRecord | None:
        """Return the usage record for a user and day, if present."""

    def list_costs_since(self, start: date) -> list[Decimal]:
        """Return estimated costs of every record dated on or after start."""

    def increment_usage(self, user_id: UUID, usage_date: date, cost: Decimal) -> None:
        """Add one call and its cost to the day's record, creating it if missing."""


@dataclass
class UsageLedger:
    """Reads and records AI usage for admission control."""

    repository: UsageRepository
    costs_per_call: dict[Provider, Decimal]
    today: Callable[[], date] = field(default=date.today)

    def daily_count(self, user_id: UUID) -> int:
        """Return how many analyses the user consumed today."""
        record = self.repository.get_usage(user_id, self.today())
        return record.calls if record else 0

    def monthly_cost(self) -> Decimal:
        """Return the estimated spend of all users in the current month."""
        start = self.today().replace(day=1)
        return sum(self.repository.list_costs_since(start), Decimal(0))

    def record_usage(self, user_id: UUID, provider: Provider) -> None:
        """Record one accepted inference attributed to the given provider."""
        cost = self.costs_per_call[provider]
        self.repository.increment_usage(user_id, self.today(), cost)
        _logger.info(
            "Recorded AI usage: user_id=%s provider=%s cost=%s",
            user_id,
            provider.value,
            cost,
        )
