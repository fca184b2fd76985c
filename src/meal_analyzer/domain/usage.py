"""Usage accounting domain models."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID


@dataclass(frozen=True)
class UsageRecord:
    """AI usage for one user on one calendar day."""

    user_id: UUID
    usage_date: date
    calls: int
    estimated_cost: Decimal
