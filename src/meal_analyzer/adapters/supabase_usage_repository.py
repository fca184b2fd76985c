"""Supabase repository for AI usage records."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from supabase import Client

from meal_analyzer.domain.usage import UsageRecord
from meal_analyzer.services.usage import UsageRepository


@dataclass
class SupabaseUsageRepository(UsageRepository):
    """Supabase implementation backed by the ``ai_usage`` table.

    Without ``increment_function`` the increment is a read followed by an
    update or insert, so two concurrent requests from the same user can lose
    one increment. Naming a Postgres function that upserts atomically moves
    the increment into a single ``rpc`` call.
    """

    client: Client
    increment_function: str | None = None

    def get_usage(self, user_id: UUID, usage_date: date) -> UsageRecord | None:
        """Return the usage row for the user and day, if present."""
        response = (
            self.client.table("ai_usage")
            .select("user_id, usage_date, calls, estimated_cost")
            .eq("user_id", str(user_id))
            .eq("usage_date", usage_date.isoformat())
            .limit(1)
            .execute()
        )
        if response.data:
            return _parse_row(response.data[0])
        return None

    def list_costs_since(self, start: date) -> list[Decimal]:
        """Return estimated costs for rows dated on or after start."""
        response = (
            self.client.table("ai_usage")
            .select("estimated_cost")
            .gte("usage_date", start.isoformat())
            .execute()
        )
        return [_to_decimal(row.get("estimated_cost")) for row in response.data or []]

    def increment_usage(self, user_id: UUID, usage_date: date, cost: Decimal) -> None:
        """Increment calls and add cost for the user's day."""
        if self.increment_function:
            self.client.rpc(
                self.increment_function,
                {
                    "p_user_id": str(user_id),
                    "p_usage_date": usage_date.isoformat(),
                    "p_cost": float(cost),
                },
            ).execute()
            return

        existing = self.get_usage(user_id, usage_date)
        if existing:
            self.client.table("ai_usage").update(
                {
                    "calls": existing.calls + 1,
                    "estimated_cost": float(existing.estimated_cost + cost),
                }
            ).eq("user_id", str(user_id)).eq(
                "usage_date", usage_date.isoformat()
            ).execute()
            return

        self.client.table("ai_usage").insert(
            {
                "user_id": str(user_id),
                "usage_date": usage_date.isoformat(),
                "calls": 1,
                "estimated_cost": float(cost),
            }
        ).execute()


def _parse_row(row: dict[str, object]) -> UsageRecord:
    return UsageRecord(
        user_id=UUID(str(row["user_id"])),
        usage_date=date.fromisoformat(str(row["usage_date"])),
        calls=int(row.get("calls") or 0),
        estimated_cost=_to_decimal(row.get("estimated_cost")),
    )


def _to_decimal(value: object) -> Decimal:
    if value is None:
        return Decimal(0)
    return Decimal(str(value))
