"""Defensive normalization of raw model output into macro estimates.

Model output is untrusted free text that is expected to contain a single JSON
object. Everything that can go wrong while turning it into a ``MacroEstimate``
is reported as ``MalformedResponse``; no other exception escapes ``normalize``.
"""

import json
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from meal_analyzer.domain.errors import MalformedResponse
from meal_analyzer.domain.estimates import Confidence, MacroEstimate

_LEADING_FENCES = (
    re.compile(r"^```jsons?\s*", re.IGNORECASE),
    re.compile(r"^```\s*"),
)
_TRAILING_FENCE = re.compile(r"\s*```$")
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_TRAILING_COMMA = re.compile(r",\s*\}?$")

_MACRO_FIELDS = ("calories", "protein", "carbs", "fat")
_TRUNCATED_SNIPPET = 100
_SNIPPET = 200

_MAX_AMOUNT = Decimal(100_000)
_ONE_DECIMAL = Decimal("0.1")
_WHOLE = Decimal("1")


def normalize(raw_text: str, *, provider: str = "unknown") -> MacroEstimate:
    """Parse, validate and round a provider reply into a ``MacroEstimate``."""
    candidate = extract_candidate(raw_text)
    payload = _parse(candidate, provider)
    if not isinstance(payload, dict):
        raise MalformedResponse(
            "Invalid response structure from AI: expected a JSON object",
            provider=provider,
            snippet=candidate[:_SNIPPET],
        )

    values: dict[str, Decimal] = {}
    for field in _MACRO_FIELDS:
        values[field] = _require_amount(payload, field, provider)

    confidence = _require_confidence(payload.get("confidence"), provider)
    return MacroEstimate(
        calories=int(values["calories"].quantize(_WHOLE, rounding=ROUND_HALF_UP)),
        protein=round_grams(values["protein"]),
        carbs=round_grams(values["carbs"]),
        fat=round_grams(values["fat"]),
        confidence=confidence,
        description=_optional_description(payload),
    )


def extract_candidate(raw_text: str) -> str:
    """Strip code fences and locate the JSON object in a model reply."""
    cleaned = raw_text.strip()
    for fence in _LEADING_FENCES:
        cleaned = fence.sub("", cleaned, count=1)
    cleaned = _TRAILING_FENCE.sub("", cleaned).strip()
    if not cleaned.startswith("{"):
        match = _JSON_OBJECT.search(cleaned)
        if match:
            cleaned = match.group(0)
    return cleaned


def round_grams(value: Decimal | float) -> float:
    """Round a gram amount to one decimal place, halves rounding up."""
    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    return float(amount.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def looks_truncated(candidate: str) -> bool:
    """Return true when a candidate payload looks cut off mid-object."""
    return not candidate.endswith("}") or bool(_TRAILING_COMMA.search(candidate))


def _parse(candidate: str, provider: str) -> object:
    try:
        return json.loads(
            candidate,
            parse_float=Decimal,
            parse_int=Decimal,
            parse_constant=_reject_constant,
        )
    except (ValueError, InvalidOperation, RecursionError) as exc:
        if looks_truncated(candidate):
            snippet = candidate[:_TRUNCATED_SNIPPET]
            raise MalformedResponse(
                f"AI response appears truncated. Received: {snippet}...",
                provider=provider,
                possibly_truncated=True,
                snippet=snippet,
            ) from exc
        snippet = candidate[:_SNIPPET]
        raise MalformedResponse(
            f"Failed to parse AI response as JSON. Response: {snippet}",
            provider=provider,
            snippet=snippet,
        ) from exc


def _reject_constant(name: str) -> object:
    raise ValueError(f"Non-finite number {name} is not allowed")


def _require_amount(payload: dict, field: str, provider: str) -> Decimal:
    # Numbers are parsed as Decimal; booleans and strings are rejected here.
    value = payload.get(field)
    if not isinstance(value, Decimal):
        raise MalformedResponse(
            f"Invalid response structure from AI: {field} must be a number",
            provider=provider,
        )
    if value < 0 or value > _MAX_AMOUNT:
        raise MalformedResponse(
            f"Invalid response structure from AI: {field} is out of range",
            provider=provider,
        )
    return value


def _require_confidence(value: object, provider: str) -> Confidence:
    try:
        return Confidence(value)
    except (ValueError, TypeError):
        raise MalformedResponse(
            f"Invalid response structure from AI: confidence {value!r} "
            "is not one of low, medium, high",
            provider=provider,
        ) from None


def _optional_description(payload: dict) -> str | None:
    value = payload.get("meal_description", payload.get("description"))
    if not isinstance(value, str):
        return None
    return value.strip() or None
