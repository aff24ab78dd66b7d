"""Response Normalizer: turns raw model text into an AnalysisResult.

Model output is untrusted. Every field is coerced on its own with a fixed
default, so the result is always complete and in range:
  - essentialityScore and warning confidences clamped to [0, 1]
  - suggestedAction restricted to proceed / cooldown / skip
  - opportunityCost always recomputed locally, never read from the reply
  - text fields stripped of lone surrogates so they encode as UTF-8

Unparseable replies resolve to the fixed fallback result. Nothing in this
module raises. ``normalize`` is pure: same input, same output.
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any

from purchase_guard.advisor.opportunity_cost import CompoundGrowthCalculator, OpportunityCostCalculator
from purchase_guard.advisor.types import (
    AnalysisResult,
    PricingWarning,
    ProductInfo,
    ResultSource,
    SuggestedAction,
    WarningType,
)

logger = logging.getLogger(__name__)

# ```json ... ``` or ``` ... ```
_FENCE_PATTERN = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)

DEFAULT_SCORE = 0.5
DEFAULT_CONFIDENCE = 0.5
DEFAULT_REASONING = "Unable to analyze"
DEFAULT_MESSAGE = "Consider your financial goals before purchasing."
DEFAULT_WARNING_TYPE = WarningType.INFLATED_PRICE
DEFAULT_ACTION = SuggestedAction.COOLDOWN

FALLBACK_REASONING = "We couldn't analyze this purchase right now. Consider waiting 24 hours before deciding."
FALLBACK_MESSAGE = "Take a moment to reflect on whether you truly need this item."

_default_calculator = CompoundGrowthCalculator()


def fallback_result(
    product: ProductInfo,
    calculator: OpportunityCostCalculator | None = None,
) -> AnalysisResult:
    """The fixed safe result, with a freshly computed opportunity cost."""
    calculator = calculator or _default_calculator
    return AnalysisResult(
        is_essential=False,
        essentiality_score=DEFAULT_SCORE,
        reasoning=FALLBACK_REASONING,
        warnings=(),
        opportunity_cost=calculator.calculate(product.price, product.currency),
        personalized_message=FALLBACK_MESSAGE,
        suggested_action=DEFAULT_ACTION,
        source=ResultSource.FALLBACK,
    )


def normalize(
    raw_text: str,
    product: ProductInfo,
    calculator: OpportunityCostCalculator | None = None,
) -> AnalysisResult:
    """Parse and coerce a model reply into an AnalysisResult."""
    parsed = _parse_object(raw_text)
    if parsed is None:
        logger.warning("Unparseable model reply, using fallback: %r", _preview(raw_text))
        return fallback_result(product, calculator)

    calculator = calculator or _default_calculator
    return AnalysisResult(
        is_essential=bool(parsed.get("isEssential")),
        essentiality_score=coerce_unit_interval(parsed.get("essentialityScore"), DEFAULT_SCORE),
        reasoning=coerce_text(parsed.get("reasoning"), DEFAULT_REASONING),
        warnings=coerce_warnings(parsed.get("warnings")),
        opportunity_cost=calculator.calculate(product.price, product.currency),
        personalized_message=coerce_text(parsed.get("personalizedMessage"), DEFAULT_MESSAGE),
        suggested_action=coerce_action(parsed.get("suggestedAction")),
        source=ResultSource.MODEL,
    )


def strip_code_fence(text: str) -> str:
    """Return the inside of the first fenced block, or the text itself."""
    match = _FENCE_PATTERN.search(text)
    if match:
        return match.group(1)
    return text


def _parse_object(raw_text: Any) -> dict | None:
    if not isinstance(raw_text, str):
        return None
    try:
        parsed = json.loads(strip_code_fence(raw_text).strip())
    except (ValueError, RecursionError):
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed


def _preview(text: Any, limit: int = 200) -> str:
    text = text if isinstance(text, str) else repr(text)
    return text[:limit]


# ---------------------------------------------------------------------------
# Field coercion
# ---------------------------------------------------------------------------


def coerce_number(value: Any) -> float | None:
    """Numeric value of a JSON scalar, or None if it has none.

    bool → 0/1, int/float as is, numeric strings parsed. NaN has no value.
    """
    if isinstance(value, bool):
        number = float(value)
    elif isinstance(value, int):
        try:
            number = float(value)
        except OverflowError:
            number = math.inf if value > 0 else -math.inf
    elif isinstance(value, float):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number):
        return None
    return number


def coerce_unit_interval(value: Any, default: float) -> float:
    """Number clamped to [0, 1]; ``default`` when not numeric."""
    number = coerce_number(value)
    if number is None:
        return default
    return max(0.0, min(1.0, number))


def utf8_safe(text: str) -> str:
    """Replace characters UTF-8 cannot encode (lone surrogates) with ``?``."""
    return text.encode("utf-8", "replace").decode("utf-8")


def coerce_text(value: Any, default: str) -> str:
    """Non-empty, UTF-8 encodable string; ``default`` for missing, null or blank values."""
    if value is None or value is False:
        return default
    if isinstance(value, str):
        return utf8_safe(value) if value.strip() else default
    if isinstance(value, (bool, int, float)):
        return str(value)
    try:
        return utf8_safe(json.dumps(value, ensure_ascii=False, default=str))
    except (ValueError, RecursionError):
        return default


def coerce_action(value: Any) -> SuggestedAction:
    if isinstance(value, str):
        for action in SuggestedAction:
            if value == action.value:
                return action
    return DEFAULT_ACTION


def coerce_warning_type(value: Any) -> WarningType:
    if isinstance(value, str):
        for warning_type in WarningType:
            if value == warning_type.value:
                return warning_type
    return DEFAULT_WARNING_TYPE


def coerce_warning(entry: Any) -> PricingWarning:
    if not isinstance(entry, dict):
        entry = {}
    return PricingWarning(
        type=coerce_warning_type(entry.get("type")),
        confidence=coerce_unit_interval(entry.get("confidence"), DEFAULT_CONFIDENCE),
        explanation=coerce_text(entry.get("explanation"), ""),
    )


def coerce_warnings(value: Any) -> tuple[PricingWarning, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(coerce_warning(entry) for entry in value)
