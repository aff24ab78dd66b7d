"""Core types and DTOs for the purchase advisor."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class WarningType(str, Enum):
    """Pricing tactics the model may flag."""

    FAKE_DISCOUNT = "fake_discount"
    URGENCY_MANIPULATION = "urgency_manipulation"
    INFLATED_PRICE = "inflated_price"


class SuggestedAction(str, Enum):
    """What the user is advised to do with the purchase."""

    PROCEED = "proceed"
    COOLDOWN = "cooldown"  # Wait before deciding (safe default)
    SKIP = "skip"


class ResultSource(str, Enum):
    """Where an AnalysisResult came from."""

    MODEL = "model"
    FALLBACK = "fallback"


class CallStatus(str, Enum):
    """Outcome of a single chat completion call."""

    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"
    VENDOR_ERROR = "vendor_error"  # Network error or non-2xx status
    TIMEOUT = "timeout"
    MALFORMED = "malformed"  # 2xx but no usable choices[0].message.content


# ---------------------------------------------------------------------------
# Request side
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProductInfo:
    """The item the user is about to buy."""

    name: str
    price: float
    currency: str = "USD"
    original_price: float | None = None
    category: str | None = None
    urgency_indicators: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class UserProfile:
    """Optional financial context about the user."""

    financial_goals: list[str] = field(default_factory=list)
    monthly_budget: float | None = None
    savings_goal: float | None = None


@dataclass(frozen=True)
class AnalysisRequest:
    product: ProductInfo
    user_profile: UserProfile | None = None


# ---------------------------------------------------------------------------
# Result side
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PricingWarning:
    type: WarningType = WarningType.INFLATED_PRICE
    confidence: float = 0.5
    explanation: str = ""

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "confidence": self.confidence,
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class OpportunityCost:
    """What the money could become if invested instead of spent."""

    amount: float = 0.0
    years5: float = 0.0
    years10: float = 0.0
    years20: float = 0.0
    comparison_text: str = ""

    def to_dict(self) -> dict:
        return {
            "amount": self.amount,
            "projections": {
                "years5": self.years5,
                "years10": self.years10,
                "years20": self.years20,
            },
            "comparisonText": self.comparison_text,
        }


@dataclass(frozen=True)
class AnalysisResult:
    """Final answer handed to the caller.

    Every field is always present and within range, whatever the model
    returned. Instances are never mutated after being returned.
    """

    is_essential: bool
    essentiality_score: float
    reasoning: str
    warnings: tuple[PricingWarning, ...]
    opportunity_cost: OpportunityCost
    personalized_message: str
    suggested_action: SuggestedAction
    source: ResultSource = ResultSource.MODEL

    def to_dict(self) -> dict:
        """Serialize to the camelCase JSON shape used by the frontend."""
        return {
            "isEssential": self.is_essential,
            "essentialityScore": self.essentiality_score,
            "reasoning": self.reasoning,
            "warnings": [w.to_dict() for w in self.warnings],
            "opportunityCost": self.opportunity_cost.to_dict(),
            "personalizedMessage": self.personalized_message,
            "suggestedAction": self.suggested_action.value,
            "source": self.source.value,
        }


# ---------------------------------------------------------------------------
# Completion call result
# ---------------------------------------------------------------------------


@dataclass
class CompletionResponse:
    """Result of one chat completion call.

    Transport problems are reported through ``status`` instead of raised.
    """

    status: CallStatus = CallStatus.SUCCESS
    content: str = ""
    model_version: str = ""

    latency_ms: int = 0
    input_tokens: int = 0
    output_tokens: int = 0

    # Error details (if status != SUCCESS)
    error_code: str = ""  # e.g. "429", "503"
    error_message: str = ""

    @property
    def ok(self) -> bool:
        return self.status == CallStatus.SUCCESS
