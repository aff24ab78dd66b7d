"""Pydantic schemas for the purchase analysis API.

Field names are camelCase on the wire (``originalPrice``, ``userProfile``);
snake_case names are accepted too.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from purchase_guard.advisor.normalizer import utf8_safe
from purchase_guard.advisor.types import AnalysisRequest, ProductInfo, UserProfile


def _utf8_safe_input(value):
    return utf8_safe(value) if isinstance(value, str) else value


# Request text ends up in prompts, logs and responses, all UTF-8 encoded
SafeStr = Annotated[str, BeforeValidator(_utf8_safe_input)]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductIn(_CamelModel):
    name: SafeStr = Field(min_length=1, max_length=500)
    price: float = Field(ge=0, allow_inf_nan=False)
    currency: SafeStr = Field("USD", min_length=1, max_length=8)
    original_price: float | None = Field(None, ge=0, allow_inf_nan=False)
    category: SafeStr | None = Field(None, max_length=255)
    urgency_indicators: list[SafeStr] = Field(default_factory=list, max_length=50)

    def to_product(self) -> ProductInfo:
        return ProductInfo(
            name=self.name,
            price=self.price,
            currency=self.currency,
            original_price=self.original_price,
            category=self.category,
            urgency_indicators=list(self.urgency_indicators),
        )


class UserProfileIn(_CamelModel):
    financial_goals: list[SafeStr] = Field(default_factory=list, max_length=50)
    monthly_budget: float | None = Field(None, ge=0, allow_inf_nan=False)
    savings_goal: float | None = Field(None, ge=0, allow_inf_nan=False)

    def to_profile(self) -> UserProfile:
        return UserProfile(
            financial_goals=list(self.financial_goals),
            monthly_budget=self.monthly_budget,
            savings_goal=self.savings_goal,
        )


class AnalyzeRequest(_CamelModel):
    product: ProductIn
    user_profile: UserProfileIn | None = None

    def to_request(self) -> AnalysisRequest:
        return AnalysisRequest(
            product=self.product.to_product(),
            user_profile=self.user_profile.to_profile() if self.user_profile else None,
        )


class PricingWarningOut(BaseModel):
    type: str
    confidence: float
    explanation: str


class ProjectionsOut(BaseModel):
    years5: float
    years10: float
    years20: float


class OpportunityCostOut(BaseModel):
    amount: float
    projections: ProjectionsOut
    comparisonText: str


class AnalysisResultOut(BaseModel):
    isEssential: bool
    essentialityScore: float
    reasoning: str
    warnings: list[PricingWarningOut]
    opportunityCost: OpportunityCostOut
    personalizedMessage: str
    suggestedAction: str
    source: str
