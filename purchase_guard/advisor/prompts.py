"""Prompt templates for purchase analysis.

The reply schema embedded in the prompt mirrors the fields and defaults
enforced by ``purchase_guard.advisor.normalizer``.
"""

from __future__ import annotations

from purchase_guard.advisor.types import ProductInfo, UserProfile

SYSTEM_PROMPT = "You are a helpful financial wellness assistant. Always respond with valid JSON."

_ANALYSIS_TEMPLATE = """You are a financial wellness assistant helping users make better purchasing decisions.

Analyze this potential purchase and provide guidance:

{product_block}
{profile_block}
Respond in JSON format with these fields:
{{
  "isEssential": boolean (true if this is a necessary purchase like food, medicine, utilities),
  "essentialityScore": number (0-1, how essential is this purchase),
  "reasoning": string (brief explanation of your assessment),
  "warnings": [
    {{
      "type": "fake_discount" | "urgency_manipulation" | "inflated_price",
      "confidence": number (0-1),
      "explanation": string
    }}
  ],
  "personalizedMessage": string (empathetic message considering user's goals),
  "suggestedAction": "proceed" | "cooldown" | "skip"
}}

Be empathetic but honest. Focus on helping the user achieve their financial goals."""


def _format_amount(value: float) -> str:
    return f"{value:,.2f}"


def _product_lines(product: ProductInfo) -> list[str]:
    lines = [
        f"Product: {product.name}",
        f"Price: {product.currency} {_format_amount(product.price)}",
    ]
    if product.original_price:
        lines.append(f"Original Price: {product.currency} {_format_amount(product.original_price)}")
    if product.category:
        lines.append(f"Category: {product.category}")
    if product.urgency_indicators:
        lines.append(f"Urgency Indicators Found: {', '.join(product.urgency_indicators)}")
    return lines


def _profile_lines(user_profile: UserProfile | None, currency: str) -> list[str]:
    if user_profile is None:
        return []
    lines = []
    if user_profile.financial_goals:
        lines.append(f"User's Financial Goals: {', '.join(user_profile.financial_goals)}")
    if user_profile.monthly_budget:
        lines.append(f"Monthly Budget: {currency} {_format_amount(user_profile.monthly_budget)}")
    if user_profile.savings_goal:
        lines.append(f"Savings Goal: {currency} {_format_amount(user_profile.savings_goal)}")
    return lines


def build_prompt(product: ProductInfo, user_profile: UserProfile | None = None) -> str:
    """Render the user prompt for a purchase analysis. Pure and deterministic."""
    profile = _profile_lines(user_profile, product.currency)
    return _ANALYSIS_TEMPLATE.format(
        product_block="\n".join(_product_lines(product)),
        profile_block="\n".join(profile) + "\n" if profile else "",
    )


def build_messages(product: ProductInfo, user_profile: UserProfile | None = None) -> list[dict[str, str]]:
    """System + user chat messages for one analysis call."""
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": build_prompt(product, user_profile)},
    ]
