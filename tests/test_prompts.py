"""Tests for prompt rendering."""

from purchase_guard.advisor.prompts import SYSTEM_PROMPT, build_messages, build_prompt
from purchase_guard.advisor.types import ProductInfo, UserProfile


def test_minimal_product():
    prompt = build_prompt(ProductInfo(name="Widget", price=49.99, currency="USD"))
    assert "Product: Widget" in prompt
    assert "Price: USD 49.99" in prompt
    assert "Original Price" not in prompt
    assert "Category" not in prompt
    assert "Urgency Indicators" not in prompt
    assert "Financial Goals" not in prompt


def test_optional_product_fields():
    product = ProductInfo(
        name="Headphones",
        price=199.0,
        currency="EUR",
        original_price=399.0,
        category="Electronics",
        urgency_indicators=["Only 2 left", "Sale ends in 10 minutes"],
    )
    prompt = build_prompt(product)
    assert "Original Price: EUR 399.00" in prompt
    assert "Category: Electronics" in prompt
    assert "Urgency Indicators Found: Only 2 left, Sale ends in 10 minutes" in prompt


def test_user_profile_sections():
    profile = UserProfile(financial_goals=["Pay off debt", "Save for house"], monthly_budget=2500, savings_goal=10000)
    prompt = build_prompt(ProductInfo(name="Watch", price=300, currency="USD"), profile)
    assert "User's Financial Goals: Pay off debt, Save for house" in prompt
    assert "Monthly Budget: USD 2,500.00" in prompt
    assert "Savings Goal: USD 10,000.00" in prompt


def test_empty_profile_adds_nothing():
    product = ProductInfo(name="Watch", price=300, currency="USD")
    assert build_prompt(product, UserProfile()) == build_prompt(product)


def test_schema_lists_every_field_and_enum():
    prompt = build_prompt(ProductInfo(name="Widget", price=1, currency="USD"))
    for name in (
        '"isEssential"',
        '"essentialityScore"',
        '"reasoning"',
        '"warnings"',
        '"personalizedMessage"',
        '"suggestedAction"',
        '"fake_discount"',
        '"urgency_manipulation"',
        '"inflated_price"',
        '"proceed"',
        '"cooldown"',
        '"skip"',
    ):
        assert name in prompt
    assert "number (0-1" in prompt


def test_deterministic():
    product = ProductInfo(name="Widget {x}", price=10, currency="USD", urgency_indicators=["{y}"])
    assert build_prompt(product) == build_prompt(product)
    assert "Widget {x}" in build_prompt(product)


def test_build_messages():
    product = ProductInfo(name="Widget", price=10, currency="USD")
    messages = build_messages(product)
    assert [m["role"] for m in messages] == ["system", "user"]
    assert messages[0]["content"] == SYSTEM_PROMPT
    assert messages[1]["content"] == build_prompt(product)
