"""Tests for token usage accounting and cost estimation."""

from types import SimpleNamespace

import pytest

from utils.usage import TokenUsage, estimate_cost, format_cost, parse_cost


def test_add_is_pointwise():
    a = TokenUsage(100, 20, 120)
    b = TokenUsage(7, 3, 10)
    combined = TokenUsage.combine(a, b)
    assert combined == TokenUsage(107, 23, 130)
    assert a + b == combined


def test_default_is_zero():
    assert TokenUsage() == TokenUsage(0, 0, 0)


@pytest.mark.parametrize("a,b", [
    (TokenUsage(1_000_000, 0, 1_000_000), TokenUsage(0, 1_000_000, 1_000_000)),
    (TokenUsage(12_345, 678, 13_023), TokenUsage(900, 4_000, 4_900)),
])
def test_cost_is_additive(a, b):
    assert estimate_cost(a + b) == pytest.approx(estimate_cost(a) + estimate_cost(b))


def test_cost_uses_per_million_prices():
    assert estimate_cost(TokenUsage(1_000_000, 0, 1_000_000)) == pytest.approx(0.30)
    assert estimate_cost(TokenUsage(0, 1_000_000, 1_000_000)) == pytest.approx(2.50)
    assert estimate_cost(TokenUsage(2_000_000, 0, 0), input_price=1.0) == pytest.approx(2.0)


def test_from_metadata_defaults_missing_fields_to_zero():
    meta = SimpleNamespace(prompt_token_count=None, candidates_token_count=5)
    assert TokenUsage.from_metadata(meta) == TokenUsage(0, 5, 0)
    assert TokenUsage.from_metadata(None) == TokenUsage()


def test_format_and_parse_cost():
    assert format_cost(0.00312) == "$0.0031"
    assert parse_cost("$0.0031") == pytest.approx(0.0031)
    assert parse_cost(None) == 0.0
    assert parse_cost("") == 0.0
