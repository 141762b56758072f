"""
Token usage accounting and cost estimation for Gemini calls.
"""

from dataclasses import dataclass

from config import PRICE_PER_1M_INPUT_TOKENS, PRICE_PER_1M_OUTPUT_TOKENS


@dataclass(frozen=True)
class TokenUsage:
    """Token counts reported for one or more model calls."""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def __add__(self, other: "TokenUsage") -> "TokenUsage":
        if not isinstance(other, TokenUsage):
            return NotImplemented
        return TokenUsage(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )

    @staticmethod
    def combine(a: "TokenUsage", b: "TokenUsage") -> "TokenUsage":
        return a + b

    @classmethod
    def from_metadata(cls, metadata) -> "TokenUsage":
        """Build usage from a genai ``usage_metadata`` object (missing fields count as 0)."""
        if metadata is None:
            return cls()
        return cls(
            prompt_tokens=getattr(metadata, "prompt_token_count", None) or 0,
            completion_tokens=getattr(metadata, "candidates_token_count", None) or 0,
            total_tokens=getattr(metadata, "total_token_count", None) or 0,
        )


def estimate_cost(
    usage: TokenUsage,
    input_price: float = PRICE_PER_1M_INPUT_TOKENS,
    output_price: float = PRICE_PER_1M_OUTPUT_TOKENS,
) -> float:
    """Estimated USD cost of the given usage."""
    input_cost = usage.prompt_tokens / 1_000_000 * input_price
    output_cost = usage.completion_tokens / 1_000_000 * output_price
    return input_cost + output_cost


def format_cost(cost: float) -> str:
    """Format a cost as ``$X.XXXX``."""
    return f"${cost:.4f}"


def parse_cost(value) -> float:
    """Parse a ``$X.XXXX`` string back into a float. Empty/missing -> 0.0."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip().lstrip("$").strip()
    if not text:
        return 0.0
    return float(text)
