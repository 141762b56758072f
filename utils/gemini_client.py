"""
Gemini API client for page extraction and explanation generation.

Thin accounting wrapper around google-genai: every call returns the raw text
together with its token usage, and the client keeps a running total so a
whole ingestion or backfill run can report its cost at the end.
"""

import json
import logging
from typing import Any, Optional, Sequence, Tuple

from google import genai
from google.genai import types

from config import GEMINI_MODEL, get_api_key
from pipeline.errors import ConfigurationError, ModelCallError, ModelOutputParseError
from utils.json_repair import sanitize_json_response
from utils.usage import TokenUsage, estimate_cost

logger = logging.getLogger(__name__)

DEFAULT_MODEL = GEMINI_MODEL
JSON_MIME_TYPE = "application/json"


def parse_json_response(text: str) -> Any:
    """
    Parse model output as JSON, repairing it once if needed.

    Raises:
        ModelOutputParseError: if the repaired text still does not parse.
    """
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    sanitized = sanitize_json_response(text)
    try:
        data = json.loads(sanitized)
    except json.JSONDecodeError:
        raise ModelOutputParseError(
            "Failed to parse Gemini response as JSON", raw_text=text
        ) from None

    logger.debug("Recovered malformed JSON response (%d chars)", len(text))
    return data


class GeminiClient:
    """Client for Gemini vision and text calls with token accounting."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        client: Optional[Any] = None,
    ):
        """
        Initialize Gemini client.

        Args:
            api_key: Gemini API key. If not provided, reads from GEMINI_API_KEY env var.
            model: Model to use (default: gemini-2.5-flash)
            client: Pre-built genai client (used by tests)

        Raises:
            ConfigurationError: if no API key is available.
        """
        self.api_key = api_key or get_api_key()
        if not self.api_key:
            raise ConfigurationError(
                "Gemini API key required. Set GEMINI_API_KEY environment variable "
                "or pass api_key parameter."
            )

        self.client = client if client is not None else genai.Client(api_key=self.api_key)
        self.model_name = model
        self._usage = TokenUsage()

    # ------------------------------------------------------------------
    # Usage accounting
    # ------------------------------------------------------------------

    @property
    def cumulative_usage(self) -> TokenUsage:
        return self._usage

    @property
    def cumulative_cost(self) -> float:
        return estimate_cost(self._usage)

    def reset_usage(self) -> None:
        self._usage = TokenUsage()

    # ------------------------------------------------------------------
    # Raw calls
    # ------------------------------------------------------------------

    def _call(self, parts: list, json_output: bool) -> Tuple[str, TokenUsage]:
        """Send one user message and return (text, usage)."""
        contents = [types.Content(role="user", parts=parts)]
        kwargs = {"model": self.model_name, "contents": contents}
        if json_output:
            kwargs["config"] = types.GenerateContentConfig(
                response_mime_type=JSON_MIME_TYPE
            )

        try:
            response = self.client.models.generate_content(**kwargs)
        except Exception as e:
            raise ModelCallError(f"Gemini request failed: {e}") from e

        text = response.text or ""
        usage = TokenUsage.from_metadata(getattr(response, "usage_metadata", None))
        self._usage = self._usage + usage
        logger.debug(
            "Gemini call: %d prompt + %d completion tokens",
            usage.prompt_tokens, usage.completion_tokens,
        )
        return text, usage

    def generate(self, image: bytes, mime_type: str, prompt: str) -> Tuple[str, TokenUsage]:
        """Send one image plus an instruction, asking for JSON output."""
        return self.generate_multi([(image, mime_type)], prompt)

    def generate_multi(
        self, images: Sequence[Tuple[bytes, str]], prompt: str
    ) -> Tuple[str, TokenUsage]:
        """Send several images (in order) plus an instruction, asking for JSON output."""
        parts = [types.Part.from_text(text=prompt)]
        for data, mime_type in images:
            parts.append(types.Part.from_bytes(data=data, mime_type=mime_type))
        return self._call(parts, json_output=True)

    def generate_text(self, prompt: str) -> Tuple[str, TokenUsage]:
        """Text-only call with no structured output hint."""
        return self._call([types.Part.from_text(text=prompt)], json_output=False)

    # ------------------------------------------------------------------
    # JSON calls
    # ------------------------------------------------------------------

    def analyze_image(self, image: bytes, mime_type: str, prompt: str) -> Tuple[Any, TokenUsage]:
        """Image call whose response is parsed as JSON."""
        text, usage = self.generate(image, mime_type, prompt)
        return parse_json_response(text), usage

    def analyze_images(
        self, images: Sequence[Tuple[bytes, str]], prompt: str
    ) -> Tuple[Any, TokenUsage]:
        """Multi-image call whose response is parsed as JSON."""
        text, usage = self.generate_multi(images, prompt)
        return parse_json_response(text), usage

    def generate_json(self, prompt: str) -> Tuple[Any, TokenUsage]:
        """Text call requesting JSON output; malformed JSON is repaired once."""
        text, usage = self._call([types.Part.from_text(text=prompt)], json_output=True)
        return parse_json_response(text), usage

    def test_connection(self) -> bool:
        """Test if API connection works."""
        try:
            text, _ = self.generate_text("Reply with just 'OK' if you can read this.")
        except ModelCallError as e:
            logger.error("Connection test failed: %s", e)
            return False
        return "OK" in text.upper()


def create_client(api_key: Optional[str] = None) -> GeminiClient:
    """Factory function to create a GeminiClient."""
    return GeminiClient(api_key=api_key)
