"""
Error types raised by the extraction and explanation pipeline.
"""

from typing import Optional

from config import PARSE_ERROR_SNIPPET_LENGTH


class PipelineError(Exception):
    """Base class for pipeline failures."""

    kind = "PipelineError"


class DocumentReadError(PipelineError):
    """The PDF could not be opened or parsed."""

    kind = "DocumentReadError"


class ConfigurationError(PipelineError):
    """A required setting (e.g. the API key) is missing."""

    kind = "ConfigurationError"


class ModelCallError(PipelineError):
    """The model service call failed (network, quota, API error)."""

    kind = "ModelCallError"


class ModelOutputParseError(PipelineError):
    """The model returned text that is not valid JSON, even after repair."""

    kind = "ModelOutputParseError"

    def __init__(self, message: str, raw_text: Optional[str] = None,
                 snippet_length: int = PARSE_ERROR_SNIPPET_LENGTH):
        self.snippet = (raw_text or "")[:snippet_length]
        if raw_text is not None:
            suffix = "..." if len(raw_text) > snippet_length else ""
            message = f"{message}: {self.snippet}{suffix}"
        super().__init__(message)
