"""Fakes for the model client and PDF loader, shared by the driver tests."""

from types import SimpleNamespace

from pipeline.pdf_loader import PageImage
from utils.usage import TokenUsage, estimate_cost


# ---------------------------------------------------------------------------
# Fake google-genai client (for GeminiClient tests)
# ---------------------------------------------------------------------------

def make_response(text, prompt_tokens=10, completion_tokens=5, total_tokens=None):
    if total_tokens is None:
        total_tokens = prompt_tokens + completion_tokens
    return SimpleNamespace(
        text=text,
        usage_metadata=SimpleNamespace(
            prompt_token_count=prompt_tokens,
            candidates_token_count=completion_tokens,
            total_token_count=total_tokens,
        ),
    )


class FakeModels:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeGenaiClient:
    """Stands in for ``genai.Client``: scripted responses, recorded requests."""

    def __init__(self, responses):
        self.models = FakeModels(responses)


# ---------------------------------------------------------------------------
# Fake gateway (for driver tests)
# ---------------------------------------------------------------------------

class FakeGateway:
    """
    Scripted replacement for GeminiClient.

    Each scripted item is either a (data, TokenUsage) tuple or an exception
    to raise. Prompts and images are recorded in call order.
    """

    model_name = "fake-model"

    def __init__(self, results=None):
        self.results = list(results or [])
        self.prompts = []
        self.images = []
        self._usage = TokenUsage()

    def _next(self):
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        data, usage = result
        self._usage = self._usage + usage
        return data, usage

    def analyze_image(self, image, mime_type, prompt):
        self.images.append((image, mime_type))
        self.prompts.append(prompt)
        return self._next()

    def generate_json(self, prompt):
        self.prompts.append(prompt)
        return self._next()

    @property
    def cumulative_usage(self):
        return self._usage

    @property
    def cumulative_cost(self):
        return estimate_cost(self._usage)


class FakeLoader:
    """Returns a tiny fake image for every page except those listed as blank."""

    def __init__(self, blank_pages=()):
        self.blank_pages = set(blank_pages)
        self.requests = []

    def rasterize(self, source, page_numbers, scale=None):
        pages = sorted(page_numbers)
        self.requests.append(pages)
        return [
            PageImage(page_number=p, data=f"page-{p}".encode(), mime_type="image/png")
            for p in pages
            if p not in self.blank_pages
        ]


def questions_payload(*texts, correct=0):
    return {
        "questions": [
            {"questionText": t, "choices": ["one", "two", "three", "four"], "correctChoice": correct}
            for t in texts
        ]
    }


def usage(prompt=100, completion=20):
    return TokenUsage(prompt, completion, prompt + completion)


