"""
MCQ extraction and explanation pipeline.

Modules:
- pdf_loader: PDF pages to images
- question_extractor: Gemini vision extraction, page by page
- validator: Advisory checks on extracted questions
- explanation_generator: Checkpointed explanation backfill
- paper_file: Paper JSON file format
- errors: Error types
"""

from .errors import (
    PipelineError,
    DocumentReadError,
    ConfigurationError,
    ModelCallError,
    ModelOutputParseError,
)
from .pdf_loader import PDFLoader, PageImage
from .question_extractor import QuestionExtractor, ExtractedQuestion, PaperExtractionResult
from .validator import validate_questions
from .paper_file import PaperData, PaperQuestion, load_paper_file, save_paper_file
from .explanation_generator import ExplanationBackfill, BackfillResult

__all__ = [
    "PipelineError",
    "DocumentReadError",
    "ConfigurationError",
    "ModelCallError",
    "ModelOutputParseError",
    "PDFLoader",
    "PageImage",
    "QuestionExtractor",
    "ExtractedQuestion",
    "PaperExtractionResult",
    "validate_questions",
    "PaperData",
    "PaperQuestion",
    "load_paper_file",
    "save_paper_file",
    "ExplanationBackfill",
    "BackfillResult",
]
