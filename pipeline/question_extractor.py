"""
Gemini vision extraction of MCQ questions from exam paper pages.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from config import PAGE_REQUEST_DELAY, QUESTION_EXTRACTION_PROMPT
from pipeline.pdf_loader import PageImage, PDFLoader, PdfSource
from utils.usage import TokenUsage

logger = logging.getLogger(__name__)

# (pages completed so far, total pages in range, questions found on that page)
ProgressCallback = Callable[[int, int, int], None]


@dataclass
class ExtractedQuestion:
    """One MCQ as read off a page."""
    question_text: str
    choices: List[str]
    correct_choice: Optional[int]  # 0-based, None when nothing is marked
    page_number: int
    question_number: Optional[int] = None  # per page first, per paper after renumbering


@dataclass
class PageExtractionResult:
    page_number: int
    questions: List[ExtractedQuestion]
    usage: TokenUsage


@dataclass
class PaperExtractionResult:
    questions: List[ExtractedQuestion] = field(default_factory=list)
    total_usage: TokenUsage = field(default_factory=TokenUsage)
    pages_processed: int = 0


def coerce_index(value: Any) -> Optional[int]:
    """Model output sometimes has "1" or 1.0 for an index; anything else is None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_page_questions(data: Any, page_number: int) -> List[ExtractedQuestion]:
    """Map the model's ``{"questions": [...]}`` object to ExtractedQuestion records."""
    if isinstance(data, dict):
        raw_questions = data.get("questions") or []
    elif isinstance(data, list):
        raw_questions = data
    else:
        raw_questions = []

    questions = []
    for idx, raw in enumerate(raw_questions):
        if not isinstance(raw, dict):
            logger.warning("Page %d: ignoring non-object question entry %r", page_number, raw)
            continue
        choices = raw.get("choices") or []
        questions.append(ExtractedQuestion(
            question_text=str(raw.get("questionText") or ""),
            choices=[str(c) for c in choices],
            correct_choice=coerce_index(raw.get("correctChoice")),
            page_number=page_number,
            question_number=idx + 1,
        ))
    return questions


class QuestionExtractor:
    """Extracts MCQs page by page using the Gemini client."""

    def __init__(
        self,
        client,
        loader: Optional[PDFLoader] = None,
        request_delay: float = PAGE_REQUEST_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.client = client
        self.loader = loader or PDFLoader()
        self.request_delay = request_delay
        self._sleep = sleep

    def extract_page(self, page_image: PageImage) -> PageExtractionResult:
        """
        Extract questions from a single page image.

        Raises:
            ModelCallError / ModelOutputParseError from the client.
        """
        data, usage = self.client.analyze_image(
            page_image.data, page_image.mime_type, QUESTION_EXTRACTION_PROMPT
        )
        questions = parse_page_questions(data, page_image.page_number)
        return PageExtractionResult(
            page_number=page_image.page_number,
            questions=questions,
            usage=usage,
        )

    def extract_range(
        self,
        source: PdfSource,
        start_page: int,
        end_page: int,
        on_progress: Optional[ProgressCallback] = None,
    ) -> PaperExtractionResult:
        """
        Extract questions from an inclusive page range, one page at a time.

        A page that produces no image is logged and skipped. Any error from
        the client aborts the whole range; nothing is checkpointed.
        """
        total_pages = end_page - start_page + 1
        result = PaperExtractionResult(pages_processed=total_pages)

        for offset, page_num in enumerate(range(start_page, end_page + 1)):
            if offset > 0 and self.request_delay > 0:
                self._sleep(self.request_delay)

            page_images = self.loader.rasterize(source, [page_num])
            if not page_images:
                logger.warning("Failed to convert page %d, skipping", page_num)
                page_question_count = 0
            else:
                page_result = self.extract_page(page_images[0])
                result.questions.extend(page_result.questions)
                result.total_usage = result.total_usage + page_result.usage
                page_question_count = len(page_result.questions)
                logger.debug("Page %d: %d questions", page_num, page_question_count)

            if on_progress:
                on_progress(offset + 1, total_pages, page_question_count)

        # Re-number questions sequentially within the paper
        for idx, question in enumerate(result.questions):
            question.question_number = idx + 1

        return result
