"""
Explanation backfill for extracted MCQ papers.

Walks the questions of a paper file that still need an explanation, asks
Gemini for one question at a time and writes the result back into the
paper. The paper is checkpointed to the output file every ``batch_size``
successes and once more at the end, so an interrupted run can be resumed
from the output file.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from config import CHOICE_LABELS, DEFAULT_BATCH_SIZE, EXPLANATION_PROMPT
from pipeline.errors import ModelCallError, ModelOutputParseError
from pipeline.paper_file import PaperData, PaperQuestion, PathLike, load_paper_file, save_paper_file
from pipeline.question_extractor import coerce_index
from utils.usage import TokenUsage

logger = logging.getLogger(__name__)

# (questions attempted, questions pending, successes so far, errors so far)
BackfillProgress = Callable[[int, int, int, int], None]


def choice_label(index: int) -> str:
    """A, B, ... H, then I, J, ... for unusually long choice lists."""
    if index < 0:
        raise ValueError(f"Choice index must be non-negative, got {index}")
    if index < len(CHOICE_LABELS):
        return CHOICE_LABELS[index]
    return chr(ord("A") + index)


def answer_index(question: PaperQuestion) -> Optional[int]:
    """
    The marked correct choice as a usable index, or None.

    Hand-edited files sometimes hold "1" instead of 1; an index that does not
    point at one of the choices is not usable.
    """
    index = coerce_index(question.correct_choice)
    if index is None or not 0 <= index < len(question.choices):
        return None
    return index


def build_explanation_prompt(question: PaperQuestion) -> str:
    """Deterministic prompt with labeled choices and the labeled correct answer."""
    choices_text = "\n".join(
        f"{choice_label(idx)}. {choice}" for idx, choice in enumerate(question.choices)
    )

    index = answer_index(question)
    if index is None:
        correct_answer = "Unknown"
    else:
        correct_answer = f"{choice_label(index)}. {question.choices[index]}"

    return EXPLANATION_PROMPT.format(
        question_text=question.question_text,
        choices_text=choices_text,
        correct_answer=correct_answer,
    )


def find_pending(paper: PaperData, skip_existing: bool = False) -> List[int]:
    """
    Indices of questions that need an explanation, in paper order.

    Questions without a correct choice are never eligible, and neither are
    questions whose correct choice does not point at one of their choices.
    """
    pending = []
    for idx, question in enumerate(paper.questions):
        if skip_existing and question.explanation:
            continue
        if question.correct_choice is None:
            continue
        if answer_index(question) is None:
            logger.warning("Skipping question %d: unusable correct choice %r",
                           idx, question.correct_choice)
            continue
        pending.append(idx)
    return pending


def generate_explanation(client, question: PaperQuestion) -> Tuple[str, TokenUsage]:
    """
    Ask the model for one explanation.

    Raises:
        ModelCallError: the request failed.
        ModelOutputParseError: the response was not JSON with an
            ``explanation`` string.
    """
    data, usage = client.generate_json(build_explanation_prompt(question))
    explanation = data.get("explanation") if isinstance(data, dict) else None
    if not isinstance(explanation, str):
        raise ModelOutputParseError(
            "Gemini response has no 'explanation' string", raw_text=repr(data)
        )
    return explanation, usage


def load_job_input(input_path: PathLike, output_path: PathLike, resume: bool = False) -> PaperData:
    """
    Load the paper to work on.

    With ``resume`` and an existing output file, the checkpoint is loaded so
    explanations written by an earlier run are kept.
    """
    output_path = Path(output_path)
    if resume and output_path.exists():
        logger.info("Resuming from existing output: %s", output_path)
        return load_paper_file(output_path)
    return load_paper_file(input_path)


@dataclass
class BackfillResult:
    paper: PaperData
    pending: int = 0
    processed: int = 0
    errors: int = 0
    tokens_used: int = 0
    usage: TokenUsage = field(default_factory=TokenUsage)
    checkpoints: int = 0
    failed_indices: List[int] = field(default_factory=list)


class ExplanationBackfill:
    """Fills in missing explanations one question at a time, with checkpoints."""

    def __init__(
        self,
        client,
        output_path: PathLike,
        batch_size: int = DEFAULT_BATCH_SIZE,
        skip_existing: bool = False,
        on_progress: Optional[BackfillProgress] = None,
        save: Callable[[PaperData, PathLike], object] = save_paper_file,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        self.client = client
        self.output_path = Path(output_path)
        self.batch_size = batch_size
        self.skip_existing = skip_existing
        self.on_progress = on_progress
        self._save = save

    def _checkpoint(self, result: BackfillResult) -> None:
        self._save(result.paper, self.output_path)
        result.checkpoints += 1
        logger.info("Checkpoint saved (%d processed): %s", result.processed, self.output_path)

    def run(self, paper: PaperData) -> BackfillResult:
        """
        Generate explanations for every pending question of ``paper``.

        Failures on individual questions are logged and counted; the run
        always reaches the final checkpoint.
        """
        pending = find_pending(paper, self.skip_existing)
        result = BackfillResult(paper=paper, pending=len(pending))
        logger.info("Questions to process: %d of %d", len(pending), len(paper.questions))

        for attempted, idx in enumerate(pending, start=1):
            question = paper.questions[idx]
            try:
                explanation, usage = generate_explanation(self.client, question)
            except (ModelCallError, ModelOutputParseError) as e:
                result.errors += 1
                result.failed_indices.append(idx)
                logger.error("Error on question %d: %s", idx, e)
            else:
                paper.questions[idx].explanation = explanation
                result.usage = result.usage + usage
                result.tokens_used += usage.total_tokens
                result.processed += 1

                if result.processed % self.batch_size == 0:
                    self._checkpoint(result)

            if self.on_progress:
                self.on_progress(attempted, len(pending), result.processed, result.errors)

        self._checkpoint(result)
        return result
