"""
Validation utilities for extracted questions.

Advisory only: extraction never blocks on these checks; the fix-up editor
uses them to point at questions that need a human look.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple

from pipeline.question_extractor import coerce_index


@dataclass
class PaperValidation:
    """Validation results for one paper."""
    paper_name: str
    question_count: int = 0
    issues: List[str] = field(default_factory=list)
    unanswered: int = 0  # questions with no correct choice marked

    @property
    def is_valid(self) -> bool:
        return len(self.issues) == 0


def _fields(question: Any) -> Tuple[str, List[str], Optional[int]]:
    """Read (text, choices, correct_choice) from a record or a paper-file dict."""
    if isinstance(question, dict):
        return (
            question.get("questionText") or "",
            question.get("choices") or [],
            question.get("correctChoice"),
        )
    return question.question_text, question.choices or [], question.correct_choice


def validate_questions(questions: Sequence[Any]) -> List[str]:
    """
    Return human-readable problems found in a list of questions.

    Checks: empty question text, fewer than 2 choices, and a correct choice
    index outside ``[0, len(choices))``. A missing correct choice is not an
    error here.
    """
    errors = []

    for idx, question in enumerate(questions):
        text, choices, correct_choice = _fields(question)
        label = f"Question {idx + 1}"

        if not text or not text.strip():
            errors.append(f"{label}: Empty question text")

        if len(choices) < 2:
            errors.append(f"{label}: Less than 2 choices")

        if correct_choice is not None:
            index = coerce_index(correct_choice)
            if index is None or index < 0 or index >= len(choices):
                errors.append(f"{label}: Invalid correct choice index")

    return errors


def validate_paper(paper_name: str, questions: Sequence[Any]) -> PaperValidation:
    """Validate a paper's questions and count those with no marked answer."""
    validation = PaperValidation(paper_name=paper_name, question_count=len(questions))
    validation.issues = validate_questions(questions)
    validation.unanswered = sum(1 for q in questions if _fields(q)[2] is None)
    return validation


def generate_validation_report(validation: PaperValidation, max_issues: int = 20) -> str:
    """
    Generate a human-readable validation report.
    """
    lines = [
        "=" * 50,
        "VALIDATION REPORT",
        "=" * 50,
        f"Paper: {validation.paper_name}",
        f"Questions: {validation.question_count}",
        f"No answer marked: {validation.unanswered}",
    ]

    if validation.issues:
        lines.extend(["", "ISSUES:"])
        for issue in validation.issues[:max_issues]:
            lines.append(f"  ! {issue}")
        hidden = len(validation.issues) - max_issues
        if hidden > 0:
            lines.append(f"  ... and {hidden} more")

    lines.extend([
        "-" * 50,
        f"Status: {'PASSED' if validation.is_valid else 'NEEDS REVIEW'}",
        "=" * 50,
    ])

    return "\n".join(lines)
