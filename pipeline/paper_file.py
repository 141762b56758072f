"""
Paper JSON files: the hand-off format between ingestion, explanation
backfill and database import.

    {
      "name": str, "source": str, "startPage": int, "endPage": int,
      "questions": [{"questionText", "choices", "correctChoice",
                     "orderIndex", "explanation"?}],
      "stats": {"totalQuestions", "pagesProcessed", "tokensUsed",
                "estimatedCost": "$X.XXXX"}
    }

The same file is the backfill driver's input, checkpoint and output, so
unknown keys are carried through untouched.
"""

import json
import os
import re
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from utils.usage import estimate_cost, format_cost, parse_cost

PathLike = Union[str, Path]

_QUESTION_KEYS = {"questionText", "choices", "correctChoice", "orderIndex", "explanation"}
_PAPER_KEYS = {"name", "source", "startPage", "endPage", "questions", "stats"}


@dataclass
class PaperQuestion:
    """One question as stored in a paper file."""
    question_text: str
    choices: List[str]
    correct_choice: Optional[int]
    order_index: int
    explanation: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    # true when the source record had an "explanation" key, even a null one
    explanation_key: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any], position: int = 0) -> "PaperQuestion":
        order_index = data.get("orderIndex")
        return cls(
            question_text=data.get("questionText") or "",
            choices=list(data.get("choices") or []),
            correct_choice=data.get("correctChoice"),
            order_index=position if order_index is None else order_index,
            explanation=data.get("explanation"),
            extra={k: v for k, v in data.items() if k not in _QUESTION_KEYS},
            explanation_key="explanation" in data,
        )

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "questionText": self.question_text,
            "choices": list(self.choices),
            "correctChoice": self.correct_choice,
            "orderIndex": self.order_index,
        }
        if self.explanation is not None or self.explanation_key:
            d["explanation"] = self.explanation
        d.update(self.extra)
        return d


@dataclass
class PaperStats:
    total_questions: int
    pages_processed: int
    tokens_used: int
    estimated_cost: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalQuestions": self.total_questions,
            "pagesProcessed": self.pages_processed,
            "tokensUsed": self.tokens_used,
            "estimatedCost": self.estimated_cost,
        }


@dataclass
class PaperData:
    """A named paper and its ordered questions."""
    name: str
    source: str
    questions: List[PaperQuestion] = field(default_factory=list)
    start_page: Optional[int] = None
    end_page: Optional[int] = None
    stats: Optional[Dict[str, Any]] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PaperData":
        if not isinstance(data, dict) or not data.get("name") or not data.get("source") \
                or not isinstance(data.get("questions"), list):
            raise ValueError("Invalid file structure. Expected: { name, source, questions: [] }")

        return cls(
            name=data["name"],
            source=data["source"],
            questions=[PaperQuestion.from_dict(q, i) for i, q in enumerate(data["questions"])],
            start_page=data.get("startPage"),
            end_page=data.get("endPage"),
            stats=data.get("stats"),
            extra={k: v for k, v in data.items() if k not in _PAPER_KEYS},
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"name": self.name, "source": self.source}
        if self.start_page is not None:
            d["startPage"] = self.start_page
        if self.end_page is not None:
            d["endPage"] = self.end_page
        d["questions"] = [q.to_dict() for q in self.questions]
        if self.stats is not None:
            d["stats"] = self.stats
        d.update(self.extra)
        return d

    @property
    def explained_count(self) -> int:
        return sum(1 for q in self.questions if q.explanation)


def build_paper_data(result, name: str, source: str, start_page: int, end_page: int) -> PaperData:
    """Turn a PaperExtractionResult into a paper file record."""
    questions = [
        PaperQuestion(
            question_text=q.question_text,
            choices=list(q.choices),
            correct_choice=q.correct_choice,
            order_index=idx,
        )
        for idx, q in enumerate(result.questions)
    ]
    stats = PaperStats(
        total_questions=len(questions),
        pages_processed=result.pages_processed,
        tokens_used=result.total_usage.total_tokens,
        estimated_cost=format_cost(estimate_cost(result.total_usage)),
    )
    return PaperData(
        name=name,
        source=source,
        questions=questions,
        start_page=start_page,
        end_page=end_page,
        stats=stats.to_dict(),
    )


def load_paper_file(path: PathLike) -> PaperData:
    """Read and validate a paper JSON file."""
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    return PaperData.from_dict(data)


def save_paper_file(paper: PaperData, path: PathLike) -> Path:
    """
    Write a paper JSON file, replacing any existing file at ``path``.

    The JSON goes to a temporary file in the same directory first and is then
    moved into place, so a reader never sees a half-written checkpoint.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(paper.to_dict(), f, indent=2, ensure_ascii=False)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    return path


def safe_file_name(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "_", name)


def default_output_path(output_dir: PathLike, name: str) -> Path:
    """``<output_dir>/<safe name>-<ms timestamp>.json`` for dry-run ingestion."""
    timestamp = int(time.time() * 1000)
    return Path(output_dir) / f"{safe_file_name(name)}-{timestamp}.json"


def explained_output_path(input_path: PathLike) -> Path:
    """``paper.json`` -> ``paper-explained.json`` in the same directory."""
    input_path = Path(input_path)
    return input_path.with_name(f"{input_path.stem}-explained{input_path.suffix}")


def _page_span(paper: PaperData) -> int:
    if paper.start_page is None or paper.end_page is None:
        return (paper.stats or {}).get("pagesProcessed") or 0
    return paper.end_page - paper.start_page + 1


def combine_papers(first: PaperData, second: PaperData, name: Optional[str] = None) -> PaperData:
    """
    Join two files that hold consecutive parts of the same paper.

    Questions from ``second`` continue the ``orderIndex`` numbering of
    ``first``; page span, tokens and cost are summed.
    """
    questions = []
    for paper in (first, second):
        for q in paper.questions:
            questions.append(PaperQuestion(
                question_text=q.question_text,
                choices=list(q.choices),
                correct_choice=q.correct_choice,
                order_index=len(questions),
                explanation=q.explanation,
                extra=dict(q.extra),
                explanation_key=q.explanation_key,
            ))

    first_stats = first.stats or {}
    second_stats = second.stats or {}
    stats = PaperStats(
        total_questions=len(questions),
        pages_processed=_page_span(first) + _page_span(second),
        tokens_used=(first_stats.get("tokensUsed") or 0) + (second_stats.get("tokensUsed") or 0),
        estimated_cost=format_cost(
            parse_cost(first_stats.get("estimatedCost")) + parse_cost(second_stats.get("estimatedCost"))
        ),
    )

    return PaperData(
        name=name or first.name,
        source=first.source,
        questions=questions,
        start_page=first.start_page,
        end_page=second.end_page,
        stats=stats.to_dict(),
    )
