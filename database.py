"""
SQLite database schema and operations for the MCQ Question Bank.
"""

import sqlite3
import json
from pathlib import Path
from typing import Optional, List, Dict, Any, Sequence, Union
from contextlib import contextmanager

import config


SCHEMA = """
CREATE TABLE IF NOT EXISTS papers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    source TEXT NOT NULL,          -- e.g. "SK Book Series"
    question_count INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS questions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    paper_id INTEGER NOT NULL REFERENCES papers(id) ON DELETE CASCADE,
    question_text TEXT NOT NULL,
    choices TEXT NOT NULL,         -- JSON array of choice strings
    correct_choice INTEGER NOT NULL,  -- 0-based index
    explanation TEXT,
    order_index INTEGER NOT NULL,  -- order within the paper
    flagged INTEGER NOT NULL DEFAULT 0  -- flagged as inaccurate by a user
);

CREATE INDEX IF NOT EXISTS idx_questions_paper ON questions(paper_id);
CREATE INDEX IF NOT EXISTS idx_papers_name ON papers(name);
"""


def _db_path(db_path: Optional[Union[str, Path]]) -> Path:
    return Path(db_path) if db_path else config.DATABASE_PATH


@contextmanager
def get_connection(db_path: Optional[Union[str, Path]] = None):
    """Context manager for database connections."""
    conn = sqlite3.connect(_db_path(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(db_path: Optional[Union[str, Path]] = None) -> Path:
    """Initialize the database with schema."""
    path = _db_path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with get_connection(path) as conn:
        conn.executescript(SCHEMA)
    return path


def _insert_paper(conn: sqlite3.Connection, name: str, source: str, question_count: int) -> int:
    cursor = conn.execute(
        "INSERT INTO papers (name, source, question_count) VALUES (?, ?, ?)",
        (name, source, question_count),
    )
    return cursor.lastrowid


def insert_paper(
    name: str,
    source: str,
    question_count: int,
    db_path: Optional[Union[str, Path]] = None,
) -> int:
    """Insert a paper row and return its id."""
    with get_connection(db_path) as conn:
        return _insert_paper(conn, name, source, question_count)


def _question_row(paper_id: int, q: Dict[str, Any], position: int) -> tuple:
    correct_choice = q.get("correctChoice")
    order_index = q.get("orderIndex")
    return (
        paper_id,
        q.get("questionText") or "",
        json.dumps(q.get("choices") or []),
        correct_choice if correct_choice is not None else 0,
        q.get("explanation") or None,
        order_index if order_index is not None else position,
    )


def _insert_questions(conn: sqlite3.Connection, paper_id: int, questions: Sequence[Dict[str, Any]]) -> int:
    rows = [_question_row(paper_id, q, idx) for idx, q in enumerate(questions)]
    conn.executemany(
        """
        INSERT INTO questions (
            paper_id, question_text, choices, correct_choice, explanation, order_index
        ) VALUES (?, ?, ?, ?, ?, ?)
        """,
        rows,
    )
    return len(rows)


def insert_questions(
    paper_id: int,
    questions: Sequence[Dict[str, Any]],
    db_path: Optional[Union[str, Path]] = None,
) -> int:
    """Insert questions for a paper.

    Args:
        questions: Paper-file question dicts (questionText, choices,
            correctChoice, orderIndex, explanation). A null correctChoice
            is stored as 0; a missing orderIndex falls back to list position.

    Returns:
        Number of rows inserted.
    """
    if not questions:
        return 0
    with get_connection(db_path) as conn:
        return _insert_questions(conn, paper_id, questions)


def save_paper(paper, db_path: Optional[Union[str, Path]] = None) -> int:
    """
    Insert a PaperData and all of its questions in one transaction.

    If any question fails to insert, the paper row is rolled back too.
    Returns the paper id.
    """
    with get_connection(db_path) as conn:
        paper_id = _insert_paper(conn, paper.name, paper.source, len(paper.questions))
        _insert_questions(conn, paper_id, [q.to_dict() for q in paper.questions])
    return paper_id


def get_paper(paper_id: int, db_path: Optional[Union[str, Path]] = None) -> Optional[Dict[str, Any]]:
    """Get a paper by id."""
    with get_connection(db_path) as conn:
        row = conn.execute("SELECT * FROM papers WHERE id = ?", (paper_id,)).fetchone()
        return dict(row) if row else None


def get_paper_by_name(name: str, db_path: Optional[Union[str, Path]] = None) -> Optional[Dict[str, Any]]:
    """Get the first paper with the given name."""
    with get_connection(db_path) as conn:
        row = conn.execute(
            "SELECT * FROM papers WHERE name = ? ORDER BY id LIMIT 1", (name,)
        ).fetchone()
        return dict(row) if row else None


def get_papers(db_path: Optional[Union[str, Path]] = None) -> List[Dict[str, Any]]:
    """Get all papers, oldest first."""
    with get_connection(db_path) as conn:
        rows = conn.execute("SELECT * FROM papers ORDER BY id").fetchall()
        return [dict(row) for row in rows]


def get_questions(paper_id: int, db_path: Optional[Union[str, Path]] = None) -> List[Dict[str, Any]]:
    """Get a paper's questions in order."""
    with get_connection(db_path) as conn:
        rows = conn.execute(
            "SELECT * FROM questions WHERE paper_id = ? ORDER BY order_index, id",
            (paper_id,),
        ).fetchall()
        return [_row_to_dict(row) for row in rows]


def get_paper_summaries(db_path: Optional[Union[str, Path]] = None) -> List[Dict[str, Any]]:
    """Papers with their question and explanation counts."""
    with get_connection(db_path) as conn:
        rows = conn.execute(
            """
            SELECT p.id, p.name, p.source, p.question_count,
                   COUNT(q.id) AS questions,
                   COUNT(q.explanation) AS with_explanations
            FROM papers p
            LEFT JOIN questions q ON q.paper_id = p.id
            GROUP BY p.id
            ORDER BY p.id
            """
        ).fetchall()
        return [dict(row) for row in rows]


def delete_paper(paper_id: int, db_path: Optional[Union[str, Path]] = None) -> int:
    """Delete a paper and its questions. Returns the number of questions deleted."""
    with get_connection(db_path) as conn:
        cursor = conn.execute("DELETE FROM questions WHERE paper_id = ?", (paper_id,))
        deleted = cursor.rowcount
        conn.execute("DELETE FROM papers WHERE id = ?", (paper_id,))
        return deleted


def _row_to_dict(row: sqlite3.Row) -> Dict[str, Any]:
    """Convert a database row to a dictionary with parsed JSON fields."""
    d = dict(row)
    if d.get("choices"):
        d["choices"] = json.loads(d["choices"])
    d["flagged"] = bool(d.get("flagged"))
    return d


if __name__ == "__main__":
    path = init_db()
    print(f"Database initialized at {path}")
    print(f"Papers: {len(get_papers())}")
