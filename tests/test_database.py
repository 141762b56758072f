"""Tests for the SQLite question bank."""

import sqlite3

import pytest

import database
from pipeline.paper_file import PaperData


@pytest.fixture
def db_path(tmp_path):
    return database.init_db(tmp_path / "db" / "questions.db")


def test_init_creates_file(db_path):
    assert db_path.exists()
    # idempotent
    database.init_db(db_path)


def test_insert_questions_defaults(db_path):
    paper_id = database.insert_paper("P", "S", 2, db_path=db_path)
    inserted = database.insert_questions(paper_id, [
        {"questionText": "Q1", "choices": ["a", "b"], "correctChoice": None},
        {"questionText": "Q2", "choices": ["a", "b", "c"], "correctChoice": 2, "explanation": "why"},
    ], db_path=db_path)

    rows = database.get_questions(paper_id, db_path=db_path)
    assert inserted == 2
    assert [r["correct_choice"] for r in rows] == [0, 2]
    assert [r["order_index"] for r in rows] == [0, 1]
    assert rows[1]["choices"] == ["a", "b", "c"]
    assert rows[0]["explanation"] is None
    assert rows[0]["flagged"] is False


def test_insert_no_questions(db_path):
    assert database.insert_questions(1, [], db_path=db_path) == 0


def test_save_paper_and_summaries(db_path, paper_dict):
    paper_id = database.save_paper(PaperData.from_dict(paper_dict), db_path=db_path)

    paper = database.get_paper(paper_id, db_path=db_path)
    assert paper["name"] == "SK Vol 1"
    assert paper["question_count"] == 3
    assert database.get_paper_by_name("SK Vol 1", db_path=db_path)["id"] == paper_id
    assert database.get_paper_by_name("nope", db_path=db_path) is None

    [summary] = database.get_paper_summaries(db_path=db_path)
    assert summary["questions"] == 3
    assert summary["with_explanations"] == 1

    questions = database.get_questions(paper_id, db_path=db_path)
    assert [q["question_text"] for q in questions] == [
        "Which nerve supplies the deltoid?", "Which bone is sesamoid?", "Largest organ?",
    ]


def test_delete_paper(db_path, paper_dict):
    keep = database.save_paper(PaperData.from_dict(paper_dict), db_path=db_path)
    drop = database.save_paper(PaperData.from_dict(paper_dict), db_path=db_path)

    assert database.delete_paper(drop, db_path=db_path) == 3
    assert database.get_paper(drop, db_path=db_path) is None
    assert database.get_questions(drop, db_path=db_path) == []
    assert [p["id"] for p in database.get_papers(db_path=db_path)] == [keep]
    assert len(database.get_questions(keep, db_path=db_path)) == 3


def test_failed_question_insert_leaves_no_paper(db_path):
    paper = PaperData.from_dict({"name": "P", "source": "S", "questions": [
        {"questionText": "Q1", "choices": ["a", "b"], "correctChoice": 0},
        {"questionText": "Q2", "choices": ["a", "b"], "correctChoice": [1]},
    ]})

    with pytest.raises(sqlite3.Error):
        database.save_paper(paper, db_path=db_path)

    assert database.get_paper_summaries(db_path=db_path) == []
    assert database.get_paper_by_name("P", db_path=db_path) is None
