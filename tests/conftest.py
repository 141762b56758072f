"""Shared fixtures for the pipeline test suite."""

import json

import fitz  # PyMuPDF
import pytest


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def pdf_bytes():
    """A real three-page PDF with one line of text per page."""
    doc = fitz.open()
    for i in range(1, 4):
        page = doc.new_page()
        page.insert_text((72, 72), f"Page {i}: Which nerve supplies the deltoid?")
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def pdf_path(tmp_path, pdf_bytes):
    path = tmp_path / "paper.pdf"
    path.write_bytes(pdf_bytes)
    return path


@pytest.fixture
def paper_dict():
    return {
        "name": "SK Vol 1",
        "source": "SK Book Series",
        "startPage": 5,
        "endPage": 7,
        "questions": [
            {
                "questionText": "Which nerve supplies the deltoid?",
                "choices": ["Radial", "Axillary", "Median", "Ulnar"],
                "correctChoice": 1,
                "orderIndex": 0,
            },
            {
                "questionText": "Which bone is sesamoid?",
                "choices": ["Patella", "Femur"],
                "correctChoice": None,
                "orderIndex": 1,
            },
            {
                "questionText": "Largest organ?",
                "choices": ["Liver", "Skin", "Brain"],
                "correctChoice": 1,
                "orderIndex": 2,
                "explanation": "The skin is the largest organ by surface area and mass.",
            },
        ],
        "stats": {
            "totalQuestions": 3,
            "pagesProcessed": 3,
            "tokensUsed": 4200,
            "estimatedCost": "$0.0031",
        },
    }


@pytest.fixture
def paper_file(tmp_path, paper_dict):
    path = tmp_path / "paper.json"
    path.write_text(json.dumps(paper_dict, indent=2), encoding="utf-8")
    return path
