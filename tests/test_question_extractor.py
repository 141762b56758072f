"""Tests for page-by-page question extraction."""

import logging

import pytest

from config import QUESTION_EXTRACTION_PROMPT
from pipeline.errors import ModelCallError, ModelOutputParseError
from pipeline.pdf_loader import PageImage, PDFLoader
from pipeline.question_extractor import QuestionExtractor, parse_page_questions
from utils.gemini_client import GeminiClient
from utils.usage import TokenUsage

from fakes import FakeGateway, FakeGenaiClient, FakeLoader, make_response, questions_payload, usage


def make_extractor(results, blank_pages=(), request_delay=0.1):
    gateway = FakeGateway(results)
    loader = FakeLoader(blank_pages)
    sleeps = []
    extractor = QuestionExtractor(gateway, loader=loader, request_delay=request_delay,
                                  sleep=sleeps.append)
    return extractor, gateway, loader, sleeps


class TestParsePageQuestions:

    def test_fields_mapped(self):
        data = {"questions": [
            {"questionText": "Q1?", "choices": ["a", "b"], "correctChoice": 1},
            {"questionText": "Q2?", "choices": ["a", "b", "c"], "correctChoice": None},
        ]}
        questions = parse_page_questions(data, page_number=4)

        assert [q.question_text for q in questions] == ["Q1?", "Q2?"]
        assert [q.correct_choice for q in questions] == [1, None]
        assert [q.question_number for q in questions] == [1, 2]
        assert all(q.page_number == 4 for q in questions)

    def test_missing_questions_key(self):
        assert parse_page_questions({}, 1) == []
        assert parse_page_questions({"questions": None}, 1) == []

    def test_bare_list_accepted(self):
        questions = parse_page_questions([{"questionText": "Q", "choices": ["x", "y"]}], 2)
        assert len(questions) == 1
        assert questions[0].correct_choice is None

    @pytest.mark.parametrize("raw,expected", [
        ("2", 2), (3.0, 3), ("B", None), (True, None), (2.7, None), ("2.7", None), ([1], None),
    ])
    def test_correct_choice_coercion(self, raw, expected):
        data = {"questions": [{"questionText": "Q", "choices": ["a", "b", "c", "d"], "correctChoice": raw}]}
        assert parse_page_questions(data, 1)[0].correct_choice == expected

    def test_non_object_entries_skipped(self, caplog):
        data = {"questions": ["junk", {"questionText": "Q", "choices": ["a", "b"]}]}
        with caplog.at_level(logging.WARNING):
            questions = parse_page_questions(data, 1)
        assert [q.question_text for q in questions] == ["Q"]
        assert "non-object" in caplog.text


class TestExtractRange:

    def test_questions_renumbered_across_pages(self):
        extractor, gateway, loader, _ = make_extractor([
            (questions_payload("A1", "A2"), usage(100, 20)),
            ({"questions": []}, usage(90, 2)),
            (questions_payload("C1"), usage(110, 15)),
        ])

        result = extractor.extract_range("paper.pdf", 5, 7)

        assert [q.question_text for q in result.questions] == ["A1", "A2", "C1"]
        assert [q.question_number for q in result.questions] == [1, 2, 3]
        assert [q.page_number for q in result.questions] == [5, 5, 7]
        assert result.pages_processed == 3
        assert result.total_usage == TokenUsage(300, 37, 337)
        assert loader.requests == [[5], [6], [7]]

    def test_prompt_and_page_image_sent(self):
        extractor, gateway, _, _ = make_extractor([(questions_payload("Q"), usage())])
        extractor.extract_range("paper.pdf", 2, 2)

        assert gateway.prompts == [QUESTION_EXTRACTION_PROMPT]
        assert gateway.images == [(b"page-2", "image/png")]

    def test_progress_reported_per_page(self):
        extractor, _, _, _ = make_extractor([
            (questions_payload("A1", "A2"), usage()),
            ({"questions": []}, usage()),
            (questions_payload("C1"), usage()),
        ])
        calls = []
        extractor.extract_range("paper.pdf", 1, 3, on_progress=lambda *a: calls.append(a))

        assert calls == [(1, 3, 2), (2, 3, 0), (3, 3, 1)]

    def test_page_without_image_is_skipped(self, caplog):
        extractor, gateway, _, _ = make_extractor(
            [(questions_payload("A1"), usage()), (questions_payload("C1"), usage())],
            blank_pages={2},
        )
        calls = []
        with caplog.at_level(logging.WARNING):
            result = extractor.extract_range("paper.pdf", 1, 3, on_progress=lambda *a: calls.append(a))

        assert len(gateway.prompts) == 2
        assert [q.question_text for q in result.questions] == ["A1", "C1"]
        assert result.pages_processed == 3
        assert calls == [(1, 3, 1), (2, 3, 0), (3, 3, 1)]
        assert "page 2" in caplog.text

    def test_model_error_aborts_range(self):
        extractor, _, _, _ = make_extractor([
            (questions_payload("A1"), usage()),
            ModelCallError("rate limited"),
            (questions_payload("C1"), usage()),
        ])
        with pytest.raises(ModelCallError):
            extractor.extract_range("paper.pdf", 1, 3)

    def test_parse_error_aborts_range(self):
        extractor, _, _, _ = make_extractor([ModelOutputParseError("bad", raw_text="nope")])
        with pytest.raises(ModelOutputParseError):
            extractor.extract_range("paper.pdf", 1, 1)

    def test_delay_between_pages(self):
        extractor, _, _, sleeps = make_extractor([({"questions": []}, usage())] * 3)
        extractor.extract_range("paper.pdf", 1, 3)
        assert sleeps == [0.1, 0.1]

    def test_no_delay_when_disabled(self):
        extractor, _, _, sleeps = make_extractor([({"questions": []}, usage())] * 2, request_delay=0)
        extractor.extract_range("paper.pdf", 1, 2)
        assert sleeps == []


def test_end_to_end_with_real_pdf(pdf_path):
    """Real rasterizer and gateway; only the HTTP client is faked."""
    fake = FakeGenaiClient([
        make_response('```json\n{"questions": [{"questionText": "Which nerve\nsupplies the deltoid?", '
                      '"choices": ["Radial", "Axillary"], "correctChoice": 1}]}\n```'),
        make_response('{"questions": []}'),
    ])
    client = GeminiClient(api_key="test-key", client=fake)
    extractor = QuestionExtractor(client, loader=PDFLoader(scale=0.5), request_delay=0)

    result = extractor.extract_range(pdf_path, 1, 2)

    assert len(result.questions) == 1
    question = result.questions[0]
    assert question.question_text == "Which nerve\nsupplies the deltoid?"
    assert question.correct_choice == 1
    assert question.page_number == 1
    assert result.total_usage == client.cumulative_usage
    image_part = fake.models.calls[0]["contents"][0].parts[1]
    assert image_part.inline_data.mime_type == "image/png"


def test_extract_page_uses_page_number():
    gateway = FakeGateway([(questions_payload("Q"), usage())])
    extractor = QuestionExtractor(gateway, loader=FakeLoader())
    page = PageImage(page_number=9, data=b"x", mime_type="image/jpeg")

    page_result = extractor.extract_page(page)

    assert page_result.page_number == 9
    assert page_result.questions[0].page_number == 9
    assert gateway.images == [(b"x", "image/jpeg")]
