"""
Tests for data models
"""
import pytest
from pydantic import ValidationError

from models import QuestionType, QAPair, ProcessingResult, ErrorResponse
from utils.exceptions import InvalidQuestionTypeError


class TestQuestionType:

    def test_values(self):
        assert QuestionType.values() == ["1marker", "2marker", "5marker", "truefalse"]

    @pytest.mark.parametrize("raw, expected", [
        ("1marker", QuestionType.ONE_MARK),
        ("2MARKER", QuestionType.TWO_MARK),
        ("  5marker ", QuestionType.FIVE_MARK),
        ("TrueFalse", QuestionType.TRUE_FALSE),
        (QuestionType.TRUE_FALSE, QuestionType.TRUE_FALSE),
    ])
    def test_parse(self, raw, expected):
        assert QuestionType.parse(raw) == expected

    @pytest.mark.parametrize("raw", ["", "essay", "3marker", None])
    def test_parse_invalid(self, raw):
        with pytest.raises(InvalidQuestionTypeError):
            QuestionType.parse(raw)

    def test_is_string(self):
        assert QuestionType.ONE_MARK == "1marker"


class TestQAPair:

    def test_valid_pair(self):
        qa = QAPair(question="What is the capital of France?", answer="Paris.")
        assert qa.model_dump() == {"question": "What is the capital of France?", "answer": "Paris."}

    def test_empty_fields_rejected(self):
        with pytest.raises(ValidationError):
            QAPair(question="", answer="Paris.")

        with pytest.raises(ValidationError):
            QAPair(question="What?", answer="")


class TestProcessingResult:

    def test_serialises_camel_case(self):
        result = ProcessingResult(
            summary="Summary.",
            questions=[QAPair(question="Question text?", answer="Answer text.")],
            questionType="2marker"
        )

        dumped = result.model_dump(by_alias=True)
        assert dumped["questionType"] == "2marker"
        assert dumped["questions"][0]["answer"] == "Answer text."

    def test_populate_by_field_name(self):
        result = ProcessingResult(question_type="1marker")

        assert result.summary == ""
        assert result.questions == []
        assert result.question_type == "1marker"

    def test_question_type_required(self):
        with pytest.raises(ValidationError):
            ProcessingResult(summary="Summary.")


class TestErrorResponse:

    def test_error_response(self):
        response = ErrorResponse(
            error="Error processing file",
            details="Processing timeout - please try with a smaller file or fewer questions",
            code="PROCESSING_TIMEOUT",
            timestamp="2024-01-15T10:30:00Z"
        )

        assert response.code == "PROCESSING_TIMEOUT"
