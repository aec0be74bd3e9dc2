"""
Flashcard data models for the PDF Flashcard Generator
"""
from enum import Enum
from typing import Any, List
from pydantic import BaseModel, Field, ConfigDict

from utils.exceptions import InvalidQuestionTypeError


class QuestionType(str, Enum):
    """Kind of study question requested; each maps to its own prompt template"""
    ONE_MARK = "1marker"
    TWO_MARK = "2marker"
    FIVE_MARK = "5marker"
    TRUE_FALSE = "truefalse"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]

    @classmethod
    def parse(cls, value: Any) -> "QuestionType":
        """
        Resolve a user supplied question type (case-insensitive, trimmed).

        Raises:
            InvalidQuestionTypeError: If the value is not one of the supported types
        """
        if isinstance(value, cls):
            return value

        normalized = str(value).strip().lower() if value is not None else ""
        try:
            return cls(normalized)
        except ValueError:
            raise InvalidQuestionTypeError(value, cls.values()) from None


class QAPair(BaseModel):
    """A single flashcard: question on the front, answer on the back"""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "question": "What is the capital of France?",
                "answer": "Paris is the capital of France."
            }
        }
    )

    question: str = Field(..., min_length=1, description="Question or statement text")
    answer: str = Field(..., min_length=1, description="Expected answer or explanation")
