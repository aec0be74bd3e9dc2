"""
Data models for the PDF Flashcard Generator
"""

from .flashcard import QuestionType, QAPair
from .api import ProcessingResult, ErrorResponse

__all__ = [
    # Flashcard models
    "QuestionType",
    "QAPair",

    # API models
    "ProcessingResult",
    "ErrorResponse"
]
