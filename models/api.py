"""
API request and response models for the PDF Flashcard Generator
"""
from pydantic import BaseModel, Field, ConfigDict

from models.flashcard import QAPair


class ProcessingResult(BaseModel):
    """Response model for a processed upload: summary plus flashcards"""
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "summary": "The document introduces the French capital and its history.",
                "questions": [
                    {
                        "question": "Statement: Paris is the capital of France",
                        "answer": "True: Paris has been the capital since 987."
                    }
                ],
                "questionType": "truefalse"
            }
        }
    )

    summary: str = Field("", description="Concatenated per-chunk summary")
    questions: list[QAPair] = Field(default_factory=list, description="Generated question/answer pairs")
    question_type: str = Field(..., alias="questionType", description="Question type used for generation")


class ErrorResponse(BaseModel):
    """Standard error response model"""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "Error processing file",
                "details": "Failed to extract text from file: PDF contains no pages",
                "code": "TEXT_EXTRACTION_FAILED",
                "timestamp": "2024-01-15T10:30:00Z"
            }
        }
    )

    error: str = Field(..., description="Short error label")
    details: str = Field(..., description="Human-readable explanation")
    code: str = Field(..., description="Machine-readable error code")
    timestamp: str = Field(..., description="When the error occurred")
