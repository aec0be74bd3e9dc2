"""
Custom exception classes for the PDF Flashcard Generator

This module defines all custom exceptions used throughout the application,
providing structured error handling with proper error codes and messages.
"""
import time
from typing import Optional, Dict, Any
from enum import Enum


class ErrorCode(Enum):
    """Enumeration of error codes for consistent error handling"""

    # General errors
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    PROCESSING_TIMEOUT = "PROCESSING_TIMEOUT"

    # File handling errors
    MISSING_FILE = "MISSING_FILE"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    INVALID_FILE_TYPE = "INVALID_FILE_TYPE"
    EMPTY_FILE = "EMPTY_FILE"
    FILE_SAVE_FAILED = "FILE_SAVE_FAILED"

    # Document processing errors
    TEXT_EXTRACTION_FAILED = "TEXT_EXTRACTION_FAILED"
    CHUNKING_FAILED = "CHUNKING_FAILED"

    # Generation errors
    INVALID_QUESTION_TYPE = "INVALID_QUESTION_TYPE"
    SUMMARIZATION_FAILED = "SUMMARIZATION_FAILED"
    NO_QUESTIONS_GENERATED = "NO_QUESTIONS_GENERATED"

    # External service errors
    LLM_SERVICE_UNAVAILABLE = "LLM_SERVICE_UNAVAILABLE"
    LLM_API_ERROR = "LLM_API_ERROR"
    LLM_RATE_LIMIT = "LLM_RATE_LIMIT"
    LLM_TIMEOUT = "LLM_TIMEOUT"
    LLM_INVALID_RESPONSE = "LLM_INVALID_RESPONSE"


class FlashcardException(Exception):
    """
    Base exception class for all PDF Flashcard Generator errors

    Provides structured error information with error codes, messages,
    and optional details for debugging and user feedback.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        """
        Initialize the exception

        Args:
            message: Human-readable error message
            error_code: Structured error code for programmatic handling
            details: Optional dictionary with additional error details
            original_exception: Original exception that caused this error (if any)
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.original_exception = original_exception
        self.timestamp = time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())

    def to_dict(self, error: Optional[str] = None) -> Dict[str, Any]:
        """
        Convert exception to dictionary format for API responses

        Args:
            error: Short error label; defaults to the exception message

        Returns:
            Dictionary with string ``error`` and ``details`` fields
        """
        error_dict = {
            "error": error or self.message,
            "details": self.message,
            "code": self.error_code.value,
            "timestamp": self.timestamp
        }

        if self.details:
            error_dict["context"] = self.details

        return error_dict

    def __str__(self) -> str:
        """String representation of the exception"""
        return f"{self.error_code.value}: {self.message}"


class FileHandlingError(FlashcardException):
    """Exception for upload handling operations"""

    def __init__(
        self,
        message: str,
        filename: Optional[str] = None,
        file_size: Optional[int] = None,
        media_type: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.FILE_SAVE_FAILED,
        original_exception: Optional[Exception] = None
    ):
        details = {}
        if filename:
            details["filename"] = filename
        if file_size is not None:
            details["file_size"] = file_size
        if media_type:
            details["media_type"] = media_type

        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
            original_exception=original_exception
        )


class DocumentProcessingError(FlashcardException):
    """Exception for document processing operations"""

    def __init__(
        self,
        message: str,
        filename: Optional[str] = None,
        processing_stage: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.TEXT_EXTRACTION_FAILED,
        original_exception: Optional[Exception] = None
    ):
        details = {}
        if filename:
            details["filename"] = filename
        if processing_stage:
            details["processing_stage"] = processing_stage

        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
            original_exception=original_exception
        )


class ExtractionError(DocumentProcessingError):
    """Raised when an uploaded file is unreadable or yields no text"""

    def __init__(
        self,
        message: str,
        filename: Optional[str] = None,
        media_type: Optional[str] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(
            message=message,
            filename=filename,
            processing_stage="text_extraction",
            error_code=ErrorCode.TEXT_EXTRACTION_FAILED,
            original_exception=original_exception
        )

        if media_type:
            self.details["media_type"] = media_type


class TextChunkingError(DocumentProcessingError):
    """Exception for text chunking operations"""

    def __init__(
        self,
        message: str,
        text_length: Optional[int] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(
            message=message,
            processing_stage="text_chunking",
            error_code=ErrorCode.CHUNKING_FAILED,
            original_exception=original_exception
        )

        if text_length is not None:
            self.details["text_length"] = text_length


class GenerationError(FlashcardException):
    """Base exception for summary and question generation"""

    def __init__(
        self,
        message: str,
        processing_stage: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.INTERNAL_SERVER_ERROR,
        original_exception: Optional[Exception] = None
    ):
        details = {}
        if processing_stage:
            details["processing_stage"] = processing_stage

        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
            original_exception=original_exception
        )


class SummarizationError(GenerationError):
    """Raised when no summary could be produced for the document"""

    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        super().__init__(
            message=f"Summarization Error: {message}",
            processing_stage="summarization",
            error_code=ErrorCode.SUMMARIZATION_FAILED,
            original_exception=original_exception
        )


class NoQuestionsGeneratedError(GenerationError):
    """Raised when neither the chunk pass nor the fallback prompt yielded questions"""

    def __init__(
        self,
        message: str = "No valid questions could be generated from the text",
        chunks_processed: Optional[int] = None
    ):
        super().__init__(
            message=f"Question Generation Error: {message}",
            processing_stage="question_generation",
            error_code=ErrorCode.NO_QUESTIONS_GENERATED
        )

        if chunks_processed is not None:
            self.details["chunks_processed"] = chunks_processed


class LLMServiceError(FlashcardException):
    """Exception for LLM API operations"""

    def __init__(
        self,
        message: str,
        model_name: Optional[str] = None,
        status_code: Optional[int] = None,
        error_code: ErrorCode = ErrorCode.LLM_API_ERROR,
        original_exception: Optional[Exception] = None
    ):
        details = {"processing_stage": "llm_generation"}
        if model_name:
            details["model_name"] = model_name
        if status_code is not None:
            details["status_code"] = status_code

        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
            original_exception=original_exception
        )

    @property
    def retryable(self) -> bool:
        """Only rate-limit responses are worth retrying"""
        return self.error_code == ErrorCode.LLM_RATE_LIMIT


class LLMRateLimitError(LLMServiceError):
    """The provider answered HTTP 429"""

    def __init__(
        self,
        message: str = "Rate limit exceeded for LLM service",
        model_name: Optional[str] = None,
        attempts: Optional[int] = None
    ):
        super().__init__(
            message=message,
            model_name=model_name,
            status_code=429,
            error_code=ErrorCode.LLM_RATE_LIMIT
        )

        if attempts is not None:
            self.details["attempts"] = attempts


class ProcessingTimeoutError(FlashcardException):
    """Raised when the summarize + generate pipeline exceeds its wall-clock budget"""

    def __init__(self, timeout_seconds: float):
        super().__init__(
            message="Processing timeout - please try with a smaller file or fewer questions",
            error_code=ErrorCode.PROCESSING_TIMEOUT,
            details={"timeout_seconds": timeout_seconds}
        )


class ValidationError(FlashcardException):
    """Exception for input validation errors"""

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        field_value: Optional[Any] = None,
        validation_rule: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        original_exception: Optional[Exception] = None
    ):
        details = {}
        if field_name:
            details["field_name"] = field_name
        if field_value is not None:
            # Convert to string and truncate for safety
            value_str = str(field_value)
            details["field_value"] = value_str[:100] + "..." if len(value_str) > 100 else value_str
        if validation_rule:
            details["validation_rule"] = validation_rule

        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
            original_exception=original_exception
        )


class InvalidQuestionTypeError(ValidationError):
    """Raised for a question type outside the supported set"""

    def __init__(self, question_type: Any, valid_types: list):
        super().__init__(
            message=f"Invalid question type: {question_type}. Valid types are: {', '.join(valid_types)}",
            field_name="questionType",
            field_value=question_type,
            validation_rule="one_of",
            error_code=ErrorCode.INVALID_QUESTION_TYPE
        )


# Convenience functions for creating common exceptions

def create_file_too_large_error(filename: str, file_size: int, max_size: int) -> FileHandlingError:
    """Create a file too large error"""
    return FileHandlingError(
        message=f"File '{filename}' exceeds maximum size limit of {max_size} bytes",
        filename=filename,
        file_size=file_size,
        error_code=ErrorCode.FILE_TOO_LARGE
    )


def create_invalid_file_type_error(filename: str, media_type: Optional[str], supported_types: list) -> FileHandlingError:
    """Create an unsupported file format error"""
    return FileHandlingError(
        message=f"Unsupported file format for '{filename}'. Supported types: {', '.join(supported_types)}",
        filename=filename,
        media_type=media_type,
        error_code=ErrorCode.INVALID_FILE_TYPE
    )


def create_llm_unavailable_error(service_name: str = "Mistral") -> LLMServiceError:
    """Create an LLM service unavailable error"""
    return LLMServiceError(
        message=f"{service_name} service is currently unavailable. Please check your API configuration.",
        error_code=ErrorCode.LLM_SERVICE_UNAVAILABLE
    )
