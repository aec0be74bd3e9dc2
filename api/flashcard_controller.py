"""
File processing controller for the PDF Flashcard Generator REST API
"""
import logging
import time
from typing import Optional
from fastapi import APIRouter, UploadFile, File, Form, status
from fastapi.responses import JSONResponse

from config import settings
from models.api import ProcessingResult, ErrorResponse
from models.flashcard import QuestionType
from services.text_extractor import SUPPORTED_MEDIA_TYPES
from utils.exceptions import (
    FileHandlingError, FlashcardException, ErrorCode,
    create_file_too_large_error, create_invalid_file_type_error
)
from utils.error_handlers import get_status_code_for_error_code
from api.dependencies import FlashcardServiceDep

logger = logging.getLogger(__name__)

router = APIRouter(tags=["flashcards"])


@router.post(
    "/process-file",
    response_model=ProcessingResult,
    response_model_by_alias=True,
    status_code=status.HTTP_200_OK,
    summary="Generate a summary and flashcards from a document",
    description="Upload a PDF or PPTX file and receive a short summary plus question/answer pairs",
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    }
)
async def process_file(
    flashcard_service: FlashcardServiceDep,
    file: Optional[UploadFile] = File(None, description="PDF or PPTX document"),
    question_type: str = Form(
        QuestionType.ONE_MARK.value,
        alias="questionType",
        description="One of 1marker, 2marker, 5marker, truefalse"
    ),
    num_questions: int = Form(
        5, ge=1, le=20, alias="numQuestions", description="Maximum number of flashcards"
    )
):
    """
    Process an uploaded document.

    Request problems (missing, empty, oversized or unsupported file, unknown
    question type) are rejected before any work starts. Failures inside the
    pipeline are reported as ``Error processing file`` with the cause in
    ``details``.
    """
    start_time = time.time()

    if file is None or not file.filename:
        raise FileHandlingError(
            message="No file uploaded",
            error_code=ErrorCode.MISSING_FILE
        )

    media_type = file.content_type
    if media_type not in SUPPORTED_MEDIA_TYPES:
        raise create_invalid_file_type_error(file.filename, media_type, list(SUPPORTED_MEDIA_TYPES))

    qtype = QuestionType.parse(question_type)

    content = await file.read()
    file_size = len(content)

    max_size = settings.max_file_size_mb * 1024 * 1024
    if file_size > max_size:
        raise create_file_too_large_error(file.filename, file_size, max_size)

    if file_size == 0:
        raise FileHandlingError(
            message=f"File '{file.filename}' is empty",
            filename=file.filename,
            file_size=file_size,
            error_code=ErrorCode.EMPTY_FILE
        )

    logger.info(
        f"Starting file processing: {file.filename} ({media_type}, {file_size} bytes), "
        f"questionType={qtype.value}, numQuestions={num_questions}"
    )

    try:
        result = await flashcard_service.process_document(
            content=content,
            filename=file.filename,
            media_type=media_type,
            question_type=qtype,
            num_questions=num_questions
        )
    except FlashcardException as e:
        logger.error(f"Error processing file {file.filename}: {e}")
        return JSONResponse(
            status_code=get_status_code_for_error_code(e.error_code),
            content=e.to_dict(error="Error processing file")
        )

    processing_time_ms = int((time.time() - start_time) * 1000)
    logger.info(
        f"File processing completed: {file.filename}, "
        f"{len(result.questions)} questions, {processing_time_ms}ms"
    )
    return result
