"""
Flashcard service orchestrating the upload -> summary + questions pipeline
"""
import asyncio
import logging
import os
import time
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from config import settings
from models.api import ProcessingResult
from models.flashcard import QAPair, QuestionType
from services.llm_service import LLMService
from services.question_service import QuestionService, GenerationConfig
from services.result_cache import ResultCache
from services.sequential_processor import SequentialProcessor
from services.summary_service import SummaryService
from services.text_chunker import TextChunker, ChunkingConfig
from services.text_extractor import TextExtractor
from utils.exceptions import ExtractionError, FileHandlingError, ProcessingTimeoutError
from utils.error_handlers import log_processing_step, log_performance_metric

logger = logging.getLogger(__name__)


class FlashcardService:
    """
    Service for orchestrating the complete flashcard pipeline.

    Saves the upload, extracts its text, then summarizes and generates
    questions under a wall-clock limit. Results are cached by upload content and
    request options; the saved upload is removed whether processing succeeds or not.
    """

    def __init__(
        self,
        upload_directory: Optional[str] = None,
        llm_service: Optional[LLMService] = None,
        text_extractor: Optional[TextExtractor] = None,
        summary_service: Optional[SummaryService] = None,
        question_service: Optional[QuestionService] = None,
        result_cache: Optional[ResultCache] = None,
        processing_timeout: Optional[float] = None
    ):
        """
        Initialize the flashcard service with all required components.

        Args:
            upload_directory: Directory to store uploaded files while they are processed
            llm_service: Completion client shared by summary and question generation
            text_extractor: PDF/PPTX text extraction service
            summary_service: Summary generation service
            question_service: Question generation service
            result_cache: Cache of finished results
            processing_timeout: Seconds allowed for summary plus question generation
        """
        self.upload_directory = Path(upload_directory or settings.upload_directory)
        self.upload_directory.mkdir(parents=True, exist_ok=True)

        self.llm_service = llm_service or LLMService()
        self.text_extractor = text_extractor or TextExtractor()

        if summary_service is None or question_service is None:
            chunker = TextChunker(ChunkingConfig(chunk_size=settings.chunk_size))
            processor = SequentialProcessor(delay_seconds=settings.chunk_delay_seconds)
            summary_service = summary_service or SummaryService(self.llm_service, chunker, processor)
            question_service = question_service or QuestionService(
                self.llm_service, chunker, processor, GenerationConfig.from_settings()
            )

        self.summary_service = summary_service
        self.question_service = question_service
        self.result_cache = result_cache or ResultCache(
            ttl_seconds=settings.cache_ttl_seconds,
            max_entries=settings.cache_max_entries
        )
        self.processing_timeout = (
            processing_timeout if processing_timeout is not None else settings.processing_timeout_seconds
        )

        logger.info(f"FlashcardService initialized with upload directory: {self.upload_directory}")

    async def process_document(
        self,
        content: bytes,
        filename: str,
        media_type: str,
        question_type: Any = QuestionType.ONE_MARK,
        num_questions: int = 5
    ) -> ProcessingResult:
        """
        Produce a summary and flashcards for one uploaded file.

        Args:
            content: Raw bytes of the upload
            filename: Original filename
            media_type: Declared media type of the upload
            question_type: Requested question type
            num_questions: Maximum number of flashcards

        Returns:
            ProcessingResult with summary, questions and question type

        Raises:
            ExtractionError: If no text could be read from the file
            SummarizationError: If no chunk could be summarized
            NoQuestionsGeneratedError: If no valid flashcard could be produced
            ProcessingTimeoutError: If generation exceeded the time limit
        """
        start_time = time.time()
        qtype = QuestionType.parse(question_type)

        cache_key = ResultCache.make_key(content, qtype.value, num_questions)
        cached = self.result_cache.get(cache_key)
        if cached is not None:
            logger.info(f"Returning cached result for {filename}")
            return cached

        log_processing_step("process_file", {
            "filename": filename,
            "media_type": media_type,
            "question_type": qtype.value,
            "num_questions": num_questions
        })

        file_path = self.save_uploaded_file(content, filename)
        try:
            text = await asyncio.to_thread(self.text_extractor.extract_text, file_path, media_type)
            if not text or not text.strip():
                raise ExtractionError(
                    "No text content found in the file",
                    filename=filename,
                    media_type=media_type
                )

            try:
                summary, questions = await asyncio.wait_for(
                    self._generate(text, qtype, num_questions),
                    timeout=self.processing_timeout
                )
            except asyncio.TimeoutError:
                logger.error(f"Processing timed out after {self.processing_timeout}s for {filename}")
                raise ProcessingTimeoutError(self.processing_timeout) from None

            result = ProcessingResult(summary=summary, questions=questions, questionType=qtype.value)
            self.result_cache.set(cache_key, result)

            log_performance_metric(
                "process_file",
                int((time.time() - start_time) * 1000),
                {"filename": filename, "characters": len(text), "questions": len(questions)}
            )
            return result
        finally:
            self.remove_uploaded_file(file_path)

    async def _generate(
        self,
        text: str,
        question_type: QuestionType,
        num_questions: int
    ) -> Tuple[str, List[QAPair]]:
        summary = await self.summary_service.summarize(text)
        questions = await self.question_service.generate_questions(text, question_type, num_questions)
        return summary, questions

    def save_uploaded_file(self, file_content: bytes, filename: str) -> str:
        """
        Save uploaded file content to the upload directory.

        Args:
            file_content: Binary content of the uploaded file
            filename: Original filename

        Returns:
            Path to the saved file

        Raises:
            FileHandlingError: If file saving fails
        """
        try:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            name, ext = os.path.splitext(os.path.basename(filename or "upload"))
            unique_filename = f"{timestamp}_{uuid.uuid4().hex[:8]}_{name}{ext}"

            file_path = self.upload_directory / unique_filename
            with open(file_path, 'wb') as f:
                f.write(file_content)

            logger.info(f"Saved uploaded file: {file_path}")
            return str(file_path)

        except OSError as e:
            raise FileHandlingError(
                f"Failed to save uploaded file {filename}: {e}",
                filename=filename,
                file_size=len(file_content)
            ) from e

    def remove_uploaded_file(self, file_path: str) -> bool:
        """Delete a saved upload; failures are logged, never raised."""
        try:
            if os.path.exists(file_path):
                os.remove(file_path)
                logger.info(f"Removed uploaded file: {file_path}")
                return True
        except OSError as e:
            logger.error(f"Error deleting file {file_path}: {e}")
        return False

    def cleanup_stale_uploads(self, max_age_seconds: float = 3600) -> int:
        """
        Remove uploads left behind by interrupted requests.

        Returns:
            Number of files removed
        """
        cleaned_count = 0
        cutoff = time.time() - max_age_seconds

        for file_path in self.upload_directory.iterdir():
            if not file_path.is_file():
                continue
            try:
                if file_path.stat().st_mtime < cutoff:
                    file_path.unlink()
                    cleaned_count += 1
                    logger.info(f"Cleaned up stale upload: {file_path}")
            except OSError as e:
                logger.warning(f"Failed to clean up {file_path}: {e}")

        logger.info(f"Cleanup completed: {cleaned_count} files removed")
        return cleaned_count

    def get_service_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the flashcard service.

        Returns:
            Dictionary containing service statistics
        """
        upload_files = [p for p in self.upload_directory.iterdir() if p.is_file()]
        return {
            "upload_directory": str(self.upload_directory),
            "pending_uploads": len(upload_files),
            "result_cache": self.result_cache.get_stats(),
            "llm": self.llm_service.get_model_info(),
            "processing_timeout_seconds": self.processing_timeout
        }
