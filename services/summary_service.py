"""
Document summarization service
"""
import logging
import time
from typing import Optional

from services.llm_service import LLMService
from services.sequential_processor import SequentialProcessor
from services.text_chunker import TextChunker
from utils.exceptions import SummarizationError
from utils.error_handlers import log_performance_metric

logger = logging.getLogger(__name__)


SUMMARY_PROMPT = "Summarize this text in 2-3 sentences:\n{chunk}"


class SummaryService:
    """Summarizes a document chunk by chunk and stitches the pieces together"""

    def __init__(
        self,
        llm_service: LLMService,
        text_chunker: Optional[TextChunker] = None,
        processor: Optional[SequentialProcessor] = None
    ):
        self.llm_service = llm_service
        self.text_chunker = text_chunker or TextChunker()
        self.processor = processor or SequentialProcessor()

    async def _summarize_chunk(self, chunk: str) -> str:
        summary = await self.llm_service.complete(SUMMARY_PROMPT.format(chunk=chunk))
        return summary.strip()

    async def summarize(self, text: str) -> str:
        """
        Summarize the text in 2-3 sentences per chunk.

        Args:
            text: Full document text

        Returns:
            Per-chunk summaries joined by single spaces, in chunk order

        Raises:
            SummarizationError: If no chunk could be summarized
        """
        start_time = time.time()

        try:
            chunks = self.text_chunker.chunk_text(text)
            logger.info(f"Summarizing {len(chunks)} chunks")
            summaries = await self.processor.process(chunks, self._summarize_chunk)
        except Exception as e:
            logger.error(f"Summarization Error: {e}")
            raise SummarizationError(str(e), original_exception=e) from e

        if not summaries:
            raise SummarizationError(f"no summary produced for any of {len(chunks)} chunks")

        log_performance_metric(
            "summarize",
            int((time.time() - start_time) * 1000),
            {"chunks": len(chunks), "summaries": len(summaries)}
        )
        return " ".join(summaries)
