"""
Service layer for the PDF Flashcard Generator
"""
from .text_chunker import TextChunker, ChunkingConfig
from .text_extractor import TextExtractor, SUPPORTED_MEDIA_TYPES
from .llm_service import LLMService, RetryPolicy
from .sequential_processor import SequentialProcessor
from .summary_service import SummaryService
from .question_service import QuestionService, GenerationConfig, ParseResult, ParseOutcome, parse_response
from .result_cache import ResultCache
from .flashcard_service import FlashcardService

__all__ = [
    'TextChunker', 'ChunkingConfig',
    'TextExtractor', 'SUPPORTED_MEDIA_TYPES',
    'LLMService', 'RetryPolicy',
    'SequentialProcessor',
    'SummaryService',
    'QuestionService', 'GenerationConfig', 'ParseResult', 'ParseOutcome', 'parse_response',
    'ResultCache',
    'FlashcardService'
]
