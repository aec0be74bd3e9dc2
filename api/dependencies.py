"""
Dependency injection for the PDF Flashcard Generator API
"""
import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from services.flashcard_service import FlashcardService
from services.llm_service import LLMService
from services.result_cache import ResultCache
from config import settings

logger = logging.getLogger(__name__)


@lru_cache()
def get_llm_service():
    """
    Get LLM service instance (cached singleton)
    """
    return LLMService()


@lru_cache()
def get_result_cache():
    """
    Get result cache instance (cached singleton)
    """
    return ResultCache(
        ttl_seconds=settings.cache_ttl_seconds,
        max_entries=settings.cache_max_entries
    )


@lru_cache()
def get_flashcard_service():
    """
    Get flashcard service instance (cached singleton)
    """
    return FlashcardService(
        upload_directory=settings.upload_directory,
        llm_service=get_llm_service(),
        result_cache=get_result_cache()
    )


# Type annotations for dependency injection
FlashcardServiceDep = Annotated[FlashcardService, Depends(get_flashcard_service)]
