"""
LLM integration service for the PDF Flashcard Generator using the Mistral chat API
"""
import asyncio
import logging
import random
import time
import json
from typing import Any, Awaitable, Callable, Dict, Optional
from dataclasses import dataclass
import requests
from config import settings
from utils.exceptions import LLMServiceError, LLMRateLimitError, ErrorCode, create_llm_unavailable_error
from utils.error_handlers import RetryHandler, log_performance_metric

logger = logging.getLogger(__name__)


@dataclass
class RetryPolicy:
    """Pacing and backoff policy for completion calls"""
    request_delay: float = 3.0  # waited before every call, retries included
    max_retries: int = 10
    initial_delay: float = 5.0
    max_delay: float = 60.0
    jitter: float = 1.0

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            request_delay=settings.request_delay_seconds,
            max_retries=settings.max_retries,
            initial_delay=settings.initial_retry_delay_seconds,
            max_delay=settings.max_retry_delay_seconds,
            jitter=settings.retry_jitter_seconds
        )


class LLMService:
    """Client for a chat-completion endpoint with rate-limit aware retries"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        api_url: Optional[str] = None,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize the LLM service

        Args:
            api_key: Bearer token (if None, will use settings.mistral_api_key)
            model: Model to use (if None, will use settings.llm_model)
            api_url: Completion endpoint (if None, will use settings.llm_api_url)
            retry_policy: Delay/backoff policy (if None, built from settings)
            timeout: Per-call timeout in seconds
            sleep: Awaitable sleep, replaceable in tests
            rng: Random source for backoff jitter
        """
        self.api_key = api_key or settings.mistral_api_key
        self.model = model or settings.llm_model
        self.base_url = api_url or settings.llm_api_url
        self.temperature = settings.llm_temperature
        self.max_tokens = settings.llm_max_tokens
        self.timeout = timeout if timeout is not None else settings.llm_timeout_seconds
        self.retry_policy = retry_policy or RetryPolicy.from_settings()
        self._sleep = sleep

        self._retry = RetryHandler(
            max_retries=self.retry_policy.max_retries,
            base_delay=self.retry_policy.initial_delay,
            max_delay=self.retry_policy.max_delay,
            jitter=self.retry_policy.jitter,
            retryable_exceptions=(LLMServiceError,),
            should_retry=lambda e: e.retryable,
            sleep=sleep,
            rng=rng
        )

        if self.api_key:
            logger.info(f"LLM client initialized with model: {self.model}")
        else:
            logger.warning("No Mistral API key provided, LLM calls will fail")

    async def complete(self, prompt: str) -> str:
        """
        Send one prompt and return the model's completion text.

        Rate-limited calls are retried with exponential backoff; every other
        failure is raised immediately.

        Raises:
            LLMRateLimitError: If the retry budget is exhausted on HTTP 429
            LLMServiceError: For any other upstream failure
        """
        if not self.api_key:
            raise create_llm_unavailable_error()

        if not prompt or not prompt.strip():
            raise ValueError("Prompt cannot be empty")

        return await self._retry.call(self._attempt, prompt)

    async def _attempt(self, prompt: str) -> str:
        if self.retry_policy.request_delay > 0:
            await self._sleep(self.retry_policy.request_delay)
        return await asyncio.to_thread(self._make_api_call, prompt)

    def _make_api_call(self, prompt: str) -> str:
        """
        Make a single blocking API call

        Args:
            prompt: The user prompt

        Returns:
            The completion text
        """
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        start_time = time.time()
        try:
            response = requests.post(
                url=self.base_url,
                headers=headers,
                data=json.dumps(payload),
                timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            logger.error(f"API timeout: {e}")
            raise LLMServiceError(
                message="LLM service request timed out.",
                model_name=self.model,
                error_code=ErrorCode.LLM_TIMEOUT,
                original_exception=e
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Connection error: {e}")
            raise LLMServiceError(
                message=f"Failed to connect to LLM service: {e}",
                model_name=self.model,
                error_code=ErrorCode.LLM_SERVICE_UNAVAILABLE,
                original_exception=e
            ) from e

        duration_ms = int((time.time() - start_time) * 1000)
        log_performance_metric("llm_api_call", duration_ms, {"model": self.model, "status": response.status_code})

        if response.status_code == 429:
            logger.warning("Rate limit hit on LLM service")
            raise LLMRateLimitError(model_name=self.model)

        if response.status_code != 200:
            error_message = self._error_message(response)
            logger.error(f"LLM API error: {error_message}")
            raise LLMServiceError(
                message=f"Mistral API Error: {error_message}",
                model_name=self.model,
                status_code=response.status_code,
                error_code=ErrorCode.LLM_API_ERROR
            )

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise LLMServiceError(
                message="Invalid response from Mistral API",
                model_name=self.model,
                error_code=ErrorCode.LLM_INVALID_RESPONSE,
                original_exception=e
            ) from e

        if not isinstance(content, str) or not content:
            raise LLMServiceError(
                message="Invalid response from Mistral API",
                model_name=self.model,
                error_code=ErrorCode.LLM_INVALID_RESPONSE
            )

        return content

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            return f"HTTP {response.status_code}"

        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return error["message"]
        if isinstance(error, str):
            return error
        if isinstance(body.get("message"), str):
            return body["message"]
        return f"HTTP {response.status_code}"

    def is_available(self) -> bool:
        """Check if the LLM service is configured"""
        return bool(self.api_key)

    def get_model_info(self) -> Dict[str, str]:
        """Get information about the configured model"""
        return {
            "model": self.model,
            "endpoint": self.base_url,
            "available": str(self.is_available())
        }
