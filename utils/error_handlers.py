"""
Error handling middleware and utilities for the PDF Flashcard Generator

This module provides error handling middleware, the retry handler used for
upstream rate limiting, and small logging helpers shared by the services.
"""
import asyncio
import logging
import random
import time
import traceback
from typing import Any, Awaitable, Callable, Dict, Optional
from fastapi import Request, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from utils.exceptions import FlashcardException, ErrorCode

logger = logging.getLogger(__name__)


STATUS_CODE_MAP = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_QUESTION_TYPE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.MISSING_FILE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_FILE_TYPE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.EMPTY_FILE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.FILE_TOO_LARGE: status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    ErrorCode.SERVICE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def get_status_code_for_error_code(error_code: ErrorCode) -> int:
    """Map error codes to HTTP status codes; pipeline failures are 500"""
    return STATUS_CODE_MAP.get(error_code, status.HTTP_500_INTERNAL_SERVER_ERROR)


class ErrorHandlingMiddleware:
    """
    Middleware for handling errors and providing consistent error responses
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        """ASGI middleware implementation"""
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)

        try:
            await self.app(scope, receive, send)
        except Exception as e:
            response = await self.handle_error(request, e)
            await response(scope, receive, send)

    async def handle_error(self, request: Request, exc: Exception) -> JSONResponse:
        """
        Handle different types of exceptions and return appropriate responses

        Args:
            request: The FastAPI request object
            exc: The exception that occurred

        Returns:
            JSONResponse with error details
        """
        self._log_error(request, exc)

        if isinstance(exc, FlashcardException):
            return JSONResponse(
                status_code=get_status_code_for_error_code(exc.error_code),
                content=exc.to_dict()
            )
        elif isinstance(exc, HTTPException):
            return self._handle_http_exception(exc)
        elif isinstance(exc, RequestValidationError):
            return create_error_response(
                ErrorCode.VALIDATION_ERROR,
                "Request validation failed",
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                details=str(exc.errors())
            )
        else:
            return create_error_response(
                ErrorCode.INTERNAL_SERVER_ERROR,
                "An unexpected error occurred",
                details=type(exc).__name__
            )

    def _log_error(self, request: Request, exc: Exception) -> None:
        """Log error with request context"""
        context = {
            "error_id": f"error_{int(time.time() * 1000)}",
            "method": request.method,
            "url": str(request.url),
            "client_ip": request.client.host if request.client else "unknown",
            "exception_type": type(exc).__name__,
            "exception_message": str(exc)
        }

        if isinstance(exc, (FlashcardException, HTTPException)):
            logger.warning(f"Handled exception: {context}")
        else:
            logger.error(f"Unhandled exception: {context}")
            logger.error(f"Traceback: {traceback.format_exc()}")

    def _handle_http_exception(self, exc: HTTPException) -> JSONResponse:
        """Handle FastAPI HTTP exceptions"""
        if isinstance(exc.detail, dict):
            return JSONResponse(status_code=exc.status_code, content=exc.detail)

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": "HTTP_ERROR",
                "details": str(exc.detail),
                "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
            }
        )


class RetryHandler:
    """
    Retry handler with capped exponential backoff and random jitter.

    The n-th retry (0-based) waits ``min(base_delay * backoff_factor ** n, max_delay)``
    plus a uniform jitter in ``[0, jitter)``. Only exceptions accepted by
    ``should_retry`` are retried; everything else propagates immediately.
    """

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        backoff_factor: float = 2.0,
        jitter: float = 0.0,
        retryable_exceptions: tuple = (Exception,),
        should_retry: Optional[Callable[[Exception], bool]] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize retry handler

        Args:
            max_retries: Maximum number of retry attempts after the first call
            base_delay: Initial delay between retries (seconds)
            max_delay: Maximum backoff delay before jitter (seconds)
            backoff_factor: Multiplier for exponential backoff
            jitter: Upper bound of the random delay added to each backoff (seconds)
            retryable_exceptions: Exception types that may trigger a retry
            should_retry: Optional predicate further narrowing retryable exceptions
            sleep: Awaitable sleep function
            rng: Random source for jitter
        """
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.backoff_factor = backoff_factor
        self.jitter = jitter
        self.retryable_exceptions = retryable_exceptions
        self.should_retry = should_retry
        self._sleep = sleep
        self._rng = rng or random.Random()

    def compute_delay(self, attempt: int) -> float:
        """Backoff delay for the given 0-based retry number"""
        delay = min(self.base_delay * (self.backoff_factor ** attempt), self.max_delay)
        if self.jitter > 0:
            delay += self._rng.uniform(0, self.jitter)
        return delay

    def _is_retryable(self, exc: Exception) -> bool:
        if not isinstance(exc, self.retryable_exceptions):
            return False
        return self.should_retry(exc) if self.should_retry else True

    async def call(self, func: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        """Await ``func`` until it succeeds, fails fatally, or exhausts the retry budget"""
        attempt = 0
        while True:
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                if not self._is_retryable(e):
                    raise

                if attempt >= self.max_retries:
                    logger.error(f"{getattr(func, '__name__', 'call')} failed after {self.max_retries} retries: {e}")
                    raise

                delay = self.compute_delay(attempt)
                logger.warning(
                    f"Retrying {getattr(func, '__name__', 'call')} in {delay:.1f}s "
                    f"(attempt {attempt + 1}/{self.max_retries}): {e}"
                )
                await self._sleep(delay)
                attempt += 1


# Utility functions for error handling

def log_processing_step(step_name: str, details: Optional[Dict[str, Any]] = None):
    """
    Log a processing step with optional details

    Args:
        step_name: Name of the processing step
        details: Optional dictionary with step details
    """
    log_message = f"Processing step: {step_name}"
    if details:
        log_message += f" - {details}"

    logger.info(log_message)


def log_performance_metric(operation: str, duration_ms: int, details: Optional[Dict[str, Any]] = None):
    """
    Log performance metrics for operations

    Args:
        operation: Name of the operation
        duration_ms: Duration in milliseconds
        details: Optional dictionary with additional details
    """
    log_message = f"Performance: {operation} completed in {duration_ms}ms"
    if details:
        log_message += f" - {details}"

    logger.info(log_message)


def create_error_response(
    error_code: ErrorCode,
    error: str,
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
    details: Optional[str] = None
) -> JSONResponse:
    """
    Create a standardized error response

    Args:
        error_code: The error code
        error: Short error label
        status_code: HTTP status code
        details: Human-readable explanation

    Returns:
        JSONResponse with error information
    """
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "details": details or error,
            "code": error_code.value,
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
        }
    )
