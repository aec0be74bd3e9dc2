"""
Tests for LLM service functionality
"""
import random

import pytest
import requests
from unittest.mock import Mock, patch

from services.llm_service import LLMService, RetryPolicy
from utils.exceptions import LLMServiceError, LLMRateLimitError, ErrorCode


def make_response(status_code=200, content="A completion", body=None):
    response = Mock()
    response.status_code = status_code
    if body is not None:
        response.json.return_value = body
    else:
        response.json.return_value = {"choices": [{"message": {"content": content}}]}
    return response


class RecordingSleep:
    """Async sleep replacement that records requested delays"""

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


@pytest.fixture
def sleeper():
    return RecordingSleep()


@pytest.fixture
def service(sleeper):
    return LLMService(
        api_key="test-key",
        model="mistral-small",
        api_url="https://llm.example/v1/chat/completions",
        retry_policy=RetryPolicy(request_delay=0, max_retries=10, initial_delay=5, max_delay=60, jitter=1),
        timeout=30,
        sleep=sleeper,
        rng=random.Random(42)
    )


class TestLLMService:
    """Test the chat completion client"""

    @pytest.mark.asyncio
    @patch('services.llm_service.requests.post')
    async def test_complete_success(self, mock_post, service):
        mock_post.return_value = make_response(content="Paris is the capital of France.")

        result = await service.complete("What is the capital of France?")

        assert result == "Paris is the capital of France."
        kwargs = mock_post.call_args.kwargs
        assert kwargs["url"] == "https://llm.example/v1/chat/completions"
        assert kwargs["headers"]["Authorization"] == "Bearer test-key"
        assert kwargs["timeout"] == 30
        assert '"role": "user"' in kwargs["data"]

    @pytest.mark.asyncio
    @patch('services.llm_service.requests.post')
    async def test_rate_limit_then_success(self, mock_post, service, sleeper):
        """Three 429s then success: three growing backoff waits"""
        mock_post.side_effect = [make_response(429), make_response(429), make_response(429), make_response()]

        result = await service.complete("prompt")

        assert result == "A completion"
        assert mock_post.call_count == 4
        assert len(sleeper.delays) == 3
        assert sleeper.delays == sorted(sleeper.delays)
        for attempt, delay in enumerate(sleeper.delays):
            base = min(5 * 2 ** attempt, 60)
            assert base <= delay < base + 1

    @pytest.mark.asyncio
    @patch('services.llm_service.requests.post')
    async def test_rate_limit_exhausts_retries(self, mock_post, service, sleeper):
        mock_post.return_value = make_response(429)

        with pytest.raises(LLMRateLimitError) as exc_info:
            await service.complete("prompt")

        assert exc_info.value.error_code == ErrorCode.LLM_RATE_LIMIT
        assert mock_post.call_count == 11
        assert len(sleeper.delays) == 10
        assert all(delay < 61 for delay in sleeper.delays)

    @pytest.mark.asyncio
    @patch('services.llm_service.requests.post')
    async def test_server_error_is_not_retried(self, mock_post, service, sleeper):
        mock_post.return_value = make_response(500, body={"error": {"message": "internal"}})

        with pytest.raises(LLMServiceError) as exc_info:
            await service.complete("prompt")

        assert "Mistral API Error: internal" in exc_info.value.message
        assert exc_info.value.error_code == ErrorCode.LLM_API_ERROR
        assert mock_post.call_count == 1
        assert sleeper.delays == []

    @pytest.mark.asyncio
    @patch('services.llm_service.requests.post')
    async def test_invalid_response_body(self, mock_post, service):
        mock_post.return_value = make_response(body={"choices": []})

        with pytest.raises(LLMServiceError) as exc_info:
            await service.complete("prompt")

        assert exc_info.value.error_code == ErrorCode.LLM_INVALID_RESPONSE
        assert "Invalid response from Mistral API" in exc_info.value.message

    @pytest.mark.asyncio
    @patch('services.llm_service.requests.post')
    async def test_timeout(self, mock_post, service):
        mock_post.side_effect = requests.exceptions.Timeout("read timed out")

        with pytest.raises(LLMServiceError) as exc_info:
            await service.complete("prompt")

        assert exc_info.value.error_code == ErrorCode.LLM_TIMEOUT
        assert mock_post.call_count == 1

    @pytest.mark.asyncio
    @patch('services.llm_service.requests.post')
    async def test_connection_error(self, mock_post, service):
        mock_post.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(LLMServiceError) as exc_info:
            await service.complete("prompt")

        assert exc_info.value.error_code == ErrorCode.LLM_SERVICE_UNAVAILABLE

    @pytest.mark.asyncio
    @patch('services.llm_service.requests.post')
    async def test_request_delay_precedes_every_attempt(self, mock_post, sleeper):
        service = LLMService(
            api_key="test-key",
            retry_policy=RetryPolicy(request_delay=3, initial_delay=5, jitter=0),
            sleep=sleeper
        )
        mock_post.side_effect = [make_response(429), make_response()]

        await service.complete("prompt")

        assert sleeper.delays == [3, 5, 3]

    @pytest.mark.asyncio
    async def test_missing_api_key(self, sleeper):
        service = LLMService(api_key="", sleep=sleeper)
        service.api_key = None

        with pytest.raises(LLMServiceError) as exc_info:
            await service.complete("prompt")

        assert exc_info.value.error_code == ErrorCode.LLM_SERVICE_UNAVAILABLE
        assert not service.is_available()

    @pytest.mark.asyncio
    async def test_empty_prompt(self, service):
        with pytest.raises(ValueError):
            await service.complete("   ")

    def test_get_model_info(self, service):
        info = service.get_model_info()
        assert info["model"] == "mistral-small"
        assert info["available"] == "True"
