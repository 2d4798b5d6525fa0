"""Unit tests for ReplyGenerator."""
import sys
sys.path.insert(0, 'backend')

import asyncio
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock, patch
from groq import (
    APIConnectionError,
    APIError,
    APITimeoutError,
    AuthenticationError,
    PermissionDeniedError,
    RateLimitError,
)
from models.conversation import Turn
from prompts import SYSTEM_PROMPT
from services.reply_generator import (
    ReplyGenerator,
    ReplyGenerationError,
    UpstreamAuthError,
    UpstreamRateLimitError,
    UpstreamTimeoutError,
    EmptyGenerationError,
    UpstreamError,
)


def make_turn(question: str, answer: str) -> Turn:
    return Turn(
        session_id="s1",
        user_message=question,
        assistant_reply=answer,
        created_at=datetime(2024, 5, 1, tzinfo=timezone.utc)
    )


def completion(content):
    response = Mock()
    response.choices = [Mock(message=Mock(content=content))]
    response.usage = Mock(prompt_tokens=120, completion_tokens=30)
    return response


@pytest.fixture
def groq_client():
    """Patch AsyncGroq and expose the mocked client."""
    with patch('services.reply_generator.AsyncGroq') as mock_groq_class:
        client = Mock()
        client.chat.completions.create = AsyncMock()
        mock_groq_class.return_value = client
        yield client


@pytest.fixture
def generator(groq_client):
    return ReplyGenerator(api_key="test_key", model="llama-3.1-8b-instant")


class TestReplyGeneratorInit:

    def test_initialization_with_api_key(self, groq_client):
        generator = ReplyGenerator(api_key="test_key")

        assert generator.api_key == "test_key"
        assert generator.temperature == 0.7

    def test_initialization_without_api_key_raises_error(self):
        with patch('services.reply_generator.GROQ_API_KEY', None):
            with pytest.raises(ValueError, match="GROQ_API_KEY must be provided"):
                ReplyGenerator()


class TestBuildMessages:

    def test_empty_history(self):
        messages = ReplyGenerator.build_messages("Where is my order?", [])

        assert messages == [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": "Where is my order?"},
        ]

    def test_history_order_is_preserved(self):
        history = [
            make_turn("h1 question", "h1 answer"),
            make_turn("h2 question", "h2 answer"),
            make_turn("h3 question", "h3 answer"),
        ]

        messages = ReplyGenerator.build_messages("m", history)

        assert [m["role"] for m in messages] == [
            "system", "user", "assistant", "user", "assistant", "user", "assistant", "user"
        ]
        assert [m["content"] for m in messages[1:]] == [
            "h1 question", "h1 answer",
            "h2 question", "h2 answer",
            "h3 question", "h3 answer",
            "m",
        ]

    def test_history_is_not_resorted(self):
        # Out-of-order input stays out of order
        history = [make_turn("later", "b"), make_turn("earlier", "a")]

        messages = ReplyGenerator.build_messages("m", history)

        assert messages[1]["content"] == "later"
        assert messages[3]["content"] == "earlier"

    def test_custom_system_prompt(self):
        messages = ReplyGenerator.build_messages("m", [], system_prompt="Be brief.")

        assert messages[0] == {"role": "system", "content": "Be brief."}


class TestGenerate:

    def test_generate_success(self, generator, groq_client):
        groq_client.chat.completions.create.return_value = completion("Your order ships tomorrow.")

        reply = asyncio.run(generator.generate("Where is my order?", []))

        assert reply == "Your order ships tomorrow."

    def test_generate_sends_fixed_parameters(self, generator, groq_client):
        groq_client.chat.completions.create.return_value = completion("Hi!")
        history = [make_turn("Hello", "Hi, how can I help?")]

        asyncio.run(generator.generate("Refund status?", history))

        kwargs = groq_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "llama-3.1-8b-instant"
        assert kwargs["temperature"] == 0.7
        assert "max_tokens" not in kwargs
        assert kwargs["messages"] == ReplyGenerator.build_messages("Refund status?", history)

    def test_generate_returns_first_choice(self, generator, groq_client):
        response = completion("first")
        response.choices.append(Mock(message=Mock(content="second")))
        groq_client.chat.completions.create.return_value = response

        assert asyncio.run(generator.generate("m", [])) == "first"

    @pytest.mark.parametrize("content", [None, "", "   \n"])
    def test_generate_empty_content(self, generator, groq_client, content):
        groq_client.chat.completions.create.return_value = completion(content)

        with pytest.raises(EmptyGenerationError) as exc_info:
            asyncio.run(generator.generate("m", []))

        assert exc_info.value.error.code == "EMPTY_GENERATION"

    def test_generate_no_choices(self, generator, groq_client):
        response = completion("unused")
        response.choices = []
        groq_client.chat.completions.create.return_value = response

        with pytest.raises(EmptyGenerationError):
            asyncio.run(generator.generate("m", []))

    def test_generate_handles_rate_limit_error(self, generator, groq_client):
        groq_client.chat.completions.create.side_effect = RateLimitError(
            message="Rate limit exceeded",
            response=Mock(status_code=429),
            body=None
        )

        with pytest.raises(UpstreamRateLimitError) as exc_info:
            asyncio.run(generator.generate("m", []))

        error = exc_info.value.error
        assert error.code == "RATE_LIMIT_ERROR"
        assert error.details["model"] == "llama-3.1-8b-instant"
        assert groq_client.chat.completions.create.await_count == 1

    @pytest.mark.parametrize("error_class,status", [
        (AuthenticationError, 401),
        (PermissionDeniedError, 403),
    ])
    def test_generate_handles_authentication_error(self, generator, groq_client, error_class, status):
        groq_client.chat.completions.create.side_effect = error_class(
            message="Invalid API key",
            response=Mock(status_code=status),
            body=None
        )

        with pytest.raises(UpstreamAuthError) as exc_info:
            asyncio.run(generator.generate("m", []))

        assert exc_info.value.error.code == "AUTHENTICATION_ERROR"
        assert "Authentication failed" in exc_info.value.error.message

    @pytest.mark.parametrize("cause", [
        APITimeoutError(request=Mock()),
        APIConnectionError(request=Mock()),
    ])
    def test_generate_handles_timeout_and_network_errors(self, generator, groq_client, cause):
        groq_client.chat.completions.create.side_effect = cause

        with pytest.raises(UpstreamTimeoutError) as exc_info:
            asyncio.run(generator.generate("m", []))

        assert exc_info.value.error.code == "TIMEOUT_ERROR"
        assert exc_info.value.__cause__ is cause

    def test_generate_handles_generic_api_error(self, generator, groq_client):
        groq_client.chat.completions.create.side_effect = APIError(
            message="Service unavailable",
            request=Mock(),
            body=None
        )

        with pytest.raises(UpstreamError) as exc_info:
            asyncio.run(generator.generate("m", []))

        assert exc_info.value.error.code == "UPSTREAM_ERROR"
        assert "Groq API error" in exc_info.value.error.message

    def test_generate_handles_unexpected_error(self, generator, groq_client):
        groq_client.chat.completions.create.side_effect = RuntimeError("boom")

        with pytest.raises(UpstreamError) as exc_info:
            asyncio.run(generator.generate("m", []))

        details = exc_info.value.error.details
        assert details["error_type"] == "RuntimeError"
        assert details["original_error"] == "boom"

    def test_errors_share_base_class_and_include_latency(self, generator, groq_client):
        groq_client.chat.completions.create.side_effect = RuntimeError("boom")

        with pytest.raises(ReplyGenerationError) as exc_info:
            asyncio.run(generator.generate("m", []))

        latency = exc_info.value.error.details["latency_ms"]
        assert isinstance(latency, int)
        assert latency >= 0
