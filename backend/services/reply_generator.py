"""Reply generator backed by the Groq chat completions API."""
import time
from dataclasses import dataclass
from typing import List, Optional, Dict, Any
from groq import AsyncGroq
from groq import (
    APIConnectionError,
    APIError,
    APITimeoutError,
    AuthenticationError,
    PermissionDeniedError,
    RateLimitError,
)
import logging

from config import GROQ_API_KEY, GROQ_MODEL, GENERATION_TEMPERATURE
from models.conversation import Turn
from prompts import SYSTEM_PROMPT, SYSTEM_PROMPT_VERSION

logger = logging.getLogger(__name__)


@dataclass
class LLMError:
    """Structured description of a failed generation."""
    code: str
    message: str
    details: Dict[str, Any]


class ReplyGenerationError(Exception):
    """Base class for generation failures; carries an LLMError."""
    code = "UPSTREAM_ERROR"

    def __init__(self, error: LLMError):
        self.error = error
        super().__init__(error.message)


class UpstreamAuthError(ReplyGenerationError):
    """The provider rejected our credentials or configuration."""
    code = "AUTHENTICATION_ERROR"


class UpstreamRateLimitError(ReplyGenerationError):
    """The provider reported rate or quota exhaustion."""
    code = "RATE_LIMIT_ERROR"


class UpstreamTimeoutError(ReplyGenerationError):
    """The provider call timed out or the network failed."""
    code = "TIMEOUT_ERROR"


class EmptyGenerationError(ReplyGenerationError):
    """The provider answered but returned no usable text."""
    code = "EMPTY_GENERATION"


class UpstreamError(ReplyGenerationError):
    """Any other provider failure."""
    code = "UPSTREAM_ERROR"


class ReplyGenerator:
    """Generates support replies from a message and its prior turns."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = GROQ_MODEL,
        temperature: float = GENERATION_TEMPERATURE,
        system_prompt: str = SYSTEM_PROMPT
    ):
        """
        Initialize the generator with Groq credentials.

        Args:
            api_key: Groq API key (defaults to GROQ_API_KEY from environment)
            model: Chat model name
            temperature: Sampling temperature
            system_prompt: Persona and policy preamble

        Raises:
            ValueError: If no API key is available
        """
        self.api_key = api_key or GROQ_API_KEY
        if not self.api_key:
            raise ValueError("GROQ_API_KEY must be provided or set in environment")

        self.model = model
        self.temperature = temperature
        self.system_prompt = system_prompt
        self.client = AsyncGroq(api_key=self.api_key)
        logger.info(f"ReplyGenerator initialized: model={model}, prompt_version={SYSTEM_PROMPT_VERSION}")

    @staticmethod
    def build_messages(
        message: str,
        history: List[Turn],
        system_prompt: str = SYSTEM_PROMPT
    ) -> List[Dict[str, str]]:
        """
        Build the chat message list sent to the model.

        History is used in the order given; callers are responsible for
        passing it oldest first.

        Args:
            message: New user message
            history: Prior turns of the session
            system_prompt: Preamble placed first

        Returns:
            [system, user, assistant, ..., user(message)]
        """
        messages = [{"role": "system", "content": system_prompt}]
        for turn in history:
            messages.append({"role": "user", "content": turn.user_message})
            messages.append({"role": "assistant", "content": turn.assistant_reply})
        messages.append({"role": "user", "content": message})
        return messages

    async def generate(self, message: str, history: List[Turn]) -> str:
        """
        Generate a reply to ``message`` given the prior turns.

        Args:
            message: New user message
            history: Prior turns, oldest first

        Returns:
            Text of the first generated choice

        Raises:
            UpstreamAuthError: Credentials or permissions rejected
            UpstreamRateLimitError: Rate limit or quota exhausted
            UpstreamTimeoutError: Timeout or network failure
            EmptyGenerationError: No usable text in the response
            UpstreamError: Any other failure
        """
        messages = self.build_messages(message, history, self.system_prompt)
        start_time = time.time()

        try:
            logger.debug(f"Generating reply with model={self.model}, history_turns={len(history)}")
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature
            )
        except RateLimitError as e:
            raise self._failure(
                UpstreamRateLimitError,
                "Rate limit exceeded. Please try again in a few moments.",
                start_time, e
            ) from e
        except (AuthenticationError, PermissionDeniedError) as e:
            raise self._failure(
                UpstreamAuthError,
                "Authentication failed. Please check your API key.",
                start_time, e
            ) from e
        except (APITimeoutError, APIConnectionError) as e:
            raise self._failure(
                UpstreamTimeoutError,
                "Request timed out or the network failed.",
                start_time, e
            ) from e
        except APIError as e:
            raise self._failure(UpstreamError, f"Groq API error: {e}", start_time, e) from e
        except Exception as e:
            raise self._failure(
                UpstreamError, f"Unexpected error during generation: {e}", start_time, e
            ) from e

        latency_ms = int((time.time() - start_time) * 1000)
        text = self._first_text(response)
        if not text:
            raise self._failure(
                EmptyGenerationError, "Model returned no reply text.", start_time, None
            )

        usage = getattr(response, "usage", None)
        logger.info(
            f"Generated reply: model={self.model}, latency={latency_ms}ms",
            extra={"fields": {
                "model": self.model,
                "latency_ms": latency_ms,
                "history_turns": len(history),
                "tokens_input": getattr(usage, "prompt_tokens", None),
                "tokens_output": getattr(usage, "completion_tokens", None),
                "prompt_version": SYSTEM_PROMPT_VERSION,
            }}
        )
        return text

    @staticmethod
    def _first_text(response: Any) -> Optional[str]:
        choices = getattr(response, "choices", None)
        if not choices:
            return None
        content = choices[0].message.content
        if not content or not content.strip():
            return None
        return content

    def _failure(
        self,
        error_class: type,
        message: str,
        start_time: float,
        cause: Optional[Exception]
    ) -> ReplyGenerationError:
        latency_ms = int((time.time() - start_time) * 1000)
        details: Dict[str, Any] = {"model": self.model, "latency_ms": latency_ms}
        if cause is not None:
            details["original_error"] = str(cause)
            details["error_type"] = type(cause).__name__

        error = LLMError(code=error_class.code, message=message, details=details)
        logger.error(
            f"{error_class.__name__}: model={self.model}, latency={latency_ms}ms, error={cause}",
            exc_info=cause is not None,
            extra={"fields": {"error_code": error.code, "error_details": details}}
        )
        return error_class(error)
