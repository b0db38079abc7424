"""Text completion providers."""

import logging
import os
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

from openai import BadRequestError, OpenAI, OpenAIError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ProviderError(Exception):
    """Raised when the completion provider fails."""


@dataclass
class CompletionOptions:
    """Per-call options for a completion request."""

    model: str = "gpt-3.5-turbo"
    max_tokens: int | None = None
    temperature: float = 0.7


class TextCompletionProvider(Protocol):
    """Anything that turns a system/user prompt pair into generated text."""

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        options: CompletionOptions,
        json_schema: dict[str, Any] | None = None,
    ) -> str: ...


def create_client(api_key: str | None = None) -> OpenAI:
    """Build an OpenAI client, checking for an API key."""
    api_key = api_key or os.environ.get("OPENAI_API_KEY")
    if not api_key:
        raise ProviderError(
            "OPENAI_API_KEY environment variable not set. "
            "Set it with: export OPENAI_API_KEY='sk-...'"
        )
    return OpenAI(api_key=api_key)


def call_with_retry(call: Callable[[], T], max_retries: int = 3, action: str = "API call") -> T:
    """
    Run an OpenAI request with exponential backoff (2, 4, 8 seconds).

    Rejected requests (HTTP 400) are not retried.

    Raises:
        ProviderError: The request was rejected or every attempt failed
    """
    last_error = None

    for attempt in range(max_retries):
        try:
            return call()
        except BadRequestError as e:
            raise ProviderError(f"{action} rejected: {e}") from e
        except OpenAIError as e:
            last_error = e
            if attempt < max_retries - 1:
                wait_time = 2 ** (attempt + 1)
                logger.warning(
                    "%s failed (attempt %d/%d), retrying in %ds: %s",
                    action,
                    attempt + 1,
                    max_retries,
                    wait_time,
                    e,
                )
                time.sleep(wait_time)

    raise ProviderError(f"{action} failed after {max_retries} attempts: {last_error}")


class OpenAICompletionProvider:
    """Chat completions backed by an explicitly constructed OpenAI client."""

    def __init__(self, client: OpenAI, max_retries: int = 3) -> None:
        self.client = client
        self.max_retries = max_retries

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        options: CompletionOptions,
        json_schema: dict[str, Any] | None = None,
    ) -> str:
        """
        Call the chat completions API.

        Args:
            system_prompt: System message
            user_prompt: User message
            options: Model, max tokens and temperature
            json_schema: Optional JSON schema for structured output

        Raises:
            ProviderError: The request failed or the response had no message
        """
        kwargs: dict[str, Any] = {
            "model": options.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": options.temperature,
        }
        if options.max_tokens is not None:
            kwargs["max_tokens"] = options.max_tokens

        if json_schema is not None:
            kwargs["response_format"] = {
                "type": "json_schema",
                "json_schema": {
                    "name": "response",
                    "strict": True,
                    "schema": json_schema,
                },
            }

        response = call_with_retry(
            lambda: self.client.chat.completions.create(**kwargs), self.max_retries
        )

        try:
            return response.choices[0].message.content or ""
        except (IndexError, AttributeError) as e:
            raise ProviderError(f"Malformed completion response: {e}") from e
