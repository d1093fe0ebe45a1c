"""
Story Generation Client

Thin wrapper over the OpenAI chat completions API used for long-form
children's stories. One system message, one user message, one attempt.
"""

import asyncio
import logging
from typing import Any, Optional

import openai
from openai import AsyncOpenAI

from .exceptions import GenerationUnavailableError

logger = logging.getLogger(__name__)

# Completion-token ceilings per model family (longest prefix wins)
MODEL_MAX_TOKENS = {
    "gpt-3.5-turbo": 4096,
    "gpt-4": 8192,
    "gpt-4-turbo": 4096,
    "gpt-4o": 16384,
    "gpt-4o-mini": 16384,
    "gpt-4.1": 32768,
    "gpt-4.1-mini": 32768,
}

PLACEHOLDER_KEYS = {"", "default-key", "changeme"}


def is_placeholder_key(api_key: Optional[str]) -> bool:
    """True for keys that were obviously never configured."""
    if api_key is None:
        return True
    key = api_key.strip()
    return key in PLACEHOLDER_KEYS or key.startswith(("your-", "sk-your"))


def model_token_limit(model: str) -> Optional[int]:
    """Known completion ceiling for a model, None if unknown."""
    matches = [prefix for prefix in MODEL_MAX_TOKENS if model.startswith(prefix)]
    if not matches:
        return None
    return MODEL_MAX_TOKENS[max(matches, key=len)]


class StoryGenerationClient:
    """
    Async client producing one story per call.

    Model, token ceiling, temperature and timeout are fixed at construction;
    callers cannot tune them per request. Retries are disabled so a slow
    provider costs at most one timeout.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int,
        temperature: float,
        timeout: float,
        client: Optional[Any] = None,
    ):
        limit = model_token_limit(model)
        if limit is not None and max_tokens > limit:
            raise ValueError(
                f"max_tokens={max_tokens} exceeds the {limit}-token limit of {model}"
            )

        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self.configured = not is_placeholder_key(api_key)
        self._client = client

        if self._client is None and self.configured:
            self._client = AsyncOpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    @classmethod
    def from_settings(cls, settings) -> "StoryGenerationClient":
        return cls(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            max_tokens=settings.generation_max_tokens,
            temperature=settings.generation_temperature,
            timeout=settings.generation_timeout_seconds,
        )

    async def generate(self, system: str, user: str) -> str:
        """
        Return the generated story text.

        Raises:
            GenerationUnavailableError: provider unconfigured, unreachable,
                timed out, rejected the call or replied without text
        """
        if self._client is None:
            raise GenerationUnavailableError("OpenAI API key is not configured")

        logger.info(f"Requesting story from {self.model} (max_tokens={self.max_tokens})")
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except openai.APITimeoutError as e:
            raise GenerationUnavailableError(f"Provider timed out after {self.timeout}s") from e
        except asyncio.TimeoutError as e:
            raise GenerationUnavailableError(f"Provider timed out after {self.timeout}s") from e
        except openai.OpenAIError as e:
            raise GenerationUnavailableError(f"Provider call failed: {e}") from e

        try:
            text = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise GenerationUnavailableError(f"Malformed provider response: {e}") from e

        if not text or not text.strip():
            raise GenerationUnavailableError("Provider returned an empty story")

        logger.info(f"Story received ({len(text.split())} words)")
        return text
