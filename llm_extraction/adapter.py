"""LLM adapters for metric extraction.

Provides a base interface, an adapter for OpenAI-compatible chat
completion APIs and a deterministic mock for local runs and CI.
"""

import json
import os
from abc import ABC, abstractmethod
from typing import Optional


class BaseLLMAdapter(ABC):
    """Abstract base for all LLM adapters."""

    @abstractmethod
    def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Send one system + user exchange and return the raw response text.

        Args:
            system_prompt: Extraction instructions and output contract.
            user_prompt: Serialized workbook content.

        Returns:
            Raw string response from the model (expected to contain JSON).
        """


class OpenAILLMAdapter(BaseLLMAdapter):
    """Adapter for OpenAI-compatible chat completion APIs.

    Non-streaming, temperature 0. Transport, auth and rate-limit errors
    from the client propagate unchanged; retries are the caller's concern.
    """

    def __init__(
        self,
        model: str = "gpt-4.1-mini",
        max_tokens: int = 16384,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> None:
        """Initialise the OpenAI adapter.

        Args:
            model: Model identifier.
            max_tokens: Maximum tokens in the completion.
            api_key: API key. Falls back to the OPENAI_API_KEY env var.
            base_url: Optional base URL for OpenAI-compatible endpoints.
        """
        try:
            from openai import OpenAI  # type: ignore[import-untyped]
        except ImportError as exc:
            raise ImportError(
                "openai package is required for OpenAILLMAdapter. "
                "Install it with: pip install openai"
            ) from exc

        resolved_key = api_key or os.environ.get("OPENAI_API_KEY", "")
        if not resolved_key:
            raise ValueError("An API key is required for OpenAILLMAdapter.")

        client_kwargs: dict = {"api_key": resolved_key, "max_retries": 0}
        if base_url:
            client_kwargs["base_url"] = base_url

        self._client = OpenAI(**client_kwargs)
        self._model = model
        self._max_tokens = max_tokens

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Call the chat completion API once.

        Returns:
            Text content of the first choice, or "" when the model sent none.
        """
        response = self._client.chat.completions.create(
            model=self._model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=0,
            max_tokens=self._max_tokens,
            stream=False,
        )
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


_MOCK_RESPONSE_JSON = json.dumps({"metrics": []})


class MockLLMAdapter(BaseLLMAdapter):
    """Deterministic adapter returning a fixed response.

    Used for local runs and CI pipelines where no LLM API is available.
    """

    def __init__(self, response: str = _MOCK_RESPONSE_JSON) -> None:
        self._response = response
        self.call_count = 0
        self.last_call: Optional[tuple[str, str]] = None

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        self.call_count += 1
        self.last_call = (system_prompt, user_prompt)
        return self._response
