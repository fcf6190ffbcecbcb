"""Groq chat-completion client.

Thin wrapper over the OpenAI-compatible REST API: one call to list
models, one call to complete a conversation. Retrying is the caller's
business (see generator.py).
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .config import DEFAULT_MODEL
from .errors import (
    AuthenticationError,
    ModelConnectionError,
    ModelError,
    PayloadTooLargeError,
    RateLimitError,
)

logger = logging.getLogger(__name__)

GROQ_BASE_URL = "https://api.groq.com/openai/v1"
REQUEST_TIMEOUT = 30.0  # seconds

# Used when the model list cannot be fetched
FALLBACK_MODELS = [
    "llama-3.3-70b-versatile",
    "llama-3.1-8b-instant",
    "openai/gpt-oss-120b",
    "openai/gpt-oss-20b",
    "meta-llama/llama-guard-4-12b",
]


class GroqClient:
    """Client for the Groq chat completions API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = GROQ_BASE_URL,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.Client(
            timeout=timeout,
            headers={"Authorization": f"Bearer {api_key}"},
        )

    def list_models(self) -> list[str]:
        """Active model ids, or the fallback list if the API is unavailable."""
        try:
            resp = self._client.get(f"{self.base_url}/models", timeout=10)
            if resp.status_code != 200:
                raise ModelError(f"Groq returned {resp.status_code}")
            data = resp.json()
            names = sorted(
                m["id"] for m in data.get("data", [])
                if m.get("active", True) is not False and "id" in m
            )
            if not names:
                raise ModelError("Groq returned no active models")
            return names
        except (httpx.HTTPError, ModelError, ValueError, KeyError) as e:
            logger.warning("Failed to fetch models from API, using fallback list: %s", e)
            return list(FALLBACK_MODELS)

    def complete(
        self,
        messages: list[dict[str, str]],
        model: str = DEFAULT_MODEL,
        temperature: float = 0.7,
        max_tokens: int = 2048,
    ) -> str:
        """Send a conversation and return the first choice's text."""
        payload: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        try:
            resp = self._client.post(
                f"{self.base_url}/chat/completions",
                json=payload,
                timeout=self.timeout,
            )
        except httpx.TimeoutException:
            raise ModelConnectionError(f"Request timed out after {self.timeout}s")
        except httpx.ConnectError:
            raise ModelConnectionError(
                "Cannot connect to the Groq API. Check your network connection."
            )

        if resp.status_code == 401:
            raise AuthenticationError("Invalid API key. Please check your Groq API key.")
        if resp.status_code == 429:
            raise RateLimitError("Rate limit exceeded. Please try again later.")
        if resp.status_code == 413:
            raise PayloadTooLargeError("Prompt too large for the selected model.")
        if resp.status_code != 200:
            raise ModelError(f"Groq returned {resp.status_code}: {resp.text[:200]}")

        data = resp.json()
        choices = data.get("choices") or [{}]
        content = (choices[0].get("message") or {}).get("content")
        if not content:
            raise ModelError("No content generated from AI")
        return content

    def close(self) -> None:
        self._client.close()
