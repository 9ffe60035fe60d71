"""LLM gateway for Groq chat completions via the OpenAI-compatible API."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
from openai import APIConnectionError, APIStatusError, OpenAI, OpenAIError

from stockmemo.config import DEFAULT_GROQ_BASE_URL, DEFAULT_GROQ_MODEL
from stockmemo.domain.errors import ConfigurationError, UpstreamError


class GroqClient:
    """Minimal chat client hiding transport plumbing from workflow nodes."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_GROQ_MODEL,
        *,
        base_url: str = DEFAULT_GROQ_BASE_URL,
        proxy_url: Optional[str] = None,
        timeout: float = 60.0,
        max_tokens: int = 4000,
    ) -> None:
        if not api_key:
            raise ConfigurationError("API keys not configured")

        http_client_kwargs: Dict[str, Any] = {
            "timeout": httpx.Timeout(timeout, connect=10.0),
        }
        if proxy_url:
            http_client_kwargs["proxy"] = proxy_url

        self._http_client = httpx.Client(**http_client_kwargs)
        self._client = OpenAI(
            api_key=api_key,
            base_url=base_url,
            http_client=self._http_client,
            max_retries=0,
        )
        self._model = model
        self._max_tokens = max_tokens

    @property
    def model(self) -> str:
        return self._model

    def generate(
        self,
        messages: List[Dict[str, str]],
        *,
        temperature: float = 0.3,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Fire a chat completion request and return the assistant message content."""
        try:
            response = self._client.chat.completions.create(
                model=self._model,
                temperature=temperature,
                max_tokens=max_tokens or self._max_tokens,
                messages=messages,
            )
        except APIStatusError as exc:
            raise UpstreamError("Groq API", exc.message, status=exc.status_code) from exc
        except APIConnectionError as exc:
            raise UpstreamError("Groq API", f"connection failed: {exc}") from exc
        except OpenAIError as exc:
            raise UpstreamError("Groq API", str(exc)) from exc

        if not response.choices:
            raise UpstreamError("Groq API", "no choices returned")
        return (response.choices[0].message.content or "").strip()

    def close(self) -> None:
        """Release the underlying HTTP session."""
        self._http_client.close()
