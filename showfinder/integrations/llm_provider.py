from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

import requests
from openai import OpenAI

from showfinder.show_ingest.errors import ExtractionServiceError


class LLMProvider(ABC):
    """
    Abstract LLM provider interface.

    Language model backends (Gemini, OpenAI, ...) implement this contract.
    Higher-level modules depend on this interface instead of any specific
    vendor SDK, which is also what lets tests swap in a canned provider.
    """

    @abstractmethod
    def generate(self, prompt: str, *, timeout_s: float, **kwargs: Any) -> str:
        """
        Generate a response for the given prompt within `timeout_s`.

        Returns the plain response text. Any failure (transport, deadline,
        non-2xx, empty/blocked response) raises ExtractionServiceError.
        """
        raise NotImplementedError


class GeminiProvider(LLMProvider):
    """Google Generative Language `generateContent` over plain REST."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash",
        endpoint: str = "https://generativelanguage.googleapis.com/v1beta",
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.endpoint = endpoint.rstrip("/")
        self.session = session or requests.Session()

    def generate(self, prompt: str, *, timeout_s: float, **kwargs: Any) -> str:
        url = f"{self.endpoint}/models/{self.model}:generateContent"
        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": kwargs.get("temperature", 0.2),
                "topP": kwargs.get("top_p", 0.8),
                "topK": kwargs.get("top_k", 40),
            },
        }

        try:
            resp = self.session.post(
                url,
                params={"key": self.api_key},
                json=body,
                headers={"Content-Type": "application/json"},
                timeout=timeout_s,
            )
        except requests.Timeout as e:
            raise ExtractionServiceError(f"gemini timeout after {timeout_s:.0f}s") from e
        except requests.RequestException as e:
            raise ExtractionServiceError(f"gemini transport error: {type(e).__name__}: {str(e)[:200]}") from e

        if resp.status_code < 200 or resp.status_code >= 300:
            raise ExtractionServiceError(f"gemini HTTP {resp.status_code}: {(resp.text or '')[:200]}")

        try:
            data = resp.json()
        except ValueError as e:
            raise ExtractionServiceError("gemini returned a non-JSON body") from e

        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise ExtractionServiceError("gemini returned no usable content") from e

        if not isinstance(text, str) or not text.strip():
            raise ExtractionServiceError("gemini returned empty text")
        return text.strip()


class OpenAIProvider(LLMProvider):
    """OpenAI (or compatible, via `endpoint`) chat completions."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4.1-mini",
        endpoint: Optional[str] = None,
        client_instance: Optional[OpenAI] = None,
    ) -> None:
        self.model = model
        self._client = client_instance or OpenAI(api_key=api_key, base_url=endpoint, max_retries=0)

    def generate(self, prompt: str, *, timeout_s: float, **kwargs: Any) -> str:
        try:
            response = self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=kwargs.get("temperature", 0.2),
                top_p=kwargs.get("top_p", 0.8),
                timeout=timeout_s,
            )
            text = response.choices[0].message.content
        except Exception as e:
            raise ExtractionServiceError(f"openai call failed: {type(e).__name__}: {str(e)[:200]}") from e

        text = (text or "").strip()
        if not text:
            raise ExtractionServiceError("openai returned empty text")
        return text


def build_provider(provider: str, *, api_key: str, model: str, endpoint: Optional[str] = None) -> LLMProvider:
    if provider == "gemini":
        if endpoint:
            return GeminiProvider(api_key=api_key, model=model, endpoint=endpoint)
        return GeminiProvider(api_key=api_key, model=model)
    if provider == "openai":
        return OpenAIProvider(api_key=api_key, model=model, endpoint=endpoint)
    raise ValueError(f"unknown extraction provider: {provider!r}")
