"""Google Gemini LLM provider using the google-genai SDK."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from google import genai
from google.genai import types

from wavepulse.exceptions import GenerationError
from wavepulse.observability.logger import get_logger

logger = get_logger("gemini")


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def extract_text(response: Any) -> str:
    """Normalize the shapes a model response can take into one string.

    Handles a plain ``text`` field, a callable ``text`` accessor, and the
    ``candidates[0].content.parts`` / ``candidates[0].text`` layouts.
    """
    if response is None:
        return ""
    if isinstance(response, str):
        return response

    text = _field(response, "text")
    if callable(text):
        text = text()
    if isinstance(text, str) and text:
        return text

    candidates = _field(response, "candidates") or []
    if candidates:
        first = candidates[0]
        parts = _field(_field(first, "content"), "parts") or []
        joined = "".join(_field(part, "text") or "" for part in parts)
        if joined:
            return joined
        candidate_text = _field(first, "text")
        if isinstance(candidate_text, str):
            return candidate_text
    return ""


class GeminiProvider:
    def __init__(self, api_key: str, model: str = "gemini-2.5-flash-lite") -> None:
        self._client = genai.Client(api_key=api_key)
        self._model = model

    @property
    def model(self) -> str:
        return self._model

    async def generate(
        self,
        prompt: str,
        system: str | None = None,
        temperature: float = 0.1,
        max_tokens: int = 8192,
        seed: int | None = None,
        json_output: bool = False,
    ) -> str:
        try:
            config = types.GenerateContentConfig(
                temperature=temperature,
                max_output_tokens=max_tokens,
            )
            if seed is not None:
                config.seed = seed
            if system:
                config.system_instruction = system
            if json_output:
                config.response_mime_type = "application/json"

            response = await self._client.aio.models.generate_content(
                model=self._model,
                contents=prompt,
                config=config,
            )
        except Exception as e:
            raise GenerationError(f"Gemini generation failed: {e}") from e

        text = extract_text(response)
        if not text.strip():
            logger.warning("empty_model_response", model=self._model)
        return text
