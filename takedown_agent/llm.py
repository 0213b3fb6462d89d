"""
Text-completion client backed by Google Gemini.
Used for model-assisted brand detection, takedown drafting and target selection.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Protocol

from google import genai
from google.genai import types

from .errors import UpstreamModelError

logger = logging.getLogger(__name__)


class CompletionModel(Protocol):
    async def complete(self, prompt: str, *, max_output_tokens: int = 1024, temperature: float = 0.2) -> str: ...

    async def complete_json(self, prompt: str, *, max_output_tokens: int = 1024) -> dict[str, Any]: ...


def strip_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def parse_json_reply(text: str) -> dict[str, Any]:
    """Decode a JSON object from a model reply, tolerating code fences."""
    try:
        parsed = json.loads(strip_fences(text))
    except ValueError as e:
        raise UpstreamModelError(f"model reply was not valid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise UpstreamModelError("model reply was not a JSON object")
    return parsed


class GeminiClient:
    def __init__(self, api_key: str, model: str, *, timeout: float = 20.0):
        self._client = genai.Client(api_key=api_key)
        self._model = model
        self._timeout = timeout

    async def _generate(self, prompt: str, config: types.GenerateContentConfig) -> str:
        contents = [
            types.Content(
                role="user",
                parts=[types.Part.from_text(text=prompt)],
            )
        ]
        try:
            resp = await asyncio.wait_for(
                self._client.aio.models.generate_content(
                    model=self._model,
                    contents=contents,
                    config=config,
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            raise UpstreamModelError(f"Gemini call timed out after {self._timeout:.0f}s") from e
        except Exception as e:
            logger.warning("Gemini call failed: %s", e)
            raise UpstreamModelError(f"Gemini call failed: {e}") from e

        text = (getattr(resp, "text", None) or "").strip()
        if not text:
            raise UpstreamModelError("Gemini returned an empty response")
        return text

    async def complete(self, prompt: str, *, max_output_tokens: int = 1024, temperature: float = 0.2) -> str:
        config = types.GenerateContentConfig(
            temperature=temperature,
            max_output_tokens=max_output_tokens,
        )
        return await self._generate(prompt, config)

    async def complete_json(self, prompt: str, *, max_output_tokens: int = 1024) -> dict[str, Any]:
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            temperature=0.2,
            max_output_tokens=max_output_tokens,
        )
        return parse_json_reply(await self._generate(prompt, config))
