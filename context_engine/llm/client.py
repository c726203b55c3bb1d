from __future__ import annotations

import logging
import re

import httpx

logger = logging.getLogger(__name__)

_THINK_BLOCK = re.compile(r"<think>.*?</think>\n*", flags=re.DOTALL)


def strip_reasoning(content: str) -> str:
    """Drop <think>...</think> blocks emitted by reasoning models."""
    content = _THINK_BLOCK.sub("", content)
    # Edge-cases if the LLM gets truncated exactly after opening or closing tags
    content = content.split("</think>")[-1]
    return content.split("<think>")[0].strip()


class OllamaClient:
    """generate_completion(prompt) -> text, backed by Ollama's /api/generate."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        model: str,
    ):
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._model = model

    async def generate_completion(self, prompt: str, model: str | None = None) -> str:
        use_model = model or self._model
        payload = {"model": use_model, "prompt": prompt, "stream": False}

        resp = await self._http.post(f"{self._base_url}/api/generate", json=payload)
        if resp.status_code == 404:
            logger.error(
                "Ollama model '%s' not found, download it with: ollama pull %s",
                use_model,
                use_model,
            )
        resp.raise_for_status()
        content = resp.json().get("response", "")
        logger.debug("LLM raw response: %s", content[:500])
        return strip_reasoning(content)

    async def is_available(self) -> bool:
        try:
            resp = await self._http.get(
                f"{self._base_url}/api/tags",
                timeout=5.0,
            )
            return resp.status_code == 200
        except httpx.HTTPError:
            return False
