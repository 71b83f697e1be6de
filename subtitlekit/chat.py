"""Chat completions from an OpenAI-compatible HTTP API, read as a stream."""

from __future__ import annotations

import json
import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o-mini-2024-07-18"
MAX_TOKENS = 8192
SYSTEM_PROMPT = "You are an assistant that helps with subtitle translation."


class OpenAIChat:
    """Answers prompts through the ``/chat/completions`` endpoint."""

    def __init__(
        self,
        base_url: str = "",
        api_key: str = "",
        proxy: str = "",
        model: str = "",
    ) -> None:
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.api_key = api_key
        self.model = model or DEFAULT_MODEL
        self._client = httpx.Client(proxy=proxy or None, timeout=None)

    def chat_completion(self, query: str) -> str:
        """Send ``query`` and return the concatenated streamed answer."""
        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": query},
            ],
            "stream": True,
            "max_tokens": MAX_TOKENS,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}
        pieces: list[str] = []
        try:
            with self._client.stream(
                "POST", f"{self.base_url}/chat/completions", json=body, headers=headers
            ) as response:
                if response.status_code >= 400:
                    response.read()
                    raise RuntimeError(
                        f"chat completion failed with status {response.status_code}: "
                        f"{response.text}"
                    )
                for line in response.iter_lines():
                    chunk = self._parse_line(line)
                    if chunk is None:
                        break
                    pieces.append(chunk)
        except httpx.HTTPError as exc:
            logger.error("chat completion request failed: %s", exc)
            raise RuntimeError(f"chat completion request failed: {exc}") from exc
        return "".join(pieces)

    @staticmethod
    def _parse_line(line: str) -> Optional[str]:
        """Return the text in one stream line, "" for none, None at the end."""
        line = line.strip()
        if not line.startswith("data:"):
            return ""
        payload = line[len("data:"):].strip()
        if payload == "[DONE]":
            return None
        event = json.loads(payload)
        if "error" in event:
            raise RuntimeError(f"chat completion stream error: {event['error']}")
        choices = event.get("choices") or []
        if not choices:
            logger.info("stream chunk without choices: %s", payload)
            return ""
        return (choices[0].get("delta") or {}).get("content") or ""