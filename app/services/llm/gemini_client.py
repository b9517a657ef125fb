# app/services/llm/gemini_client.py
from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional

import httpx

from app.core.config import settings

log = logging.getLogger("gemini")

GENERATE_PATH = "/models/{model}:generateContent"

# Summaries of books can trip the default filters (war, abuse, ...)
SAFETY_SETTINGS = [
    {"category": c, "threshold": "BLOCK_ONLY_HIGH"}
    for c in (
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    )
]

_FENCE = re.compile(r"^\s*```(?:json)?\s*|\s*```\s*$", re.IGNORECASE)


def strip_fences(text: str) -> str:
    """Drop a surrounding ```json ... ``` block if the model added one."""
    return _FENCE.sub("", text or "").strip()


def extract_json(text: str) -> Optional[Any]:
    """
    Pull a JSON value out of a messy LLM string.
    Strategy:
      1) whole text (after stripping markdown fences)
      2) scan for the last balanced top-level {...} block
    """
    cleaned = strip_fences(text)
    try:
        return json.loads(cleaned)
    except ValueError:
        pass

    last_obj = None
    depth = 0
    start_idx = None
    for i, ch in enumerate(cleaned):
        if ch == "{":
            if depth == 0:
                start_idx = i
            depth += 1
        elif ch == "}" and depth:
            depth -= 1
            if depth == 0 and start_idx is not None:
                try:
                    last_obj = json.loads(cleaned[start_idx : i + 1])
                except ValueError:
                    pass
                start_idx = None
    return last_obj


class GeminiClient:
    """
    Small async client for Gemini's ``generateContent`` REST endpoint.

    Features:
      - API key passed as ``x-goog-api-key`` header
      - simple retries on network errors and 5xx/429
      - JSON response mode (``responseMimeType``) with tolerant parsing

    Settings used: GEMINI_API_KEY, GEMINI_MODEL, GEMINI_BASE_URL,
    GEMINI_TIMEOUT, GEMINI_MAX_RETRIES.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key or settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.base_url = (base_url or settings.GEMINI_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.GEMINI_TIMEOUT
        self.max_retries = max_retries if max_retries is not None else settings.GEMINI_MAX_RETRIES
        self._transport = transport

    @property
    def url(self) -> str:
        return self.base_url + GENERATE_PATH.format(model=self.model)

    # ----------------------- Low-level request helpers -----------------------

    def _payload(self, prompt: str, json_mode: bool) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "safetySettings": SAFETY_SETTINGS,
        }
        if json_mode:
            payload["generationConfig"] = {"responseMimeType": "application/json"}
        return payload

    async def _apost_json(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not self.api_key:
            raise RuntimeError("GEMINI_API_KEY is not configured")
        headers = {"x-goog-api-key": self.api_key}
        attempt = 0
        last_exc: Optional[Exception] = None
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            while attempt <= self.max_retries:
                try:
                    r = await client.post(self.url, json=payload, headers=headers)
                    r.raise_for_status()
                    return r.json()
                except httpx.HTTPStatusError as e:
                    last_exc = e
                    # 4xx other than rate limiting will not get better on retry
                    if e.response.status_code < 500 and e.response.status_code != 429:
                        break
                except (httpx.RequestError, ValueError) as e:
                    last_exc = e
                attempt += 1
                log.warning("gemini attempt %d failed: %s", attempt, last_exc)
        raise RuntimeError(f"Gemini request failed: {last_exc}")

    @staticmethod
    def _text_of(data: Dict[str, Any]) -> str:
        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError):
            raise RuntimeError(f"Unexpected Gemini response: {str(data)[:300]}")
        return "".join(p.get("text", "") for p in parts if isinstance(p, dict))

    # ----------------------------- Generate APIs -----------------------------

    async def a_generate(self, prompt: str) -> str:
        data = await self._apost_json(self._payload(prompt, json_mode=False))
        return self._text_of(data).strip()

    async def a_generate_json(self, prompt: str) -> Any:
        """Generate and parse a JSON value; raises RuntimeError if none can be found."""
        data = await self._apost_json(self._payload(prompt, json_mode=True))
        txt = self._text_of(data)
        obj = extract_json(txt)
        if obj is None:
            raise RuntimeError(f"Gemini returned no JSON: {txt[:200]!r}")
        return obj
