# ecoin_link/core/insight/gemini.py
"""
Short operational insight over the detection history, generated by the
Gemini text API. On demand only; never called from the serial read loop.
"""

from __future__ import annotations

import logging
import time
from typing import Iterable, List, Optional

import httpx

from ecoin_link.core.bus.models import DetectionEvent

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-3-flash-preview"
EMPTY_RESPONSE_TEXT = "Insight generated but empty."


class InsightUnavailable(Exception):
    pass


def build_prompt(events: Iterable[DetectionEvent]) -> str:
    stamps = ", ".join(time.strftime("%H:%M:%S", time.localtime(e.ts)) for e in events)
    return (
        f"Analyze these infrared detection timestamps: {stamps}. "
        "Provide a 2-sentence professional insight about the detection patterns "
        "and operational efficiency for the Ecoin monitoring system."
    )


def _extract_text(body: dict) -> str:
    parts: List[str] = []
    for cand in body.get("candidates") or []:
        content = cand.get("content") or {}
        for part in content.get("parts") or []:
            text = part.get("text")
            if text:
                parts.append(text)
        if parts:
            break
    return "".join(parts).strip()


class GeminiInsightClient:
    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_MODEL,
        base_url: str = GEMINI_BASE_URL,
        timeout_s: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key or ""
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self._transport = transport

    async def generate(self, events: List[DetectionEvent]) -> str:
        if not events:
            raise InsightUnavailable("No telemetry data to analyze yet.")
        if not self.api_key:
            raise InsightUnavailable("AI Service unavailable: Check API key.")

        url = f"{self.base_url}/models/{self.model}:generateContent"
        payload = {"contents": [{"parts": [{"text": build_prompt(events)}]}]}

        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
                resp = await client.post(
                    url,
                    json=payload,
                    headers={"x-goog-api-key": self.api_key},
                )
                resp.raise_for_status()
                body = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("[INSIGHT] request failed: %s", e)
            raise InsightUnavailable("AI Service unavailable: Check API key.") from e

        return _extract_text(body) or EMPTY_RESPONSE_TEXT
