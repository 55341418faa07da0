from __future__ import annotations

import http.client
import json
import logging
from typing import Any
from urllib.error import HTTPError
from urllib.parse import quote
from urllib.request import Request, urlopen

from farmhelper.config import settings
from farmhelper.services.errors import UpstreamError

LOGGER = logging.getLogger(__name__)

GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


class GeminiClient:
    def __init__(self, api_key: str, model: str, timeout: int = 30) -> None:
        self._api_key = api_key
        self._model = model
        self._timeout = timeout

    def generate_text(self, prompt: str) -> str:
        if not self._api_key:
            raise UpstreamError("Text generation service is not configured")

        payload = json.dumps(
            {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        ).encode("utf-8")
        request = Request(
            GEMINI_ENDPOINT.format(model=quote(self._model, safe="-._")),
            data=payload,
            headers={
                "x-goog-api-key": self._api_key,
                "Content-Type": "application/json",
            },
            method="POST",
        )
        try:
            with urlopen(request, timeout=self._timeout) as response:
                data = json.loads(response.read().decode("utf-8"))
        except HTTPError as exc:
            error_body = exc.read().decode("utf-8", errors="replace")
            LOGGER.error("Gemini API error status=%s body=%s", exc.code, error_body)
            raise UpstreamError("Text generation service returned an error") from exc
        except (OSError, http.client.HTTPException) as exc:
            raise UpstreamError("Failed to reach text generation service") from exc
        except ValueError as exc:
            raise UpstreamError("Text generation service returned malformed data") from exc

        text = _response_text(data)
        if not text:
            LOGGER.error("Gemini API returned no text: %s", data)
            raise UpstreamError("Text generation service returned an empty reply")
        return text


def _response_text(data: Any) -> str:
    if not isinstance(data, dict):
        return ""
    candidates = data.get("candidates") or []
    if not isinstance(candidates, list) or not candidates:
        return ""
    content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return ""
    return "".join(
        part.get("text") or "" for part in parts if isinstance(part, dict)
    )


gemini_client = GeminiClient(
    settings.gemini_api_key, settings.gemini_model, timeout=settings.http_timeout_seconds
)
