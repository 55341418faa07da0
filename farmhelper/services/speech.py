from __future__ import annotations

import http.client
import json
import logging
from pathlib import Path
import uuid
from urllib.error import HTTPError
from urllib.request import Request, urlopen

from farmhelper.config import settings
from farmhelper.services.errors import UpstreamError

LOGGER = logging.getLogger(__name__)

ELEVENLABS_TTS_ENDPOINT = "https://api.elevenlabs.io/v1/text-to-speech/{voice_id}"


class ElevenLabsClient:
    def __init__(
        self,
        api_key: str,
        voice_id: str,
        model_id: str,
        output_dir: str,
        timeout: int = 30,
    ) -> None:
        self._api_key = api_key
        self._voice_id = voice_id
        self._model_id = model_id
        self._output_dir = Path(output_dir)
        self._timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self._api_key)

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def synthesize(self, text: str) -> str:
        """Render ``text`` to an mp3 under the output directory and return its file name.

        Every call writes a new uniquely named file, so concurrent requests
        never overwrite each other's audio.
        """
        if not self.enabled:
            raise UpstreamError("Speech synthesis service is not configured")

        payload = json.dumps(
            {
                "text": text,
                "model_id": self._model_id,
                "voice_settings": {"stability": 0.5, "similarity_boost": 0.7},
            }
        ).encode("utf-8")
        request = Request(
            ELEVENLABS_TTS_ENDPOINT.format(voice_id=self._voice_id),
            data=payload,
            headers={
                "xi-api-key": self._api_key,
                "Content-Type": "application/json",
                "Accept": "audio/mpeg",
            },
            method="POST",
        )
        try:
            with urlopen(request, timeout=self._timeout) as response:
                audio = response.read()
        except HTTPError as exc:
            error_body = exc.read().decode("utf-8", errors="replace")
            LOGGER.error("ElevenLabs API error status=%s body=%s", exc.code, error_body)
            raise UpstreamError("Speech synthesis service returned an error") from exc
        except (OSError, http.client.HTTPException) as exc:
            raise UpstreamError("Failed to reach speech synthesis service") from exc

        if not audio:
            raise UpstreamError("Speech synthesis service returned no audio")

        file_name = f"{uuid.uuid4().hex}.mp3"
        try:
            self._output_dir.mkdir(parents=True, exist_ok=True)
            (self._output_dir / file_name).write_bytes(audio)
        except OSError as exc:
            raise UpstreamError("Could not store synthesized audio") from exc
        return file_name


speech_client = ElevenLabsClient(
    settings.elevenlabs_api_key,
    settings.elevenlabs_voice_id,
    settings.elevenlabs_model_id,
    settings.audio_dir,
    timeout=settings.http_timeout_seconds,
)
