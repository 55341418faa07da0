from dataclasses import replace
import http.client
import json
from pathlib import Path
from unittest.mock import patch

import pytest

from farmhelper import dependencies
from farmhelper.config import settings
from farmhelper.routers import ai
from farmhelper.services.advisory import AdvisoryPipeline
from farmhelper.services.errors import UpstreamError
from farmhelper.services.llm import GeminiClient
from farmhelper.services.speech import ElevenLabsClient
from farmhelper.services.tokens import create_access_token

REQUEST = {
    "locality": "Nashik",
    "cropType": "Wheat",
    "growthStage": "vegetative",
    "soilType": "loam",
    "message": "leaves are turning yellow",
}


class StubGenerator:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error

    def generate_text(self, prompt):
        if self.error:
            raise self.error
        return self.reply


class StubSynthesizer:
    enabled = True

    def synthesize(self, text):
        return "f00d.mp3"


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {create_access_token(1, 'alice')}"}


@pytest.fixture
def use_pipeline(monkeypatch):
    def _use(generator, synthesizer=None):
        pipeline = AdvisoryPipeline(generator, synthesizer or StubSynthesizer())
        monkeypatch.setattr(ai, "advisory_pipeline", pipeline)

    return _use


def test_soil_returns_embedded_advisory(client, auth_headers, use_pipeline):
    advisory = {"overview": "Use compost.", "speech_index": "खाद डालें।"}
    use_pipeline(StubGenerator("Here you go: " + json.dumps(advisory) + " Thanks!"))

    response = client.post("/api/ai/soil", json=REQUEST, headers=auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Success!"
    assert body["data"]["overview"] == "Use compost."
    assert body["audio"] == "http://testserver/audio/f00d.mp3"


def test_soil_message_is_optional(client, auth_headers, use_pipeline):
    use_pipeline(StubGenerator('{"overview": "ok"}'))
    payload = {key: value for key, value in REQUEST.items() if key != "message"}

    response = client.post("/api/ai/soil", json=payload, headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["audio"] is None


def test_soil_missing_field_is_400(client, auth_headers, use_pipeline):
    use_pipeline(StubGenerator('{"overview": "ok"}'))
    payload = dict(REQUEST, soilType="")

    response = client.post("/api/ai/soil", json=payload, headers=auth_headers)

    assert response.status_code == 400
    assert response.json() == {"message": "Enter all Fields"}


def test_soil_without_json_is_502(client, auth_headers, use_pipeline):
    use_pipeline(StubGenerator("Sorry, I am unable to answer."))

    response = client.post("/api/ai/soil", json=REQUEST, headers=auth_headers)

    assert response.status_code == 502
    assert response.json() == {"message": "No JSON object found in the AI response"}


def test_soil_upstream_failure_is_502(client, auth_headers, use_pipeline):
    use_pipeline(StubGenerator(error=UpstreamError("Failed to reach text generation service")))

    response = client.post("/api/ai/soil", json=REQUEST, headers=auth_headers)

    assert response.status_code == 502
    assert response.json() == {"message": "Failed to reach text generation service"}


def test_soil_requires_token(client, use_pipeline):
    use_pipeline(StubGenerator('{"overview": "ok"}'))

    missing = client.post("/api/ai/soil", json=REQUEST)
    invalid = client.post(
        "/api/ai/soil", json=REQUEST, headers={"Authorization": "Bearer nope"}
    )

    assert missing.status_code == 401
    assert missing.json() == {"message": "No token provided"}
    assert invalid.status_code == 401
    assert invalid.json() == {"message": "Invalid Token!"}


def test_audio_url_is_request_scoped():
    assert ai.audio_url("a1.mp3") != ai.audio_url("b2.mp3")
    assert ai.audio_url(None) is None


def test_soil_dropped_speech_connection_returns_text_only(
    client, auth_headers, use_pipeline, tmp_path
):
    advisory = {"overview": "Use compost.", "speech_index": "खाद डालें।"}
    use_pipeline(
        StubGenerator(json.dumps(advisory)),
        ElevenLabsClient("key", "voice", "model", str(tmp_path)),
    )

    with patch(
        "farmhelper.services.speech.urlopen",
        side_effect=http.client.RemoteDisconnected("closed"),
    ):
        response = client.post("/api/ai/soil", json=REQUEST, headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["data"] == advisory
    assert response.json()["audio"] is None


def test_soil_dropped_text_connection_is_502(client, auth_headers, use_pipeline):
    use_pipeline(GeminiClient("key", "gemini-2.5-flash"))

    with patch(
        "farmhelper.services.llm.urlopen",
        side_effect=http.client.RemoteDisconnected("closed"),
    ):
        response = client.post("/api/ai/soil", json=REQUEST, headers=auth_headers)

    assert response.status_code == 502
    assert response.json() == {"message": "Failed to reach text generation service"}


def test_soil_open_when_auth_not_required(client, use_pipeline, monkeypatch):
    monkeypatch.setattr(
        dependencies, "settings", replace(settings, advisory_requires_auth=False)
    )
    use_pipeline(StubGenerator('{"overview": "ok"}'))

    response = client.post("/api/ai/soil", json=REQUEST)

    assert response.status_code == 200
    assert response.json()["data"] == {"overview": "ok"}


def test_generated_audio_is_served(client):
    (Path(settings.audio_dir) / "c0ffee.mp3").write_bytes(b"ID3-audio")

    response = client.get("/audio/c0ffee.mp3")

    assert response.status_code == 200
    assert response.content == b"ID3-audio"


def test_missing_audio_is_404(client):
    response = client.get("/audio/missing.mp3")

    assert response.status_code == 404
