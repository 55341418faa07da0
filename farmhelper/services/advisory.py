"""Fertilizer advisory generation.

The farmer's input is turned into an agronomist prompt, sent to the text
model, and the JSON object embedded in the reply is returned as-is. Speech
narration is best effort: a synthesis failure leaves ``audio_file`` empty
instead of failing the request.
"""
from __future__ import annotations

from dataclasses import dataclass
import json
import logging
import re
from typing import Any, Optional, Protocol

from farmhelper.services.errors import ExtractionError, UpstreamError, ValidationError
from farmhelper.services.llm import gemini_client
from farmhelper.services.speech import speech_client

LOGGER = logging.getLogger(__name__)

EXPECTED_FIELDS = (
    "overview",
    "fertilizer_recommendations",
    "organic_alternatives",
    "irrigation_advice",
    "soil_health_tips",
    "caution",
    "speech_index",
)

_JSON_BLOCK = re.compile(r"\{.*\}", re.DOTALL)


class TextGenerator(Protocol):
    def generate_text(self, prompt: str) -> str: ...


class SpeechSynthesizer(Protocol):
    @property
    def enabled(self) -> bool: ...

    def synthesize(self, text: str) -> str: ...


@dataclass(frozen=True)
class Advisory:
    data: dict[str, Any]
    audio_file: Optional[str] = None


def build_soil_fertilizer_prompt(
    locality: str,
    crop_type: str,
    growth_stage: str,
    soil_type: str,
    message: Optional[str] = None,
) -> str:
    farmer_note = f"- Additional notes from farmer: {message}\n" if message else ""
    return f"""You are an expert agronomist and soil scientist.
Your task is to generate a simple, practical, and safe fertilizer and soil health recommendation for farmers.

General Instructions:
- Always output valid JSON only. No explanations, no extra text, no markdown code fences.
- Keep the language easy to understand for farmers.
- Base suggestions on sustainable and safe practices.
- If unsure about missing data, still produce valid JSON with best common practices for the given crop/region.
- Recommendations must avoid excessive chemical fertilizer and suggest balanced use of organic amendments.

Farmer Profile:
- Locality/Region: {locality}
- Crop: {crop_type}
- Growth Stage: {growth_stage} (e.g., seedling, vegetative, flowering, fruiting, harvest)
- Soil Type: {soil_type} (e.g., sandy, clay, loam)
{farmer_note}
Rules:
- Output must be in the exact JSON format below.
- Use practical fertilizers (NPK, compost, manure, etc.) with quantity guidance.
- Add irrigation advice if relevant.
- Include soil health improvement tips for the long run.
- Keep all numbers in integers or decimals only.
- Output must start with {{ and end with }}, no trailing commas.
- Additionally, provide a field "speech_index" which contains a very short and simple Hindi summary of the advice (1-2 sentences, spoken style).

Output Format (JSON Object):
{{
  "farmer": {{
    "locality": string,
    "crop": string,
    "growth_stage": string,
    "soil_type": string
  }},
  "overview": string,
  "fertilizer_recommendations": [
    {{ "type": string, "quantity": number, "unit": string, "application_time": string }}
  ],
  "organic_alternatives": [ string, string, string ],
  "irrigation_advice": string,
  "soil_health_tips": [ string, string, string ],
  "caution": [ string, string ],
  "speech_index": string
}}"""


def extract_json(text: str) -> dict[str, Any]:
    """Parse the span from the first ``{`` to the last ``}`` of ``text``.

    Raises ExtractionError when there is no such span, when it is not valid
    JSON, or when it decodes to something other than an object.
    """
    match = _JSON_BLOCK.search(text or "")
    if match is None:
        raise ExtractionError("No JSON object found in the AI response")
    try:
        value = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise ExtractionError("AI response contained malformed JSON") from exc
    if not isinstance(value, dict):
        raise ExtractionError("AI response JSON is not an object")
    return value


def _clean(value: Optional[str]) -> str:
    return value.strip() if isinstance(value, str) else ""


class AdvisoryPipeline:
    def __init__(self, generator: TextGenerator, synthesizer: SpeechSynthesizer) -> None:
        self._generator = generator
        self._synthesizer = synthesizer

    def generate(
        self,
        locality: Optional[str],
        crop_type: Optional[str],
        growth_stage: Optional[str],
        soil_type: Optional[str],
        message: Optional[str] = None,
    ) -> Advisory:
        fields = [_clean(value) for value in (locality, crop_type, growth_stage, soil_type)]
        if not all(fields):
            raise ValidationError("Enter all Fields")

        prompt = build_soil_fertilizer_prompt(*fields, message=_clean(message) or None)
        reply = self._generator.generate_text(prompt)
        try:
            data = extract_json(reply)
        except ExtractionError:
            LOGGER.error("Advisory extraction failed, reply=%.500s", reply)
            raise

        missing = [name for name in EXPECTED_FIELDS if name not in data]
        if missing:
            LOGGER.warning("Advisory is missing fields: %s", ", ".join(missing))

        return Advisory(data=data, audio_file=self._narrate(data.get("speech_index")))

    def _narrate(self, summary: Any) -> Optional[str]:
        if not isinstance(summary, str) or not summary.strip():
            return None
        if not self._synthesizer.enabled:
            LOGGER.info("Speech synthesis disabled, skipping narration")
            return None
        try:
            return self._synthesizer.synthesize(summary.strip())
        except UpstreamError as exc:
            LOGGER.warning("Speech synthesis failed, returning advisory without audio: %s", exc)
            return None


advisory_pipeline = AdvisoryPipeline(gemini_client, speech_client)
