import json
import logging
from datetime import datetime

from pydantic import ValidationError as SchemaValidationError

from pethealth.application.errors import ParseError
from pethealth.domain.models import DiagnosisResult, RecommendationResult


logger = logging.getLogger(__name__)


def extract_json_object(raw: str) -> str:
    """Trim anything the model wrapped around the outermost JSON object."""
    raw = (raw or "").strip()
    if not raw.startswith("{"):
        start_idx = raw.find("{")
        if start_idx != -1:
            raw = raw[start_idx:]
    if not raw.endswith("}"):
        end_idx = raw.rfind("}")
        if end_idx != -1:
            raw = raw[:end_idx + 1]
    return raw


def load_json_document(raw: str) -> dict:
    text = extract_json_object(raw)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("Provider response is not valid JSON: %s. Raw: %s", e, text[:200])
        raise ParseError("Failed to parse AI response. Please try again.") from e
    if not isinstance(data, dict):
        logger.warning("Provider response is JSON but not an object. Raw: %s", text[:200])
        raise ParseError("Failed to parse AI response. Please try again.")
    return data


def parse_diagnosis(raw: str, model: str, analyzed_at: datetime) -> DiagnosisResult:
    """
    Validate provider text into a DiagnosisResult.

    Missing keys take their empty defaults; an unknown urgency or a
    wrongly-typed field raises ParseError. ``analyzedAt`` and ``model``
    are always set here, whatever the provider sent.
    """
    data = load_json_document(raw)
    data.pop("analyzedAt", None)
    data.pop("analyzed_at", None)
    data.pop("model", None)
    try:
        diagnosis = DiagnosisResult.model_validate(data)
    except SchemaValidationError as e:
        logger.warning("Diagnosis JSON failed validation: %s", e)
        raise ParseError("AI response did not match the expected diagnosis format. Please try again.") from e
    return diagnosis.model_copy(update={"analyzed_at": analyzed_at, "model": model})


def parse_recommendations(raw: str) -> RecommendationResult:
    data = load_json_document(raw)
    try:
        return RecommendationResult.model_validate(data)
    except SchemaValidationError as e:
        logger.warning("Recommendations JSON failed validation: %s", e)
        raise ParseError("AI response did not match the expected recommendations format. Please try again.") from e
