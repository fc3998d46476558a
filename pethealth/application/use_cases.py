import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from pethealth.application.classifier import Route, classify_failure
from pethealth.application.errors import (
    ParseError,
    ProviderError,
    ProviderFailure,
    ServiceUnavailableError,
    ValidationError,
)
from pethealth.application.normalizer import parse_diagnosis, parse_recommendations
from pethealth.application.ports import AnimalDirectoryPort, DiagnosticLLMPort, HealthRecordPort
from pethealth.application.prompts import (
    RECOMMENDATIONS_SYSTEM_PROMPT,
    SYSTEM_PROMPT,
    build_recommendations_prompt,
    build_user_prompt,
)
from pethealth.application.schemas import DiagnoseRequest, DiagnosisOutcome, QuickCheckRequest, ServiceStatus
from pethealth.application.validation import (
    build_clinical_context,
    check_diagnose_fields,
    ensure_symptoms,
    validate_species,
)
from pethealth.domain.fallback import FALLBACK_DISCLAIMER, UNAVAILABLE_DISCLAIMER, build_fallback_diagnosis
from pethealth.domain.models import ClinicalContext, DiagnosisResult, RecommendationResult
from pethealth.domain.rules import build_health_record_draft


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DiagnosticService:
    """Runs one diagnostic request/response cycle against the provider."""

    def __init__(
        self,
        llm: DiagnosticLLMPort,
        animals: Optional[AnimalDirectoryPort] = None,
        records: Optional[HealthRecordPort] = None,
        clock: Callable[[], datetime] = _utcnow,
        recommendations_max_tokens: Optional[int] = None,
    ):
        self.llm = llm
        self.animals = animals
        self.records = records
        self.clock = clock
        self.recommendations_max_tokens = recommendations_max_tokens

    def is_configured(self) -> bool:
        return self.llm.is_configured()

    def status(self) -> ServiceStatus:
        configured = self.is_configured()
        if configured:
            message = "AI diagnostic service is available"
        else:
            message = "AI service is not configured. Add OPENAI_API_KEY to enable real analysis; demo results are used instead."
        return ServiceStatus(configured=configured, available=configured, model=self.llm.model, message=message)

    async def diagnose(self, context: ClinicalContext) -> DiagnosisResult:
        ensure_symptoms(context)

        if not self.llm.is_configured():
            logger.info("Diagnostic provider not configured; returning demo diagnosis.")
            return self._fallback(context)

        user_prompt = build_user_prompt(context)
        try:
            raw = await self.llm.complete_json(SYSTEM_PROMPT, user_prompt)
            return parse_diagnosis(raw, model=self.llm.model, analyzed_at=self.clock())
        except (ProviderError, ParseError) as e:
            return self._handle_failure(e, context)

    def _handle_failure(self, error, context: ClinicalContext) -> DiagnosisResult:
        route = classify_failure(error)
        if route == Route.PROPAGATE:
            if isinstance(error, ProviderError):
                logger.warning("Provider declined the diagnosis request: %s", error.message)
                raise ParseError("The AI service could not produce a diagnosis for this request.") from error
            raise error

        logger.warning("Diagnostic provider failed (%s); returning demo diagnosis.", error.kind.value)
        if route == Route.FALLBACK_UNAVAILABLE:
            return self._fallback(context, disclaimer=UNAVAILABLE_DISCLAIMER)
        return self._fallback(context)

    def _fallback(self, context: ClinicalContext, disclaimer: str = FALLBACK_DISCLAIMER) -> DiagnosisResult:
        return build_fallback_diagnosis(
            context.species, context.symptoms, analyzed_at=self.clock(), disclaimer=disclaimer
        )

    async def diagnose_request(self, request: DiagnoseRequest) -> DiagnosisOutcome:
        check_diagnose_fields(request.animal_id, request.symptoms)
        animal = None
        if self.animals is not None:
            animal = self.animals.get_animal(request.animal_id.strip())

        context = build_clinical_context(
            request.symptoms,
            animal_id=request.animal_id,
            animal=animal,
            require_animal=True,
            duration=request.duration,
            additional_info=request.additional_info,
        )
        diagnosis = await self.diagnose(context)

        record_id = None
        if request.save_to_records:
            if self.records is None:
                logger.warning("save_to_records requested but no health record store is configured.")
            else:
                record_id = self.records.create_record(build_health_record_draft(context, diagnosis))
                logger.info("Saved diagnosis as health record %s for animal %s", record_id, context.animal_id)

        return DiagnosisOutcome(diagnosis=diagnosis, animal=animal, health_record_id=record_id)

    async def quick_check(self, request: QuickCheckRequest) -> DiagnosisResult:
        context = build_clinical_context(
            request.symptoms,
            species=request.species,
            duration=request.duration,
            additional_info=request.additional_info,
        )
        return await self.diagnose(context)

    async def get_care_recommendations(self, species: Optional[str], condition: Optional[str]) -> RecommendationResult:
        ok, message = validate_species(species)
        if not ok:
            raise ValidationError("species", message)
        if not condition or not condition.strip():
            raise ValidationError("condition", "Condition is required")

        if not self.llm.is_configured():
            raise ServiceUnavailableError("AI service is not configured. Please contact support.")

        prompt = build_recommendations_prompt(species.strip().title(), condition.strip())
        try:
            raw = await self.llm.complete_json(
                RECOMMENDATIONS_SYSTEM_PROMPT, prompt, max_tokens=self.recommendations_max_tokens
            )
        except ProviderError as e:
            logger.warning("Care recommendations failed (%s)", e.kind.value)
            if e.kind == ProviderFailure.REFUSED:
                raise ParseError("The AI service could not produce recommendations for this request.") from e
            raise ServiceUnavailableError("Failed to get care recommendations. Please try again later.") from e
        return parse_recommendations(raw)
