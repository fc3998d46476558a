import asyncio
import json
from datetime import datetime, timezone

import pytest

from pethealth.application.errors import (
    ParseError,
    ProviderError,
    ProviderFailure,
    ServiceUnavailableError,
    ValidationError,
)
from pethealth.application.schemas import DiagnoseRequest, QuickCheckRequest
from pethealth.application.use_cases import DiagnosticService
from pethealth.domain.fallback import FALLBACK_DISCLAIMER, MOCK_MODEL
from pethealth.domain.models import AnimalProfile, ClinicalContext, DiagnosisResult, Severity, Species, Urgency


FIXED_NOW = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def _valid_payload(**overrides):
    payload = {
        "possibleConditions": [
            {"name": "Gastroenteritis", "probability": "High", "description": "Stomach upset", "commonIn": "Dogs"}
        ],
        "recommendedActions": ["Withhold food for 12 hours"],
        "medications": [
            {"name": "Probiotic paste", "type": "Over-the-counter", "dosage": "1 tube daily", "notes": "With food"},
            {"name": "Maropitant", "type": "Prescription", "dosage": "Per vet", "notes": "Anti-nausea"},
        ],
        "warningSignsToWatch": ["Blood in vomit"],
        "homeCareTips": ["Small sips of water"],
        "urgency": "Medium",
        "shouldSeeVet": True,
        "timeframe": "within 24 hours",
        "disclaimer": "This is AI-generated advice.",
    }
    payload.update(overrides)
    return payload


class DummyLLM:
    def __init__(self, response=None, error=None, configured=True):
        self.response = response if response is not None else json.dumps(_valid_payload())
        self.error = error
        self.configured = configured
        self.calls = []

    @property
    def model(self):
        return "test-model"

    def is_configured(self):
        return self.configured

    async def complete_json(self, system_prompt, user_prompt, max_tokens=None):
        self.calls.append({"system": system_prompt, "user": user_prompt, "max_tokens": max_tokens})
        if self.error is not None:
            raise self.error
        return self.response


class DummyAnimals:
    def __init__(self, animals=None):
        self.animals = {a.id: a for a in (animals or [])}
        self.lookups = 0

    def get_animal(self, animal_id):
        self.lookups += 1
        return self.animals.get(animal_id)


class DummyRecords:
    def __init__(self):
        self.drafts = []

    def create_record(self, draft):
        self.drafts.append(draft)
        return f"rec-{len(self.drafts)}"


REX = AnimalProfile(id="a1", name="Rex", species=Species.DOG, breed="Labrador", age=4, weight=30, gender="Male")


def _service(llm, animals=None, records=None):
    return DiagnosticService(llm=llm, animals=animals, records=records, clock=lambda: FIXED_NOW)


def _context(symptoms=("Vomiting", "Lethargy")):
    return ClinicalContext(species=Species.DOG, symptoms=list(symptoms))


class TestDiagnose:
    """End-to-end behaviour of a single diagnostic request."""

    def test_diagnose_returns_normalized_result(self):
        llm = DummyLLM()
        result = asyncio.run(_service(llm).diagnose(_context()))
        assert isinstance(result, DiagnosisResult)
        assert result.model == "test-model"
        assert result.analyzed_at == FIXED_NOW
        assert result.urgency == Urgency.MEDIUM
        assert len(llm.calls) == 1
        assert "1. Vomiting\n2. Lethargy" in llm.calls[0]["user"]

    def test_unconfigured_provider_returns_demo_without_calling(self):
        # Scenario A
        llm = DummyLLM(configured=False)
        service = _service(llm)
        assert service.is_configured() is False
        result = asyncio.run(service.diagnose(_context()))
        assert result.model == MOCK_MODEL
        assert result.urgency == Urgency.MEDIUM
        assert result.should_see_vet is True
        assert result.disclaimer == FALLBACK_DISCLAIMER
        assert llm.calls == []

    @pytest.mark.parametrize("kind", [ProviderFailure.QUOTA_EXCEEDED, ProviderFailure.RATE_LIMITED])
    def test_quota_and_rate_limit_fall_back_with_unavailable_notice(self, kind):
        # Scenario B
        llm = DummyLLM(error=ProviderError(kind))
        result = asyncio.run(_service(llm).diagnose(_context()))
        assert result.model == MOCK_MODEL
        assert "temporarily unavailable" in result.disclaimer
        assert len(llm.calls) == 1

    @pytest.mark.parametrize(
        "kind",
        [ProviderFailure.INVALID_CREDENTIAL, ProviderFailure.TRANSPORT, ProviderFailure.EMPTY_RESPONSE],
    )
    def test_degraded_provider_falls_back_with_demo_disclaimer(self, kind):
        llm = DummyLLM(error=ProviderError(kind))
        result = asyncio.run(_service(llm).diagnose(_context()))
        assert result.model == MOCK_MODEL
        assert result.disclaimer == FALLBACK_DISCLAIMER

    def test_unparseable_response_raises_parse_error(self):
        # Scenario C
        llm = DummyLLM(response="I think your dog is fine, maybe.")
        with pytest.raises(ParseError):
            asyncio.run(_service(llm).diagnose(_context()))

    def test_invalid_urgency_raises_parse_error(self):
        llm = DummyLLM(response=json.dumps(_valid_payload(urgency="Whenever")))
        with pytest.raises(ParseError):
            asyncio.run(_service(llm).diagnose(_context()))

    def test_refusal_is_surfaced_as_parse_error(self):
        llm = DummyLLM(error=ProviderError(ProviderFailure.REFUSED, "I can't help with that."))
        with pytest.raises(ParseError):
            asyncio.run(_service(llm).diagnose(_context()))

    def test_empty_symptoms_never_reach_provider(self):
        llm = DummyLLM()
        with pytest.raises(ValidationError) as exc:
            asyncio.run(_service(llm).diagnose(_context(symptoms=[])))
        assert exc.value.field == "symptoms"
        assert len(llm.calls) == 0


class TestDiagnoseRequest:
    """Full flow with animal lookup and optional persistence."""

    def test_missing_animal_id_checked_first(self):
        llm = DummyLLM()
        service = _service(llm, animals=DummyAnimals([REX]))
        with pytest.raises(ValidationError) as exc:
            asyncio.run(service.diagnose_request(DiagnoseRequest(symptoms=[])))
        assert exc.value.field == "animal_id"
        assert llm.calls == []

    def test_empty_symptoms_rejected_without_provider_call(self):
        # Scenario E
        llm = DummyLLM()
        service = _service(llm, animals=DummyAnimals([REX]))
        with pytest.raises(ValidationError) as exc:
            asyncio.run(service.diagnose_request(DiagnoseRequest(animal_id="a1", symptoms=[])))
        assert exc.value.field == "symptoms"
        assert len(llm.calls) == 0

    def test_unknown_animal(self):
        animals = DummyAnimals([REX])
        service = _service(DummyLLM(), animals=animals)
        with pytest.raises(ValidationError) as exc:
            asyncio.run(service.diagnose_request(DiagnoseRequest(animal_id="nope", symptoms=["Coughing"])))
        assert exc.value.message == "Animal not found"
        assert animals.lookups == 1

    def test_symptoms_checked_before_animal_lookup(self):
        """An unknown animal with no symptoms reports symptoms and never hits the directory."""
        llm = DummyLLM()
        animals = DummyAnimals([REX])
        service = _service(llm, animals=animals)
        with pytest.raises(ValidationError) as exc:
            asyncio.run(service.diagnose_request(DiagnoseRequest(animal_id="nope", symptoms=[])))
        assert exc.value.field == "symptoms"
        assert animals.lookups == 0
        assert llm.calls == []

    def test_animal_details_used_in_prompt(self):
        llm = DummyLLM()
        service = _service(llm, animals=DummyAnimals([REX]))
        outcome = asyncio.run(
            service.diagnose_request(DiagnoseRequest(animal_id="a1", symptoms=["Coughing"], duration="1-3-days"))
        )
        assert outcome.animal == REX
        assert outcome.health_record_id is None
        prompt = llm.calls[0]["user"]
        assert "- Breed: Labrador" in prompt
        assert "**Duration of Symptoms:** 1-3 days" in prompt

    def test_save_to_records_persists_otc_only(self):
        llm = DummyLLM(response=json.dumps(_valid_payload(urgency="Emergency")))
        records = DummyRecords()
        service = _service(llm, animals=DummyAnimals([REX]), records=records)
        outcome = asyncio.run(
            service.diagnose_request(
                DiagnoseRequest(animal_id="a1", symptoms=["Vomiting"], save_to_records=True)
            )
        )
        assert outcome.health_record_id == "rec-1"
        draft = records.drafts[0]
        assert draft.animal_id == "a1"
        assert draft.severity == Severity.CRITICAL
        assert draft.diagnosis == "Gastroenteritis"
        assert [m.name for m in draft.medications] == ["Probiotic paste"]
        assert draft.medications[0].frequency == "As directed"


class TestQuickCheck:
    def test_species_checked_after_symptoms(self):
        llm = DummyLLM()
        with pytest.raises(ValidationError) as exc:
            asyncio.run(_service(llm).quick_check(QuickCheckRequest(species=None, symptoms=[])))
        assert exc.value.field == "symptoms"

    def test_missing_species(self):
        with pytest.raises(ValidationError) as exc:
            asyncio.run(_service(DummyLLM()).quick_check(QuickCheckRequest(symptoms=["Sneezing"])))
        assert exc.value.field == "species"

    def test_quick_check_uses_species(self):
        llm = DummyLLM()
        result = asyncio.run(_service(llm).quick_check(QuickCheckRequest(species="cat", symptoms=["Sneezing"])))
        assert result.model == "test-model"
        assert llm.calls[0]["user"].startswith("Please analyze the following symptoms for a Cat:")


class TestCareRecommendations:
    def test_returns_parsed_recommendations(self):
        llm = DummyLLM(response=json.dumps({
            "condition": "Kennel cough",
            "species": "Dog",
            "homeCare": ["Rest"],
            "dietRecommendations": ["Soft food"],
            "activityGuidance": "Short walks",
            "warningSignsRequiringVet": ["Fever"],
            "typicalRecoveryTime": "1-3 weeks",
            "preventiveMeasures": ["Vaccination"],
        }))
        service = DiagnosticService(llm=llm, recommendations_max_tokens=1500)
        result = asyncio.run(service.get_care_recommendations("Dog", "Kennel cough"))
        assert result.home_care == ["Rest"]
        assert result.disclaimer
        assert llm.calls[0]["max_tokens"] == 1500
        assert '"Kennel cough"' in llm.calls[0]["user"]

    def test_requires_condition(self):
        with pytest.raises(ValidationError) as exc:
            asyncio.run(_service(DummyLLM()).get_care_recommendations("Dog", "  "))
        assert exc.value.field == "condition"

    def test_unknown_species_rejected(self):
        llm = DummyLLM()
        with pytest.raises(ValidationError) as exc:
            asyncio.run(_service(llm).get_care_recommendations("Dragon", "Otitis"))
        assert exc.value.field == "species"
        assert llm.calls == []

    def test_unconfigured_has_no_fallback(self):
        llm = DummyLLM(configured=False)
        with pytest.raises(ServiceUnavailableError):
            asyncio.run(_service(llm).get_care_recommendations("Dog", "Otitis"))
        assert llm.calls == []

    def test_provider_failure_raises(self):
        llm = DummyLLM(error=ProviderError(ProviderFailure.QUOTA_EXCEEDED))
        with pytest.raises(ServiceUnavailableError):
            asyncio.run(_service(llm).get_care_recommendations("Dog", "Otitis"))

    def test_malformed_output_raises_parse_error(self):
        llm = DummyLLM(response="not json")
        with pytest.raises(ParseError):
            asyncio.run(_service(llm).get_care_recommendations("Dog", "Otitis"))


def test_status_reports_configuration():
    status = _service(DummyLLM(configured=False)).status()
    assert status.configured is False
    assert status.available is False
    assert status.model == "test-model"
