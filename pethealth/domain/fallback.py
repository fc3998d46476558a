"""Offline diagnosis used when the AI provider cannot be used."""
from datetime import datetime, timezone
from typing import List, Optional

from .models import DiagnosisResult, PossibleCondition, Probability, Urgency


MOCK_MODEL = "mock-demo"

FALLBACK_DISCLAIMER = (
    "DEMO MODE: This is a sample response generated without the AI diagnostic service. "
    "It is not an analysis of your pet's symptoms. Please consult a veterinarian."
)

UNAVAILABLE_DISCLAIMER = (
    "The AI diagnostic service is temporarily unavailable (usage limit reached). "
    "This is a demo fallback response and not an analysis of your pet's symptoms. "
    "Please try again later and consult a veterinarian."
)

FALLBACK_CONDITION_NAME = "General health check recommended"

FALLBACK_ACTIONS = [
    "Schedule a check-up with your veterinarian",
    "Keep a log of when each symptom occurs and how long it lasts",
    "Make sure fresh water is always available",
]

FALLBACK_WARNING_SIGNS = [
    "Difficulty breathing",
    "Refusing food or water for more than 24 hours",
    "Collapse, seizures or unresponsiveness",
    "Symptoms getting rapidly worse",
]

FALLBACK_HOME_CARE = [
    "Keep your pet in a quiet, comfortable space",
    "Offer small amounts of their usual food",
    "Monitor energy level, appetite and bathroom habits",
]


def build_fallback_diagnosis(
    species,
    symptoms: List[str],
    analyzed_at: Optional[datetime] = None,
    disclaimer: str = FALLBACK_DISCLAIMER,
) -> DiagnosisResult:
    species_name = getattr(species, "value", species) or "pet"
    symptom_text = ", ".join(symptoms) if symptoms else "the reported symptoms"

    condition = PossibleCondition(
        name=FALLBACK_CONDITION_NAME,
        probability=Probability.MEDIUM,
        description=(
            f"The reported symptoms ({symptom_text}) in your {str(species_name).lower()} "
            "can have many causes. A veterinary examination is the best way to find out what is going on."
        ),
        common_in=str(species_name),
    )

    return DiagnosisResult(
        possible_conditions=[condition],
        recommended_actions=list(FALLBACK_ACTIONS),
        medications=[],
        warning_signs_to_watch=list(FALLBACK_WARNING_SIGNS),
        home_care_tips=list(FALLBACK_HOME_CARE),
        urgency=Urgency.MEDIUM,
        should_see_vet=True,
        timeframe="Within 24-48 hours",
        disclaimer=disclaimer,
        analyzed_at=analyzed_at or datetime.now(timezone.utc),
        model=MOCK_MODEL,
    )
