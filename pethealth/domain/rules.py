from typing import List, Optional

from .models import (
    ClinicalContext,
    DiagnosisResult,
    HealthRecordDraft,
    HealthRecordMedication,
    Medication,
    MedicationType,
    Severity,
    Urgency,
)


URGENCY_TO_SEVERITY = {
    Urgency.EMERGENCY: Severity.CRITICAL,
    Urgency.HIGH: Severity.HIGH,
    Urgency.MEDIUM: Severity.MEDIUM,
    Urgency.LOW: Severity.LOW,
}

DEFAULT_FREQUENCY = "As directed"
DEFAULT_DIAGNOSIS_SUMMARY = "AI-assisted diagnosis"
MAX_DIAGNOSIS_LENGTH = 500
MAX_NOTES_LENGTH = 2000


def urgency_to_severity(urgency) -> Severity:
    try:
        return URGENCY_TO_SEVERITY[Urgency(urgency)]
    except (KeyError, ValueError):
        return Severity.LOW


def extract_persistable_medications(medications: List[Medication]) -> List[HealthRecordMedication]:
    """Only OTC medications are carried into a health record."""
    persisted: List[HealthRecordMedication] = []
    for med in medications:
        if med.type != MedicationType.OTC:
            continue
        persisted.append(
            HealthRecordMedication(
                name=med.name,
                dosage=med.dosage,
                frequency=med.frequency or DEFAULT_FREQUENCY,
                notes=med.notes,
            )
        )
    return persisted


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


def build_health_record_notes(diagnosis: DiagnosisResult, additional_info: Optional[str]) -> str:
    lines = ["AI Diagnosis Analysis:"]
    for condition in diagnosis.possible_conditions:
        lines.append(f"- {condition.name} ({condition.probability.value}): {condition.description}")
    lines.append("")
    lines.append(f"Additional Info: {additional_info or 'None provided'}")
    return "\n".join(lines)


def build_health_record_draft(context: ClinicalContext, diagnosis: DiagnosisResult) -> HealthRecordDraft:
    if diagnosis.possible_conditions:
        summary = diagnosis.possible_conditions[0].name
    else:
        summary = DEFAULT_DIAGNOSIS_SUMMARY

    return HealthRecordDraft(
        animal_id=context.animal_id,
        symptoms=list(context.symptoms),
        diagnosis=_truncate(summary, MAX_DIAGNOSIS_LENGTH),
        notes=_truncate(build_health_record_notes(diagnosis, context.additional_notes), MAX_NOTES_LENGTH),
        severity=urgency_to_severity(diagnosis.urgency),
        possible_conditions=list(diagnosis.possible_conditions),
        medications=extract_persistable_medications(diagnosis.medications),
    )
