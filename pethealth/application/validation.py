"""Validation gate turning raw request fields into a ClinicalContext."""
from typing import List, Optional, Tuple

from pydantic import ValidationError as SchemaValidationError

from pethealth.application.errors import ValidationError
from pethealth.domain.models import AnimalProfile, ClinicalContext, DurationBucket, Species


def validate_symptoms(symptoms: Optional[List[str]]) -> Tuple[bool, str]:
    """
    Check that at least one non-blank symptom was reported.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not symptoms:
        return False, "At least one symptom is required for diagnosis"
    if not any(isinstance(s, str) and s.strip() for s in symptoms):
        return False, "At least one symptom is required for diagnosis"
    return True, ""


def validate_species(species: Optional[str]) -> Tuple[bool, str]:
    """
    Check that a species was supplied and is one we know about.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not species or not species.strip():
        return False, "Species is required"
    try:
        Species(species.strip().title())
    except ValueError:
        return False, f"{species.strip()} is not a valid species"
    return True, ""


def parse_duration(duration: Optional[str]) -> Optional[DurationBucket]:
    if not duration or not duration.strip():
        return None
    try:
        return DurationBucket(duration.strip())
    except ValueError:
        raise ValidationError("duration", f"{duration.strip()} is not a valid duration")


def ensure_symptoms(context: ClinicalContext) -> None:
    ok, message = validate_symptoms(context.symptoms)
    if not ok:
        raise ValidationError("symptoms", message)


def check_diagnose_fields(animal_id: Optional[str], symptoms: Optional[List[str]]) -> None:
    """Checks that need no lookup: animal reference present, then symptoms."""
    if not animal_id or not animal_id.strip():
        raise ValidationError("animal_id", "Animal ID is required")
    ok, message = validate_symptoms(symptoms)
    if not ok:
        raise ValidationError("symptoms", message)


def build_clinical_context(
    symptoms: Optional[List[str]],
    *,
    animal_id: Optional[str] = None,
    animal: Optional[AnimalProfile] = None,
    species: Optional[str] = None,
    require_animal: bool = False,
    duration: Optional[str] = None,
    additional_info: Optional[str] = None,
) -> ClinicalContext:
    """
    Build a ClinicalContext or fail on the first invalid field.

    Checks run in a fixed order: animal reference, symptoms, then species
    when it is supplied directly instead of through an animal profile.
    """
    if require_animal:
        check_diagnose_fields(animal_id, symptoms)
        if animal is None:
            raise ValidationError("animal_id", "Animal not found")
    else:
        ok, message = validate_symptoms(symptoms)
        if not ok:
            raise ValidationError("symptoms", message)

    if animal is None:
        ok, message = validate_species(species)
        if not ok:
            raise ValidationError("species", message)
        resolved_species = Species(species.strip().title())
    else:
        resolved_species = animal.species

    try:
        return ClinicalContext(
            species=resolved_species,
            breed=animal.breed if animal else None,
            age_years=animal.age if animal else None,
            weight_kg=animal.weight if animal else None,
            gender=animal.gender if animal else None,
            symptoms=symptoms,
            duration=parse_duration(duration),
            additional_notes=additional_info,
            animal_id=animal.id if animal else None,
        )
    except SchemaValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or "request"
        raise ValidationError(field, first.get("msg", "Invalid request"))
