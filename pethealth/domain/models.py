from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_DISCLAIMER = (
    "This is AI-generated advice and should not replace professional veterinary consultation."
)
DEFAULT_CARE_DISCLAIMER = (
    "Always consult with a veterinarian for proper diagnosis and treatment."
)


class Species(str, Enum):
    DOG = "Dog"
    CAT = "Cat"
    BIRD = "Bird"
    RABBIT = "Rabbit"
    HAMSTER = "Hamster"
    FISH = "Fish"
    REPTILE = "Reptile"
    OTHER = "Other"


class DurationBucket(str, Enum):
    LESS_THAN_24H = "Less than 24 hours"
    ONE_TO_THREE_DAYS = "1-3 days"
    THREE_TO_SEVEN_DAYS = "3-7 days"
    ONE_TO_TWO_WEEKS = "1-2 weeks"
    TWO_TO_FOUR_WEEKS = "2-4 weeks"
    MORE_THAN_MONTH = "More than a month"
    RECURRING = "Recurring/intermittent"

    @classmethod
    def _missing_(cls, value):
        # Accept the slug form used by the web client ("1-3-days").
        if isinstance(value, str):
            return _DURATION_SLUGS.get(value.strip().lower())
        return None


_DURATION_SLUGS = {
    "less-than-24h": DurationBucket.LESS_THAN_24H,
    "1-3-days": DurationBucket.ONE_TO_THREE_DAYS,
    "3-7-days": DurationBucket.THREE_TO_SEVEN_DAYS,
    "1-2-weeks": DurationBucket.ONE_TO_TWO_WEEKS,
    "2-4-weeks": DurationBucket.TWO_TO_FOUR_WEEKS,
    "more-than-month": DurationBucket.MORE_THAN_MONTH,
    "recurring": DurationBucket.RECURRING,
}


class Probability(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Urgency(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    EMERGENCY = "Emergency"


class Severity(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class MedicationType(str, Enum):
    OTC = "OTC"
    PRESCRIPTION = "Prescription"


def _match_enum(enum_cls, value):
    """Case-insensitive lookup of an enum member by value."""
    if isinstance(value, str):
        wanted = value.strip().lower()
        for member in enum_cls:
            if member.value.lower() == wanted:
                return member
    return value


class AnimalProfile(BaseModel):
    id: str
    name: str
    species: Species
    breed: Optional[str] = None
    age: Optional[float] = Field(None, ge=0, le=100)
    weight: Optional[float] = Field(None, ge=0, le=1000)
    gender: Optional[str] = None


class ClinicalContext(BaseModel):
    """Patient and symptom input for one diagnostic request."""

    model_config = ConfigDict(frozen=True)

    species: Species
    breed: Optional[str] = None
    age_years: Optional[float] = Field(None, ge=0, le=100)
    weight_kg: Optional[float] = Field(None, ge=0, le=1000)
    gender: Optional[str] = None
    symptoms: List[str] = []
    duration: Optional[DurationBucket] = None
    additional_notes: Optional[str] = None
    animal_id: Optional[str] = None

    @field_validator("symptoms", mode="before")
    @classmethod
    def clean_symptoms(cls, v):
        if v is None:
            return []
        return [s.strip() for s in v if isinstance(s, str) and s.strip()]

    @field_validator("breed", "gender", "additional_notes")
    @classmethod
    def blank_to_none(cls, v: Optional[str]):
        if v is not None:
            v = v.strip()
            if len(v) == 0:
                return None
        return v


class PossibleCondition(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    probability: Probability = Probability.MEDIUM
    description: str = ""
    common_in: Optional[str] = Field(None, alias="commonIn")

    @field_validator("probability", mode="before")
    @classmethod
    def normalize_probability(cls, v):
        return _match_enum(Probability, v)


class Medication(BaseModel):
    name: str
    type: MedicationType = MedicationType.PRESCRIPTION
    dosage: str = ""
    notes: Optional[str] = None
    frequency: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v):
        if isinstance(v, str):
            key = v.strip().lower().replace("-", " ")
            if key in {"otc", "over the counter"}:
                return MedicationType.OTC
        # Anything unrecognised is treated as prescription-only.
        return MedicationType.PRESCRIPTION


class DiagnosisResult(BaseModel):
    """Typed diagnostic outcome, real or fallback."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    possible_conditions: List[PossibleCondition] = Field([], alias="possibleConditions")
    recommended_actions: List[str] = Field([], alias="recommendedActions")
    medications: List[Medication] = []
    warning_signs_to_watch: List[str] = Field([], alias="warningSignsToWatch")
    home_care_tips: List[str] = Field([], alias="homeCareTips")
    urgency: Urgency
    should_see_vet: bool = Field(False, alias="shouldSeeVet")
    timeframe: str = ""
    disclaimer: str = DEFAULT_DISCLAIMER
    analyzed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), alias="analyzedAt")
    model: str = ""

    @field_validator(
        "possible_conditions", "recommended_actions", "medications",
        "warning_signs_to_watch", "home_care_tips", mode="before",
    )
    @classmethod
    def null_to_empty(cls, v):
        return [] if v is None else v

    @field_validator("should_see_vet", mode="before")
    @classmethod
    def null_to_false(cls, v):
        return False if v is None else v

    @field_validator("urgency", mode="before")
    @classmethod
    def normalize_urgency(cls, v):
        return _match_enum(Urgency, v)

    @field_validator("disclaimer", mode="before")
    @classmethod
    def ensure_disclaimer(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_DISCLAIMER
        return v

    @field_validator("timeframe", mode="before")
    @classmethod
    def none_timeframe(cls, v):
        return "" if v is None else v


class RecommendationResult(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    condition: str = ""
    species: str = ""
    home_care: List[str] = Field([], alias="homeCare")
    diet_recommendations: List[str] = Field([], alias="dietRecommendations")
    activity_guidance: str = Field("", alias="activityGuidance")
    warning_signs_requiring_vet: List[str] = Field([], alias="warningSignsRequiringVet")
    typical_recovery_time: str = Field("", alias="typicalRecoveryTime")
    preventive_measures: List[str] = Field([], alias="preventiveMeasures")
    disclaimer: str = DEFAULT_CARE_DISCLAIMER

    @field_validator("disclaimer", mode="before")
    @classmethod
    def ensure_disclaimer(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_CARE_DISCLAIMER
        return v


class HealthRecordMedication(BaseModel):
    name: str
    dosage: str
    frequency: str
    notes: Optional[str] = None


class HealthRecordDraft(BaseModel):
    animal_id: Optional[str] = None
    symptoms: List[str]
    diagnosis: str
    notes: str = ""
    severity: Severity
    possible_conditions: List[PossibleCondition] = []
    medications: List[HealthRecordMedication] = []
