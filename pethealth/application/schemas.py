from typing import List, Optional

from pydantic import BaseModel

from pethealth.domain.models import AnimalProfile, DiagnosisResult


class DiagnoseRequest(BaseModel):
    animal_id: Optional[str] = None
    symptoms: Optional[List[str]] = None
    additional_info: Optional[str] = None
    duration: Optional[str] = None
    save_to_records: bool = False


class QuickCheckRequest(BaseModel):
    species: Optional[str] = None
    symptoms: Optional[List[str]] = None
    additional_info: Optional[str] = None
    duration: Optional[str] = None


class DiagnosisOutcome(BaseModel):
    diagnosis: DiagnosisResult
    animal: Optional[AnimalProfile] = None
    health_record_id: Optional[str] = None


class ServiceStatus(BaseModel):
    configured: bool
    available: bool
    model: str
    message: str
