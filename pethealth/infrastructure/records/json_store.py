"""Local JSON-file storage for pets and their health records."""
import json
import os
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from pethealth.application.ports import AnimalDirectoryPort, HealthRecordPort
from pethealth.domain.models import AnimalProfile, HealthRecordDraft


class JsonPetStore(AnimalDirectoryPort, HealthRecordPort):
    """Keeps animals and AI-generated health records in a single JSON file."""

    def __init__(self, storage_path: Optional[str] = None):
        """
        Initialize JsonPetStore.

        Args:
            storage_path: Path to JSON file for storage.
                         Defaults to .streamlit/health_records.json
        """
        if storage_path is None:
            project_root = Path(__file__).parent.parent.parent.parent
            storage_path = str(project_root / ".streamlit" / "health_records.json")

        self.storage_path = storage_path
        self._ensure_storage_exists()

    def _ensure_storage_exists(self) -> None:
        """Create storage directory and file if they don't exist."""
        storage_dir = os.path.dirname(self.storage_path)
        if storage_dir and not os.path.exists(storage_dir):
            os.makedirs(storage_dir, exist_ok=True)

        if not os.path.exists(self.storage_path) or os.path.getsize(self.storage_path) == 0:
            self._save({"animals": {}, "records": {}})

    def _load(self) -> Dict[str, Any]:
        try:
            with open(self.storage_path, 'r') as f:
                data = json.load(f)
        except (FileNotFoundError, json.JSONDecodeError):
            data = {}
        data.setdefault("animals", {})
        data.setdefault("records", {})
        return data

    def _save(self, data: Dict[str, Any]) -> None:
        with open(self.storage_path, 'w') as f:
            json.dump(data, f, indent=2)

    def add_animal(
        self,
        name: str,
        species: str,
        breed: Optional[str] = None,
        age: Optional[float] = None,
        weight: Optional[float] = None,
        gender: Optional[str] = None,
    ) -> AnimalProfile:
        """
        Register a pet and return its stored profile.

        Raises:
            pydantic.ValidationError: if species, age or weight are invalid
        """
        animal = AnimalProfile(
            id=uuid.uuid4().hex,
            name=name.strip(),
            species=species,
            breed=breed,
            age=age,
            weight=weight,
            gender=gender,
        )
        data = self._load()
        data["animals"][animal.id] = animal.model_dump(mode="json")
        self._save(data)
        return animal

    def get_animal(self, animal_id: str) -> Optional[AnimalProfile]:
        raw = self._load()["animals"].get(animal_id)
        if raw is None:
            return None
        return AnimalProfile.model_validate(raw)

    def list_animals(self) -> List[AnimalProfile]:
        return [AnimalProfile.model_validate(a) for a in self._load()["animals"].values()]

    def create_record(self, draft: HealthRecordDraft) -> str:
        record_id = uuid.uuid4().hex
        data = self._load()
        record = draft.model_dump(mode="json")
        record["id"] = record_id
        record["created_at"] = datetime.now().isoformat()
        data["records"][record_id] = record
        self._save(data)
        return record_id

    def list_records(self, animal_id: str) -> List[Dict[str, Any]]:
        """Health records for one animal, newest first."""
        records = [r for r in self._load()["records"].values() if r.get("animal_id") == animal_id]
        return sorted(records, key=lambda r: r.get("created_at", ""), reverse=True)
