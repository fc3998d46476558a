from typing import Optional, Protocol

from pethealth.domain.models import AnimalProfile, HealthRecordDraft


class DiagnosticLLMPort(Protocol):
    @property
    def model(self) -> str:
        ...

    def is_configured(self) -> bool:
        ...

    async def complete_json(self, system_prompt: str, user_prompt: str, max_tokens: Optional[int] = None) -> str:
        """
        Performs a single JSON-mode completion and returns the raw text.
        Raises ProviderError on any upstream failure.
        """
        ...


class AnimalDirectoryPort(Protocol):
    def get_animal(self, animal_id: str) -> Optional[AnimalProfile]:
        ...


class HealthRecordPort(Protocol):
    def create_record(self, draft: HealthRecordDraft) -> str:
        ...
