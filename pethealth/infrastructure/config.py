import os
import logging
from dataclasses import dataclass
from typing import Optional

import streamlit as st


logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"


def get_secret(name: str, default: str | None = None) -> str | None:
    # Prefer Streamlit secrets if a secrets.toml is present
    try:
        if name in st.secrets:
            return str(st.secrets.get(name))
    except Exception as e:
        logger.debug("Streamlit secrets unavailable for %s: %s", name, e)
    # Fallback to environment variables
    return os.environ.get(name, default)


def _number(name: str, default, cast):
    raw = get_secret(name)
    if raw is None or str(raw).strip() == "":
        return default
    try:
        return cast(raw)
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid value for %s: %r (using %s)", name, raw, default)
        return default


@dataclass(frozen=True)
class DiagnosticConfig:
    api_key: Optional[str]
    model: str = DEFAULT_MODEL
    temperature: float = 0.3
    max_tokens: int = 2000
    recommendations_max_tokens: int = 1500
    timeout_seconds: float = 30.0

    @property
    def configured(self) -> bool:
        return bool(self.api_key)


class Settings:
    @property
    def openai_api_key(self) -> str | None:
        key = get_secret("OPENAI_API_KEY")
        return key.strip() if key and key.strip() else None

    @property
    def openai_model(self) -> str:
        return get_secret("OPENAI_MODEL", DEFAULT_MODEL) or DEFAULT_MODEL

    @property
    def health_records_path(self) -> str | None:
        return get_secret("HEALTH_RECORDS_PATH")

    def diagnostic_config(self) -> DiagnosticConfig:
        return DiagnosticConfig(
            api_key=self.openai_api_key,
            model=self.openai_model,
            temperature=_number("DIAGNOSTIC_TEMPERATURE", 0.3, float),
            max_tokens=_number("DIAGNOSTIC_MAX_TOKENS", 2000, int),
            recommendations_max_tokens=_number("RECOMMENDATIONS_MAX_TOKENS", 1500, int),
            timeout_seconds=_number("DIAGNOSTIC_TIMEOUT_SECONDS", 30.0, float),
        )
