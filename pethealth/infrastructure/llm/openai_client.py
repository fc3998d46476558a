import asyncio
import logging
import threading
from typing import Optional

import openai

from pethealth.application.errors import ProviderError, ProviderFailure
from pethealth.application.ports import DiagnosticLLMPort
from pethealth.infrastructure.config import DiagnosticConfig, Settings


logger = logging.getLogger(__name__)


class OpenAIDiagnosticAdapter(DiagnosticLLMPort):
    def __init__(self, config: DiagnosticConfig | None = None, client=None):
        self.config = config or Settings().diagnostic_config()
        self._client = client
        self._lock = threading.Lock()

    @property
    def model(self) -> str:
        return self.config.model

    def is_configured(self) -> bool:
        return self._client is not None or self.config.configured

    def _get_client(self):
        if self._client is None:
            with self._lock:
                if self._client is None:
                    if not self.config.configured:
                        logger.error("OpenAI API key is missing.")
                        raise ProviderError(ProviderFailure.UNCONFIGURED, "AI diagnostic service is not configured.")
                    # Retries are disabled: one request is one upstream attempt.
                    self._client = openai.AsyncOpenAI(
                        api_key=self.config.api_key,
                        timeout=self.config.timeout_seconds,
                        max_retries=0,
                    )
        return self._client

    async def complete_json(self, system_prompt: str, user_prompt: str, max_tokens: Optional[int] = None) -> str:
        client = self._get_client()
        try:
            response = await asyncio.wait_for(
                client.chat.completions.create(
                    model=self.config.model,
                    messages=[
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": user_prompt},
                    ],
                    temperature=self.config.temperature,
                    max_tokens=max_tokens or self.config.max_tokens,
                    response_format={"type": "json_object"},
                ),
                timeout=self.config.timeout_seconds,
            )
        except Exception as e:
            raise translate_error(e) from e

        if not response.choices:
            raise ProviderError(ProviderFailure.EMPTY_RESPONSE, "No response received from AI")
        message = response.choices[0].message
        refusal = getattr(message, "refusal", None)
        if refusal:
            raise ProviderError(ProviderFailure.REFUSED, str(refusal))
        content = message.content
        if not content or not content.strip():
            raise ProviderError(ProviderFailure.EMPTY_RESPONSE, "No response received from AI")
        return content


def translate_error(error: Exception) -> ProviderError:
    """Map an SDK or transport exception onto the closed ProviderFailure set."""
    if isinstance(error, openai.RateLimitError):
        if getattr(error, "code", None) == "insufficient_quota":
            logger.warning("OpenAI quota exhausted: %s", error)
            return ProviderError(ProviderFailure.QUOTA_EXCEEDED, "AI service quota exceeded. Please try again later.")
        logger.warning("OpenAI rate limit hit: %s", error)
        return ProviderError(ProviderFailure.RATE_LIMITED, "AI service is busy. Please try again later.")
    if isinstance(error, (openai.AuthenticationError, openai.PermissionDeniedError)):
        logger.error("OpenAI rejected the configured credential: %s", error)
        return ProviderError(ProviderFailure.INVALID_CREDENTIAL, "AI service configuration error. Please contact support.")
    if isinstance(error, (asyncio.TimeoutError, openai.APITimeoutError)):
        logger.warning("OpenAI request timed out")
        return ProviderError(ProviderFailure.TRANSPORT, "AI service timed out.")
    if isinstance(error, openai.OpenAIError):
        logger.warning("OpenAI request failed: %s", error)
        return ProviderError(ProviderFailure.TRANSPORT, "AI service request failed.")
    logger.exception("Unexpected error calling OpenAI: %s", error)
    return ProviderError(ProviderFailure.TRANSPORT, "AI analysis failed.")
