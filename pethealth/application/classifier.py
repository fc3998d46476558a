from enum import Enum

from pethealth.application.errors import ParseError, ProviderError, ProviderFailure


class Route(str, Enum):
    FALLBACK = "fallback"
    FALLBACK_UNAVAILABLE = "fallback_unavailable"
    PROPAGATE = "propagate"


FAILURE_ROUTES = {
    ProviderFailure.UNCONFIGURED: Route.FALLBACK,
    ProviderFailure.INVALID_CREDENTIAL: Route.FALLBACK,
    ProviderFailure.TRANSPORT: Route.FALLBACK,
    ProviderFailure.EMPTY_RESPONSE: Route.FALLBACK,
    ProviderFailure.RATE_LIMITED: Route.FALLBACK_UNAVAILABLE,
    ProviderFailure.QUOTA_EXCEEDED: Route.FALLBACK_UNAVAILABLE,
    # A refusal is a statement about the content, not about availability.
    ProviderFailure.REFUSED: Route.PROPAGATE,
}


def classify_failure(error: Exception) -> Route:
    """Decide what the orchestrator does with a failed provider attempt."""
    if isinstance(error, ParseError):
        return Route.PROPAGATE
    if isinstance(error, ProviderError):
        return FAILURE_ROUTES[error.kind]
    raise TypeError(f"Unclassified diagnostic failure: {type(error).__name__}")
