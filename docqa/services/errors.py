# =============================================================================
# Service Errors
# =============================================================================
#
# Exceptions raised by the service layer and mapped to HTTP status codes by
# the API layer:
#   DocumentLoadError       → 500 (source document missing or unreadable)
#   BackendUnavailableError → 502 (Ollama unreachable or returned an error)
#   BackendTimeoutError     → 504 (an Ollama call exceeded its deadline)
#
# "Asked before anything was loaded" is not an error here: the ask
# endpoint answers it with a normal JSON message.
# =============================================================================


class DocumentLoadError(OSError):
    """The source document could not be read or parsed."""


class BackendUnavailableError(RuntimeError):
    """The embedding or language-model backend could not serve a call."""


class BackendTimeoutError(BackendUnavailableError):
    """A backend call did not complete within its deadline."""
