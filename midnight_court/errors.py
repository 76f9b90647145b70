"""
Error kinds raised by the slide content pipeline.

Every error carries a machine-readable ``code`` so callers (the app's
HTTP layer, the UI) can branch without string matching:

    INVALID_INPUT         bad case text, empty instructions, malformed deck
    SCHEMA_VIOLATION      deck breaks the block grammar
    INVALID_MODEL_OUTPUT  LLM response is not parseable JSON
    LLM_LIMIT_EXCEEDED    usage quota exhausted upstream (propagated verbatim)
    PROVIDER_ERROR        any other LLM / image provider failure
    CANCELLED             cooperative cancellation
    TIMEOUT               deadline exceeded
"""


class MidnightCourtError(Exception):
    """Base class for all pipeline errors."""

    code = "MIDNIGHT_COURT_ERROR"

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message}


class InvalidInput(MidnightCourtError):
    code = "INVALID_INPUT"


class SchemaViolation(MidnightCourtError):
    """Deck does not conform to the block grammar."""

    code = "SCHEMA_VIOLATION"

    def __init__(self, message: str = "", errors: list[str] | None = None):
        self.errors = list(errors or [])
        if not message:
            message = "; ".join(self.errors[:5]) or "Deck does not match the block grammar"
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message, "details": self.errors}


class InvalidModelOutput(MidnightCourtError):
    code = "INVALID_MODEL_OUTPUT"


class LLMLimitExceeded(MidnightCourtError):
    code = "LLM_LIMIT_EXCEEDED"


class ProviderError(MidnightCourtError):
    """Upstream failure, with the upstream HTTP status when there is one."""

    code = "PROVIDER_ERROR"

    def __init__(self, message: str = "", status: int | None = None):
        super().__init__(message)
        self.status = status

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message, "status": self.status}


class OperationCancelled(MidnightCourtError):
    code = "CANCELLED"


class OperationTimeout(MidnightCourtError):
    code = "TIMEOUT"


__all__ = [
    "MidnightCourtError",
    "InvalidInput",
    "SchemaViolation",
    "InvalidModelOutput",
    "LLMLimitExceeded",
    "ProviderError",
    "OperationCancelled",
    "OperationTimeout",
]
