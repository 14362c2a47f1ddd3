"""Error taxonomy for the audit pipeline.

Mandatory-path failures (``InvalidURL``, ``AuditRunFailed``) propagate to the
caller. Best-effort failures (``GenerationFailed``, ``StoreFailed``) are
recovered where they happen and only ever logged.
"""


class AuditError(RuntimeError):
    """Base class; ``kind`` is the stable identifier reported to API callers."""

    kind = "audit_error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.kind)
        self.message = message or self.kind

    def to_dict(self) -> dict:
        return {"error": self.kind, "detail": self.message}


class InvalidURL(AuditError):
    kind = "invalid_url"


class AuditRunFailed(AuditError):
    kind = "audit_run_failed"


class GenerationFailed(AuditError):
    kind = "generation_failed"


class StoreFailed(AuditError):
    kind = "store_failed"
