"""Typed engine errors: the boundary layer maps ``kind``/``status_code`` to responses."""

from __future__ import annotations


class ServiceError(Exception):
    kind = "service_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.kind, "detail": self.message}


class NotFound(ServiceError):
    kind = "not_found"
    status_code = 404


class PreconditionFailed(ServiceError):
    kind = "precondition_failed"
    status_code = 409


class NoTechnicianAvailable(ServiceError):
    kind = "no_technician_available"
    status_code = 409


class NoQuoteToApprove(ServiceError):
    kind = "no_quote_to_approve"
    status_code = 409


class ConcurrencyConflict(ServiceError):
    """Optimistic version check kept failing after the retry budget."""

    kind = "concurrency_conflict"
    status_code = 409
