from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from typing import Any, Dict, List, NamedTuple, Optional, Sequence
import logging

logger = logging.getLogger(__name__)

def create_error_response(error_message: str, status_code: int = 400) -> dict:
    """Create a standardized error response"""
    return {
        "success": False,
        "data": None,
        "error": error_message
    }


class FieldError(NamedTuple):
    field: str
    message: str


class SchedulingError(Exception):
    """Base class for recoverable domain errors. Raising one never leaves partial writes."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_response(self) -> Dict[str, Any]:
        return create_error_response(self.message, self.status_code)


class ValidationError(SchedulingError):
    """One or more field-level problems with the submitted record."""

    status_code = 422

    def __init__(self, errors: Sequence[FieldError]):
        self.errors: List[FieldError] = list(errors)
        super().__init__("; ".join(f"{e.field} {e.message}" for e in self.errors) or "Invalid record")

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls([FieldError(field, message)])

    def to_response(self) -> Dict[str, Any]:
        body = super().to_response()
        body["errors"] = [{"field": e.field, "message": e.message} for e in self.errors]
        return body


class ConflictError(SchedulingError):
    """The candidate interval double-books the doctor and/or the patient."""

    status_code = 409

    def __init__(self, conflicts: Sequence[Any]):
        # conflicts are app.application.scheduling.intervals.Conflict instances
        self.conflicts = list(conflicts)
        super().__init__("; ".join(c.message for c in self.conflicts) or "Scheduling conflict")

    @property
    def subjects(self) -> List[str]:
        return sorted({c.subject for c in self.conflicts})

    def to_response(self) -> Dict[str, Any]:
        body = super().to_response()
        body["errors"] = [c.to_dict() for c in self.conflicts]
        return body


class TransitionError(SchedulingError):
    status_code = 422

    def __init__(self, operation: str, current_status: Optional[str], reason: str):
        self.operation = operation
        self.current_status = current_status
        self.reason = reason
        super().__init__(f"Cannot {operation} appointment in status '{current_status}': {reason}")

    def to_response(self) -> Dict[str, Any]:
        body = super().to_response()
        body["operation"] = self.operation
        body["current_status"] = self.current_status
        return body


class NotFoundError(SchedulingError):
    status_code = 404

    def __init__(self, resource: str, resource_id: Any):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")


class PersistenceError(SchedulingError):
    """Storage is unreachable or rejected the write for infrastructure reasons."""

    status_code = 503


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, exc.status_code)
    )

async def scheduling_exception_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    """Translate domain errors into the standard error envelope"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())

async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=PersistenceError.status_code,
        content=create_error_response("Database unavailable", PersistenceError.status_code)
    )

async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies use the same envelope as domain validation failures"""
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append(FieldError(".".join(loc) or "base", err.get("msg", "is invalid")))
    return JSONResponse(status_code=422, content=ValidationError(errors).to_response())
