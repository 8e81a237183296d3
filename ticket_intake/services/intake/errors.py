"""Error taxonomy for the ticket intake flow."""

from __future__ import annotations

from fastapi import HTTPException


class IntakeError(Exception):
    """Base intake error; carries a stable code and an HTTP status."""

    def __init__(self, code: str, detail: str, status_code: int = 400):
        super().__init__(detail)
        self.code = code
        self.detail = detail
        self.status_code = status_code

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.detail)


class IntakePreconditionError(IntakeError):
    def __init__(self, code: str, detail: str, status_code: int = 400):
        super().__init__(code=code, detail=detail, status_code=status_code)


class IntakeValidationError(IntakeError):
    def __init__(self, detail: str, field_errors: dict[str, str] | None = None):
        super().__init__(code="validation_failed", detail=detail, status_code=422)
        self.field_errors = dict(field_errors or {})

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={"message": self.detail, "fields": self.field_errors},
        )


class IntakeCreationError(IntakeError):
    def __init__(self, code: str, detail: str, status_code: int = 502):
        super().__init__(code=code, detail=detail, status_code=status_code)


class IntakeResolutionError(IntakeError):
    def __init__(self, code: str, detail: str):
        super().__init__(code=code, detail=detail, status_code=400)


class CustomerNotFoundError(IntakeResolutionError):
    def __init__(self):
        super().__init__(
            code="customer_not_found",
            detail="Customer not found. Please select a valid customer.",
        )


class IntakeSessionNotFoundError(IntakeError):
    def __init__(self, session_id: str):
        super().__init__(
            code="session_not_found",
            detail=f"Intake session {session_id} not found or expired",
            status_code=404,
        )
