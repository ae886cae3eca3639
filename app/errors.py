"""
Domain errors raised by the service layer.

Every error is an HTTPException so services can raise it directly; the
`code` attribute is rendered next to `detail` by the handler in main.py and
reused by the live channel to pick a close code.
"""

from typing import Optional

from fastapi import HTTPException


class DomainError(HTTPException):
    status_code = 400
    code = "error"
    default_detail = "Request could not be processed"

    def __init__(self, detail: Optional[str] = None, headers: Optional[dict] = None):
        super().__init__(
            status_code=self.status_code, detail=detail or self.default_detail, headers=headers
        )


class NotFoundError(DomainError):
    status_code = 404
    code = "not_found"
    default_detail = "Not found"


class ForbiddenError(DomainError):
    status_code = 403
    code = "forbidden"
    default_detail = "You do not have permission to perform this action"


class LockedError(DomainError):
    status_code = 423
    code = "locked"
    default_detail = "This job is locked and cannot be edited"


class InvalidStateError(DomainError):
    status_code = 409
    code = "invalid_state"
    default_detail = "Action is not allowed in the current state"


class NotReadyError(DomainError):
    status_code = 409
    code = "not_ready"
    default_detail = "Messaging is available once a maid has been accepted and the job is in progress"


class ValidationError(DomainError):
    status_code = 400
    code = "validation_error"
    default_detail = "Invalid request"


class UnauthenticatedError(DomainError):
    status_code = 401
    code = "unauthenticated"
    default_detail = "Not authenticated"


class InvalidCredentialsError(UnauthenticatedError):
    code = "invalid_credentials"
    default_detail = "Invalid email or password"


class UpstreamError(DomainError):
    status_code = 502
    code = "upstream_error"
    default_detail = "An external provider could not complete the request"


# Application close codes for the live channel (4000-4999 range)
WEBSOCKET_CLOSE_CODES = {
    UnauthenticatedError.code: 4401,
    InvalidCredentialsError.code: 4401,
    ForbiddenError.code: 4403,
    NotFoundError.code: 4404,
    NotReadyError.code: 4409,
}
