from typing import Any, Dict, Optional
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from estate_backend.permissions.errors import (
    AccessControlError,
    DuplicatePermission,
    InconsistentPermissionSet,
    PermissionDenied,
    PrivilegeEscalationDenied,
    RoleInUse,
    RoleNameTaken,
    RoleNotFound,
)

class NotFoundException(HTTPException):
    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        self.headers = headers
        self.status_code = status.HTTP_404_NOT_FOUND
        self.detail = detail or "Not found"

class ForbiddenException(HTTPException):
    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        self.headers = headers
        self.status_code = status.HTTP_403_FORBIDDEN
        self.detail = detail or "Forbidden"

class BadRequestException(HTTPException):
    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        self.headers = headers
        self.status_code = status.HTTP_400_BAD_REQUEST
        self.detail = detail or "Bad request"

class UnauthorizedException(HTTPException):
    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        self.headers = headers
        self.status_code = status.HTTP_401_UNAUTHORIZED
        self.detail = detail or "Unauthorized"

class ConflictException(HTTPException):
    def __init__(self,detail: Any = None, headers: Optional[Dict[str, str]] = None):
        self.headers = headers
        self.status_code = status.HTTP_409_CONFLICT
        self.detail = detail or "Conflict"

_ERROR_STATUS = [
    (RoleNotFound, NotFoundException),
    (RoleNameTaken, ConflictException),
    (RoleInUse, ConflictException),
    (DuplicatePermission, ConflictException),
    (InconsistentPermissionSet, BadRequestException),
    (PrivilegeEscalationDenied, ForbiddenException),
    (PermissionDenied, ForbiddenException),
]

def access_error_to_http(error: AccessControlError) -> HTTPException:
    """Map a domain error onto the HTTP exception carrying its structured body"""
    for error_class, exception_class in _ERROR_STATUS:
        if isinstance(error, error_class):
            return exception_class(detail=error.to_dict())
    return BadRequestException(detail=error.to_dict())

async def access_error_handler(request: Request, error: AccessControlError) -> JSONResponse:
    exception = access_error_to_http(error)
    return JSONResponse(status_code=exception.status_code, content=exception.detail)

def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(AccessControlError, access_error_handler)
