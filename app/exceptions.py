from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from typing import Any, List, Optional


class AppError(Exception):
    """Base class for errors surfaced to API callers as {"error": ...}."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[List[Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(AppError):
    status_code = 400


class InvalidRoleError(ValidationError):
    pass


class ConflictError(ValidationError):
    pass


class AuthError(AppError):
    status_code = 401


class AuthorizationError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class StorageError(AppError):
    status_code = 500


class TransformError(AppError):
    """Decode/resize failure. Recovered inside the transform, never returned to callers."""


def create_error_response(error_message: str, status_code: int = 400, details: Optional[List[Any]] = None) -> dict:
    """Create a standardized error response"""
    body = {
        "success": False,
        "data": None,
        "error": error_message
    }
    if details:
        body["details"] = details
    return body

async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.message, exc.status_code, exc.details)
    )

async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    # Convert 403 from HTTPBearer to 401 for missing authentication
    if exc.status_code == 403 and "Not authenticated" in str(exc.detail):
        return JSONResponse(
            status_code=401,
            content=create_error_response("Authentication required", 401)
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, exc.status_code)
    )
