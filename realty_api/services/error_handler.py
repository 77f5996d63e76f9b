"""
Error handling service for consistent error response formatting and logging.
Every failure leaves the API as {"success": false, "message": ..., "errors"?: [...]}.
"""

from typing import Dict, Any, Optional, List, Sequence
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from realty_api.utils.exceptions import APIException, ValidationError
from realty_api.utils.responses import error_response
import logging
import uuid

logger = logging.getLogger(__name__)

# Locations FastAPI prefixes to validation error paths
_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie", "form"}


class ErrorHandlerService:
    """
    Converts exceptions into the failure envelope and logs them with the
    request id and path.
    """

    @staticmethod
    def _request_id(request: Optional[Request]) -> str:
        if request is not None:
            request_id = getattr(request.state, "request_id", None)
            if request_id:
                return request_id
        return str(uuid.uuid4())[:8]

    @staticmethod
    def _path(request: Optional[Request]) -> Optional[str]:
        return request.url.path if request is not None else None

    @staticmethod
    def format_validation_errors(errors: Sequence[Dict[str, Any]]) -> List[Dict[str, str]]:
        """Flatten pydantic error dicts into [{field, message}]."""
        formatted = []
        for error in errors:
            location = [str(part) for part in error.get("loc", ())]
            if location and location[0] in _LOCATION_PREFIXES:
                location = location[1:]
            message = error.get("msg", "Invalid value")
            # pydantic prefixes messages raised from validators
            if message.startswith("Value error, "):
                message = message[len("Value error, "):]
            formatted.append({
                "field": ".".join(location) or "body",
                "message": message,
            })
        return formatted

    @staticmethod
    def handle_api_exception(exception: APIException, request: Optional[Request] = None) -> JSONResponse:
        request_id = ErrorHandlerService._request_id(request)

        log = logger.error if exception.status_code >= 500 else logger.warning
        log(
            f"API Exception [{request_id}] {ErrorHandlerService._path(request)}: "
            f"{exception.error_code} - {exception.detail}"
        )

        errors = exception.field_errors if isinstance(exception, ValidationError) else None

        return JSONResponse(
            status_code=exception.status_code,
            content=error_response(exception.detail, errors),
            headers=exception.headers
        )

    @staticmethod
    def handle_validation_error(exception: Exception, request: Optional[Request] = None) -> JSONResponse:
        """Request body/query validation failures and pydantic errors raised inside handlers."""
        request_id = ErrorHandlerService._request_id(request)
        errors = ErrorHandlerService.format_validation_errors(exception.errors())

        logger.warning(
            f"Validation Error [{request_id}] {ErrorHandlerService._path(request)}: "
            f"{len(errors)} field errors"
        )

        return JSONResponse(
            status_code=400,
            content=error_response("Validation failed", errors)
        )

    @staticmethod
    def handle_database_error(exception: SQLAlchemyError, request: Optional[Request] = None) -> JSONResponse:
        request_id = ErrorHandlerService._request_id(request)

        if isinstance(exception, IntegrityError):
            status_code = 409
            message = ErrorHandlerService._extract_constraint_info(exception) or "Data integrity constraint violation"
        else:
            status_code = 500
            message = "Database operation failed"

        logger.error(
            f"Database Error [{request_id}] {ErrorHandlerService._path(request)}: "
            f"{type(exception).__name__} - {exception}",
            exc_info=True
        )

        return JSONResponse(status_code=status_code, content=error_response(message))

    @staticmethod
    def handle_http_exception(exception: HTTPException, request: Optional[Request] = None) -> JSONResponse:
        request_id = ErrorHandlerService._request_id(request)

        logger.warning(
            f"HTTP Exception [{request_id}] {ErrorHandlerService._path(request)}: "
            f"{exception.status_code} - {exception.detail}"
        )

        message = exception.detail if isinstance(exception.detail, str) else "Request failed"
        return JSONResponse(
            status_code=exception.status_code,
            content=error_response(message),
            headers=getattr(exception, "headers", None)
        )

    @staticmethod
    def handle_unexpected_error(exception: Exception, request: Optional[Request] = None) -> JSONResponse:
        request_id = ErrorHandlerService._request_id(request)

        logger.error(
            f"Unexpected Error [{request_id}] {ErrorHandlerService._path(request)}: "
            f"{type(exception).__name__} - {exception}",
            exc_info=True
        )

        return JSONResponse(
            status_code=500,
            content=error_response("An unexpected error occurred. Please try again later.")
        )

    @staticmethod
    def _extract_constraint_info(exception: IntegrityError) -> Optional[str]:
        error_msg = str(exception.orig).lower()

        if "unique" in error_msg:
            return "Duplicate value for unique field"
        if "foreign key" in error_msg:
            return "Referenced record does not exist"
        if "not null" in error_msg:
            return "Required field cannot be empty"
        if "check constraint" in error_msg:
            return "Value does not meet validation requirements"
        return None
