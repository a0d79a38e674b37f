"""
Centralized error handling for the portfolio admin API.

Every failure is reported as ``{"error": <message>, "details": <optional>}``
with a conventional status code: 400 for validation problems, 404 for missing
records and 500 for image host or database failures.
"""

import logging
import traceback
from typing import Dict, Any, Optional
from django.http import Http404, JsonResponse
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base exception for API errors."""
    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
                 details: Any = None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class ValidationError(APIError):
    """Missing, malformed or duplicate input."""
    def __init__(self, message: str, field: Optional[str] = None, details: Any = None):
        if field and details is None:
            details = {"field": field}
        super().__init__(message=message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class ResourceNotFoundError(APIError):
    """Exception for resource not found errors."""
    def __init__(self, message: str, resource_type: Optional[str] = None, resource_id: Optional[str] = None):
        super().__init__(message=message, status_code=status.HTTP_404_NOT_FOUND)
        self.resource_type = resource_type
        self.resource_id = resource_id


class UpstreamError(APIError):
    """Image host or database failure; upstream details are passed through."""
    def __init__(self, message: str, details: Any = None):
        super().__init__(message=message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, details=details)


def format_error_response(error: APIError) -> Dict[str, Any]:
    response = {"error": error.message}
    if error.details:
        response["details"] = error.details
    return response


def handle_api_exception(exception: Exception) -> Response:
    """
    Turn an exception into a standardized error response.

    APIErrors keep their message and status; anything else is logged with its
    traceback and reported as a sanitized 500.
    """
    if isinstance(exception, APIError):
        log = logger.warning if exception.status_code < 500 else logger.error
        log(f"API Error ({exception.status_code}): {exception.message}",
            extra={"status_code": exception.status_code, "details": exception.details})
        return Response(format_error_response(exception), status=exception.status_code)

    logger.error(
        f"Unexpected error: {str(exception)}",
        extra={
            "exception_type": type(exception).__name__,
            "traceback": traceback.format_exc(),
        }
    )
    return Response({"error": "An unexpected error occurred"},
                    status=status.HTTP_500_INTERNAL_SERVER_ERROR)


def api_exception_handler(exc, context):
    """DRF exception handler producing ``{error, details?}`` bodies."""
    if isinstance(exc, APIError):
        return handle_api_exception(exc)

    if isinstance(exc, Http404):
        return Response({"error": str(exc) or "Not found"}, status=status.HTTP_404_NOT_FOUND)

    response = drf_exception_handler(exc, context)
    if response is not None:
        data = response.data
        if isinstance(data, dict) and 'detail' in data:
            response.data = {"error": str(data['detail'])}
        else:
            response.data = {"error": "Invalid request", "details": data}
        return response

    return handle_api_exception(exc)


class ErrorResponseMiddleware:
    """
    Middleware to handle uncaught exceptions raised outside DRF views
    and provide consistent error responses for API paths.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        if not request.path.startswith('/api/') or isinstance(exception, Http404):
            return None

        if isinstance(exception, APIError):
            return JsonResponse(format_error_response(exception), status=exception.status_code)

        logger.exception(f"Unhandled error on {request.method} {request.path}: {exception}")
        return JsonResponse({"error": "An unexpected error occurred"},
                            status=status.HTTP_500_INTERNAL_SERVER_ERROR)


def success_response(data: Optional[Dict[str, Any]] = None, status_code: int = status.HTTP_200_OK) -> Response:
    """Create a ``{"success": true, ...}`` response."""
    response_data = {"success": True}
    if data:
        response_data.update(data)
    return Response(response_data, status=status_code)


def validate_required_fields(data: Dict, required_fields: list) -> None:
    """
    Validate that required fields are present in data.

    Raises:
        ValidationError: If any required field is missing
    """
    missing_fields = []
    for field in required_fields:
        value = data.get(field) if isinstance(data, dict) else None
        if value is None or (isinstance(value, str) and not value.strip()):
            missing_fields.append(field)

    if missing_fields:
        raise ValidationError(
            f"Required fields missing: {', '.join(missing_fields)}",
            details={"missing_fields": missing_fields}
        )


def validate_json_structure(data: Any, expected_type: type, field_name: str = "data") -> None:
    """
    Validate JSON data structure.

    Raises:
        ValidationError: If validation fails
    """
    if not isinstance(data, expected_type):
        raise ValidationError(
            f"Invalid {field_name} format",
            field=field_name,
            details={
                "expected_type": expected_type.__name__,
                "actual_type": type(data).__name__
            }
        )
