# core/middleware.py
"""
Request pipeline: security headers, debug request logs and JSON error
responses for exceptions that escape a view.
"""
import logging

from django.conf import settings
from django.core.exceptions import BadRequest, PermissionDenied, SuspiciousOperation
from django.http import Http404, JsonResponse

from .exceptions import SchoolManagementException

logger = logging.getLogger(__name__)


# ============ SECURITY HEADERS MIDDLEWARE ============

class SecurityHeadersMiddleware:
    """Adds baseline security headers."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)

        if response is None or callable(response):
            return response

        response["X-Content-Type-Options"] = "nosniff"
        response["X-Frame-Options"] = "DENY"
        response["Referrer-Policy"] = "strict-origin-when-cross-origin"

        # Invoice data never belongs in a shared cache
        if request.path.startswith("/billing/"):
            response["Cache-Control"] = "no-store"

        return response


# ============ EXCEPTION HANDLING MIDDLEWARE ============

class ExceptionHandlingMiddleware:
    """Turns SchoolManagementException and unexpected errors into JSON responses."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        # Business logic error
        if isinstance(exception, SchoolManagementException):
            logger.warning(f"Business exception on {request.path}: {exception}")
            return JsonResponse(exception.as_dict(), status=400)

        # Left to Django's handler404/403/400
        if isinstance(exception, (Http404, PermissionDenied, SuspiciousOperation, BadRequest)):
            return None

        # System error
        logger.error(f"System exception on {request.path}: {exception}", exc_info=True)
        return JsonResponse(
            {'message': "System error. Please try again."},
            status=500,
        )


# ============ REQUEST LOGGING MIDDLEWARE ============

class RequestLoggingMiddleware:
    """Debug-level request/response logging."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if self._should_skip_logging(request) or not settings.DEBUG:
            return self.get_response(request)

        logger.debug(f"Request {request.method} {request.path} from {self._get_client_ip(request)}")

        response = self.get_response(request)

        logger.debug(f"Response {request.method} {request.path} -> {response.status_code}")
        return response

    def _should_skip_logging(self, request) -> bool:
        skip_paths = ['/static/', '/media/', '/favicon.ico', '/health/']
        return any(request.path.startswith(path) for path in skip_paths)

    def _get_client_ip(self, request) -> str:
        xff = request.META.get("HTTP_X_FORWARDED_FOR")
        return xff.split(",")[0].strip() if xff else request.META.get("REMOTE_ADDR", "unknown")
