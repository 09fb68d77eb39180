import logging

from django.core.exceptions import ObjectDoesNotExist, ValidationError
from django.http import Http404, JsonResponse
from django.utils.deprecation import MiddlewareMixin
from django.utils.functional import SimpleLazyObject

from .exceptions import ConflictError
from .services.config import load_config_snapshot

logger = logging.getLogger(__name__)


class FuelConfigMiddleware(MiddlewareMixin):
    # Attach a per-request snapshot of stations + fuel settings.
    # Lazy: only requests that use it hit the station table.
    def process_request(self, request):
        request.fuel_config = SimpleLazyObject(load_config_snapshot)


class ApiErrorMiddleware(MiddlewareMixin):
    """Turn service errors raised under /api/ into JSON responses."""

    def process_exception(self, request, exception):
        if not request.path.startswith("/api/"):
            return None  # let Django's normal handling run

        if isinstance(exception, ValidationError):
            if hasattr(exception, "error_dict"):
                error = exception.message_dict
            else:
                error = exception.messages
            status = 400
        elif isinstance(exception, (ObjectDoesNotExist, Http404)):
            error, status = str(exception), 404
        elif isinstance(exception, ConflictError):
            error, status = str(exception), 409
        else:
            return None

        logger.info("%s %s -> %s: %s", request.method, request.path,
                    status, error)
        return JsonResponse({"ok": False, "error": error}, status=status)
