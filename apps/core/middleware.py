import logging
import time

from django.conf import settings
from django.utils.deprecation import MiddlewareMixin


def match_performance_prefix(path):
    """Short name of the first configured API prefix that `path` falls under."""
    for prefix, short_name in settings.PERFORMANCE_API_PREFIXES.items():
        if path.startswith(prefix):
            return short_name
    return None


class PerformanceMonitoringMiddleware(MiddlewareMixin):
    """
    Times requests under the configured API prefixes and logs them to
    "{short_name}_performance". Requests slower than
    SLOW_REQUEST_THRESHOLD_SEC are logged as warnings.
    """

    def process_request(self, request):
        short_name = match_performance_prefix(request.path)
        if short_name:
            request._perf_start = time.perf_counter()
            request._perf_short_name = short_name

    def process_response(self, request, response):
        started = getattr(request, "_perf_start", None)
        if started is None:
            return response

        elapsed = time.perf_counter() - started
        logger = logging.getLogger(f"{request._perf_short_name}_performance")
        user = getattr(request, "user", None)
        user_id = user.pk if user is not None and user.is_authenticated else None

        level = (
            logging.WARNING
            if elapsed > settings.SLOW_REQUEST_THRESHOLD_SEC
            else logging.INFO
        )
        logger.log(
            level,
            "%s %s user=%s status=%s took %.1fms",
            request.method,
            request.path,
            user_id,
            response.status_code,
            elapsed * 1000,
        )

        response["X-Response-Time"] = f"{elapsed * 1000:.1f}ms"
        return response
