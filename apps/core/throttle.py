import logging
import time

from django.core.cache import cache
from rest_framework.throttling import UserRateThrottle

logger = logging.getLogger(__name__)


class BaseCacheThrottle(UserRateThrottle):
    """
    Sliding window throttle stored in the default cache.

    Subclasses set `scope`; the rate comes from DEFAULT_THROTTLE_RATES.
    Anonymous callers are keyed by client address.
    """

    cache = cache
    cache_format = "throttle_%(scope)s_%(ident)s"

    def get_cache_key(self, request, view):
        if request.user and request.user.is_authenticated:
            ident = request.user.pk
        else:
            ident = self.get_ident(request)

        return self.cache_format % {"scope": self.scope, "ident": ident}

    def allow_request(self, request, view):
        if self.rate is None:
            return True

        self.key = self.get_cache_key(request, view)
        if self.key is None:
            return True

        self.now = self.timer()
        window_start = self.now - self.duration
        self.history = [
            stamp for stamp in self.cache.get(self.key, []) if stamp > window_start
        ]

        if len(self.history) >= self.num_requests:
            logger.warning(
                "Rate limit exceeded for %s: key=%s, requests=%s, limit=%s, window=%ss",
                self.scope,
                self.key,
                len(self.history),
                self.num_requests,
                self.duration,
            )
            return self.throttle_failure()

        return self.throttle_success()

    def throttle_success(self):
        self.history.append(self.now)
        self.cache.set(self.key, self.history, self.duration)
        return True

    def wait(self):
        """Seconds until the oldest request in the window drops out."""
        if not getattr(self, "history", None):
            return None
        return max(self.duration - (self.now - self.history[0]), 0)

    def timer(self):
        return time.time()
