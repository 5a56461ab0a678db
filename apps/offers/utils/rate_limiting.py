from apps.core.throttle import BaseCacheThrottle


class OfferRateThrottle(BaseCacheThrottle):
    """General rate limit for offer endpoints"""

    scope = "offer"


class OfferCreateRateThrottle(BaseCacheThrottle):
    """Rate limit for making offers"""

    scope = "offer_create"


class OfferRespondRateThrottle(BaseCacheThrottle):
    """Rate limit for accepting, rejecting and countering"""

    scope = "offer_respond"
