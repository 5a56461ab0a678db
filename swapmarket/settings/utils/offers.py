# Offer negotiation settings
OFFER_SETTINGS = {
    # Business Rules
    "OFFER_TTL_HOURS": 48,  # Response window for a new offer or a counter
    "SWEEP_INTERVAL_MINUTES": 5,  # Celery beat cadence for the expiry sweep
    # Notifications
    "NOTIFY_SELLER_NEW_OFFER": True,
    "NOTIFY_BUYER_RESPONSE": True,
    "NOTIFY_SELLER_RESPONSE": True,
    "NOTIFY_EXPIRATION": True,
}
