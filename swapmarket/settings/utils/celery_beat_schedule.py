from celery.schedules import crontab

from .offers import OFFER_SETTINGS


def get_celery_beat_schedule():
    """Celery Beat schedule for the offer lifecycle tasks"""
    sweep_minutes = OFFER_SETTINGS["SWEEP_INTERVAL_MINUTES"]

    return {
        # ============================================
        # OFFER EXPIRY
        # ============================================
        # Move timed-out PENDING/COUNTERED offers to EXPIRED
        "sweep-expired-offers": {
            "task": "apps.offers.tasks.sweep_expired_offers",
            "schedule": crontab(minute=f"*/{sweep_minutes}"),
            "options": {
                "expires": sweep_minutes * 60,  # Drop a run that missed its slot
            },
        },
        # ============================================
        # HOUSEKEEPING
        # ============================================
        # Delete read notifications older than 30 days
        "cleanup-read-notifications": {
            "task": "apps.notifications.tasks.cleanup_read_notifications",
            "schedule": crontab(minute=0, hour=3),  # Daily at 3 AM
            "kwargs": {"days": 30},
        },
    }
