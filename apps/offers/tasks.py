# apps/offers/tasks.py
import logging

from celery import shared_task

from apps.core.tasks import BaseTaskWithRetry
from apps.offers.models import Offer, OfferStatus
from apps.offers.services import OfferService
from apps.offers.utils.notifications import OfferNotificationService

logger = logging.getLogger("offer_sweeper")


@shared_task(base=BaseTaskWithRetry)
def sweep_expired_offers():
    """
    Move every PENDING or COUNTERED offer past its expires_at to EXPIRED.
    Scheduled by celery beat; running it twice is harmless.
    """
    expired_count = OfferService.sweep_expired_offers()
    return {"expired": expired_count}


@shared_task
def notify_expired_offers(offer_ids):
    """
    Best-effort expiry notifications for offers the sweeper just moved.
    Offers that have since been removed are skipped.
    """
    offers = Offer.objects.filter(
        id__in=offer_ids, status=OfferStatus.EXPIRED
    ).select_related("listing")

    notified = 0
    for offer in offers:
        OfferNotificationService.offer_expired(offer, offer.listing.title)
        notified += 1

    logger.info(f"Queued expiry notifications for {notified} offers")
    return notified
