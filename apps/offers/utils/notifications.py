import logging
from decimal import Decimal
from typing import Iterable, Optional

from django.conf import settings

from apps.notifications.models import NotificationType
from apps.notifications.services.notification_service import Notifier

logger = logging.getLogger("offers_performance")


def _enabled(flag: str) -> bool:
    return settings.OFFER_SETTINGS.get(flag, True)


def _payload(offer, listing_title: str, amount: Optional[Decimal] = None):
    return {
        "offer_id": offer.id,
        "listing_id": offer.listing_id,
        "listing_title": listing_title,
        "amount": str(amount if amount is not None else offer.amount),
    }


class OfferNotificationService:
    """Tells buyers and sellers what happened to their offers."""

    @staticmethod
    def new_offer(offer, listing_title):
        if _enabled("NOTIFY_SELLER_NEW_OFFER"):
            Notifier.notify(
                offer.seller_id, NotificationType.OFFER, _payload(offer, listing_title)
            )

    @staticmethod
    def offer_accepted(offer, listing_title, final_price, notify_user_id):
        flag = (
            "NOTIFY_SELLER_RESPONSE"
            if notify_user_id == offer.seller_id
            else "NOTIFY_BUYER_RESPONSE"
        )
        if _enabled(flag):
            Notifier.notify(
                notify_user_id,
                NotificationType.OFFER_ACCEPTED,
                _payload(offer, listing_title, final_price),
            )

    @staticmethod
    def offer_declined(offer, listing_title, notify_user_id):
        flag = (
            "NOTIFY_SELLER_RESPONSE"
            if notify_user_id == offer.seller_id
            else "NOTIFY_BUYER_RESPONSE"
        )
        if _enabled(flag):
            Notifier.notify(
                notify_user_id,
                NotificationType.OFFER_DECLINED,
                _payload(offer, listing_title),
            )

    @staticmethod
    def counter_received(offer, listing_title):
        if _enabled("NOTIFY_BUYER_RESPONSE"):
            Notifier.notify(
                offer.buyer_id,
                NotificationType.OFFER_COUNTERED,
                _payload(offer, listing_title, offer.counter_amount),
            )

    @staticmethod
    def offer_withdrawn(offer, listing_title):
        if _enabled("NOTIFY_SELLER_RESPONSE"):
            Notifier.notify(
                offer.seller_id,
                NotificationType.OFFER_WITHDRAWN,
                _payload(offer, listing_title),
            )

    @staticmethod
    def siblings_declined(offers: Iterable, listing_title):
        for offer in offers:
            OfferNotificationService.offer_declined(
                offer, listing_title, offer.buyer_id
            )

    @staticmethod
    def offer_expired(offer, listing_title):
        if not _enabled("NOTIFY_EXPIRATION"):
            return
        payload = _payload(offer, listing_title)
        for user_id in (offer.buyer_id, offer.seller_id):
            Notifier.notify(user_id, NotificationType.OFFER_EXPIRED, payload)
