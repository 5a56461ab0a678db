import logging
from typing import Dict, List, Optional

from django.db import IntegrityError, transaction
from django.db.models import Count, QuerySet

from apps.core.exceptions import ConflictError, NotFoundError
from apps.offers.models import (
    ACTIVE_OFFER_STATUSES,
    Offer,
    OfferEvent,
    OfferHistory,
    OfferStatus,
)
from apps.offers.state_machine import source_statuses, target_status

logger = logging.getLogger("offers_performance")

USER_ROLES = ("buyer", "seller", "all")


class OfferStore:
    """
    Persistence for offers. Single-offer transitions are compare-and-set
    on the status column; sibling decline and expiry are single UPDATEs.
    """

    @staticmethod
    def create(**fields) -> Offer:
        try:
            with transaction.atomic():
                return Offer.objects.create(**fields)
        except IntegrityError:
            # Partial unique index on (listing, buyer) for active offers
            raise ConflictError("You already have an active offer on this listing")

    @staticmethod
    def get(offer_id, lock: bool = False) -> Offer:
        queryset = Offer.objects.all()
        if lock:
            queryset = queryset.select_for_update()
        try:
            return queryset.get(id=offer_id)
        except Offer.DoesNotExist:
            raise NotFoundError("Offer not found")

    @staticmethod
    def get_active(listing_id, buyer_id) -> Optional[Offer]:
        return (
            Offer.objects.active()
            .filter(listing_id=listing_id, buyer_id=buyer_id)
            .first()
        )

    @staticmethod
    def list_for_listing(listing_id) -> QuerySet:
        return (
            Offer.objects.filter(listing_id=listing_id)
            .select_related("buyer", "seller", "listing")
            .order_by("-created_at")
        )

    @staticmethod
    def list_for_user(
        user_id, role: str = "all", status: Optional[str] = None
    ) -> QuerySet:
        if role == "buyer":
            queryset = Offer.objects.filter(buyer_id=user_id)
        elif role == "seller":
            queryset = Offer.objects.filter(seller_id=user_id)
        elif role == "all":
            queryset = Offer.objects.involving(user_id)
        else:
            raise ValueError(f"role must be one of {', '.join(USER_ROLES)}")

        if status:
            queryset = queryset.filter(status=status)

        return queryset.select_related("buyer", "seller", "listing").order_by(
            "-created_at"
        )

    @staticmethod
    def compare_and_set(
        offer: Offer, expected_status, to_status, now, **changes
    ) -> Offer:
        """
        Move `offer` from `expected_status` to `to_status` only if nobody else
        moved it first. Mirrors the written values onto the instance.
        """
        values = {"status": to_status, "updated_at": now, **changes}
        if to_status != expected_status:
            values["status_changed_at"] = now

        updated = Offer.objects.filter(id=offer.id, status=expected_status).update(
            **values
        )
        if updated == 0:
            logger.warning(
                f"Offer {offer.id} left {expected_status} "
                f"before it could move to {to_status}"
            )
            raise ConflictError(
                "This offer was changed by another request. Refresh and try again."
            )

        for field, value in values.items():
            setattr(offer, field, value)
        return offer

    @staticmethod
    def decline_siblings(winner: Offer, now) -> List[Offer]:
        """
        Decline every other active offer on the winner's listing in one
        UPDATE and return the rows it touched.
        """
        updated = (
            Offer.objects.filter(
                listing_id=winner.listing_id,
                status__in=source_statuses(OfferEvent.SUPERSEDE),
            )
            .exclude(id=winner.id)
            .update(
                status=target_status(OfferEvent.SUPERSEDE),
                responded_at=now,
                status_changed_at=now,
                updated_at=now,
            )
        )
        if not updated:
            return []

        return list(
            Offer.objects.filter(
                listing_id=winner.listing_id,
                status=OfferStatus.DECLINED,
                status_changed_at=now,
            ).exclude(id=winner.id)
        )

    @staticmethod
    def expire_elapsed(now) -> List[Offer]:
        """
        Expire every active offer whose expires_at has passed, in one UPDATE.
        Offers already out of the active set are never touched.
        """
        updated = Offer.objects.filter(
            status__in=source_statuses(OfferEvent.EXPIRE), expires_at__lt=now
        ).update(
            status=target_status(OfferEvent.EXPIRE),
            status_changed_at=now,
            updated_at=now,
        )
        if not updated:
            return []

        return list(
            Offer.objects.filter(
                status=OfferStatus.EXPIRED, status_changed_at=now
            ).select_related("listing")
        )

    @staticmethod
    def record_history(
        offer: Offer, event, actor_id, from_status, notes: str = "", timestamp=None
    ) -> OfferHistory:
        entry = OfferHistory(
            offer=offer,
            action=event,
            actor_id=actor_id,
            from_status=from_status or "",
            to_status=offer.status,
            amount=offer.amount,
            counter_amount=offer.counter_amount,
            notes=notes,
        )
        if timestamp is not None:
            entry.timestamp = timestamp
        entry.save()
        return entry

    @staticmethod
    def record_bulk_history(
        offers: List[Offer], event, timestamp, notes: str = ""
    ) -> None:
        """
        History for offers moved by a set-based update. The counter amount
        survives the move, so a non-null one means the offer was COUNTERED.
        """
        OfferHistory.objects.bulk_create(
            [
                OfferHistory(
                    offer=offer,
                    action=event,
                    actor=None,
                    from_status=(
                        OfferStatus.COUNTERED
                        if offer.counter_amount is not None
                        else OfferStatus.PENDING
                    ),
                    to_status=offer.status,
                    amount=offer.amount,
                    counter_amount=offer.counter_amount,
                    notes=notes,
                    timestamp=timestamp,
                )
                for offer in offers
            ]
        )

    @staticmethod
    def status_counts(queryset: QuerySet) -> Dict[str, int]:
        counts = {status: 0 for status in OfferStatus.values}
        for row in queryset.order_by().values("status").annotate(total=Count("id")):
            counts[row["status"]] = row["total"]
        counts["active"] = sum(counts[status] for status in ACTIVE_OFFER_STATUSES)
        return counts
