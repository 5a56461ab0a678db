from collections import namedtuple

from django.utils import timezone

from apps.core.exceptions import ForbiddenError, InvalidStateError
from apps.offers.models import OfferEvent, OfferStatus

BUYER = "buyer"
SELLER = "seller"
SYSTEM = "system"

Transition = namedtuple("Transition", ["to_status", "actor_role"])

# Every legal move an offer can make. Anything not listed here is refused.
TRANSITIONS = {
    (OfferStatus.PENDING, OfferEvent.UPDATE): Transition(OfferStatus.PENDING, BUYER),
    (OfferStatus.PENDING, OfferEvent.ACCEPT): Transition(OfferStatus.ACCEPTED, SELLER),
    (OfferStatus.PENDING, OfferEvent.REJECT): Transition(OfferStatus.DECLINED, SELLER),
    (OfferStatus.PENDING, OfferEvent.COUNTER): Transition(OfferStatus.COUNTERED, SELLER),
    (OfferStatus.PENDING, OfferEvent.WITHDRAW): Transition(OfferStatus.WITHDRAWN, BUYER),
    (OfferStatus.PENDING, OfferEvent.EXPIRE): Transition(OfferStatus.EXPIRED, SYSTEM),
    (OfferStatus.PENDING, OfferEvent.SUPERSEDE): Transition(OfferStatus.DECLINED, SYSTEM),
    (OfferStatus.COUNTERED, OfferEvent.ACCEPT): Transition(OfferStatus.ACCEPTED, SELLER),
    (OfferStatus.COUNTERED, OfferEvent.ACCEPT_COUNTER): Transition(
        OfferStatus.ACCEPTED, BUYER
    ),
    (OfferStatus.COUNTERED, OfferEvent.DECLINE_COUNTER): Transition(
        OfferStatus.DECLINED, BUYER
    ),
    (OfferStatus.COUNTERED, OfferEvent.WITHDRAW): Transition(
        OfferStatus.WITHDRAWN, BUYER
    ),
    (OfferStatus.COUNTERED, OfferEvent.EXPIRE): Transition(OfferStatus.EXPIRED, SYSTEM),
    (OfferStatus.COUNTERED, OfferEvent.SUPERSEDE): Transition(
        OfferStatus.DECLINED, SYSTEM
    ),
}

# Each event belongs to exactly one role, whatever the source status
EVENT_ROLES = {
    event: transition.actor_role for (_, event), transition in TRANSITIONS.items()
}

# Events a participant can no longer perform once expires_at has passed,
# even before the sweeper has caught up with the offer.
TIME_BOXED_EVENTS = frozenset(
    [
        OfferEvent.UPDATE,
        OfferEvent.ACCEPT,
        OfferEvent.COUNTER,
        OfferEvent.ACCEPT_COUNTER,
    ]
)

ACTION_PHRASES = {
    OfferEvent.UPDATE: "update",
    OfferEvent.ACCEPT: "accept",
    OfferEvent.REJECT: "reject",
    OfferEvent.COUNTER: "counter",
    OfferEvent.ACCEPT_COUNTER: "accept the counter on",
    OfferEvent.DECLINE_COUNTER: "decline the counter on",
    OfferEvent.WITHDRAW: "withdraw",
    OfferEvent.EXPIRE: "expire",
    OfferEvent.SUPERSEDE: "supersede",
}


def actor_role(offer, actor_id):
    """Role the actor plays on this offer, or None for outsiders."""
    if actor_id is None:
        return SYSTEM
    if actor_id == offer.buyer_id:
        return BUYER
    if actor_id == offer.seller_id:
        return SELLER
    return None


def resolve_transition(offer, event, actor_id=None, now=None) -> Transition:
    """
    Decide whether `actor_id` may apply `event` to `offer` right now.

    Role is checked before status, so an outsider always gets ForbiddenError
    regardless of where the offer is in its lifecycle. System events are
    performed with actor_id=None.

    Raises:
        ForbiddenError: the actor does not hold the role the event requires.
        InvalidStateError: the event is not allowed from the current status,
            or the offer's expiry has passed.
    """
    required_role = EVENT_ROLES.get(event)
    if required_role is None:
        raise InvalidStateError(f"Unknown offer event: {event}")

    action = ACTION_PHRASES[event]
    if actor_role(offer, actor_id) != required_role:
        if required_role == SYSTEM:
            raise ForbiddenError(f"Offers cannot be {action}d by users")
        raise ForbiddenError(f"Only the {required_role} can {action} this offer")

    transition = TRANSITIONS.get((offer.status, event))
    if transition is None:
        raise InvalidStateError(
            f"Cannot {action} an offer that is {offer.status.lower()}"
        )

    if event in TIME_BOXED_EVENTS and offer.has_elapsed(now or timezone.now()):
        raise InvalidStateError("This offer has expired")

    return transition


def source_statuses(event):
    """Statuses an offer may be in for `event` to apply."""
    return [status for (status, e) in TRANSITIONS if e == event]


def target_status(event):
    """The single status `event` leads to."""
    targets = {t.to_status for (_, e), t in TRANSITIONS.items() if e == event}
    if len(targets) != 1:
        raise InvalidStateError(f"Event {event} has no single target status")
    return targets.pop()
