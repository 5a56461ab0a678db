from datetime import timedelta

import pytest
from django.utils import timezone

from apps.core.exceptions import ForbiddenError, InvalidStateError
from apps.offers.models import Offer, OfferEvent, OfferStatus
from apps.offers.state_machine import (
    BUYER,
    SELLER,
    SYSTEM,
    TRANSITIONS,
    resolve_transition,
    source_statuses,
    target_status,
)

BUYER_ID = 1
SELLER_ID = 2
STRANGER_ID = 3


def make_offer(status=OfferStatus.PENDING, expires_in=timedelta(hours=48)):
    return Offer(
        buyer_id=BUYER_ID,
        seller_id=SELLER_ID,
        status=status,
        expires_at=timezone.now() + expires_in,
    )


class TestTransitionTable:
    def test_terminal_states_have_no_exits(self):
        terminal = {
            OfferStatus.ACCEPTED,
            OfferStatus.DECLINED,
            OfferStatus.WITHDRAWN,
            OfferStatus.EXPIRED,
        }
        assert not [key for key in TRANSITIONS if key[0] in terminal]

    def test_each_event_has_one_actor_role(self):
        roles = {}
        for (_, event), transition in TRANSITIONS.items():
            roles.setdefault(event, set()).add(transition.actor_role)
        assert all(len(r) == 1 for r in roles.values())

    def test_bulk_helpers(self):
        assert set(source_statuses(OfferEvent.EXPIRE)) == {
            OfferStatus.PENDING,
            OfferStatus.COUNTERED,
        }
        assert target_status(OfferEvent.EXPIRE) == OfferStatus.EXPIRED
        assert target_status(OfferEvent.SUPERSEDE) == OfferStatus.DECLINED


class TestResolveTransition:
    @pytest.mark.parametrize(
        "status, event, actor_id, expected",
        [
            (OfferStatus.PENDING, OfferEvent.ACCEPT, SELLER_ID, OfferStatus.ACCEPTED),
            (OfferStatus.PENDING, OfferEvent.REJECT, SELLER_ID, OfferStatus.DECLINED),
            (OfferStatus.PENDING, OfferEvent.COUNTER, SELLER_ID, OfferStatus.COUNTERED),
            (OfferStatus.PENDING, OfferEvent.UPDATE, BUYER_ID, OfferStatus.PENDING),
            (OfferStatus.PENDING, OfferEvent.WITHDRAW, BUYER_ID, OfferStatus.WITHDRAWN),
            (OfferStatus.COUNTERED, OfferEvent.ACCEPT, SELLER_ID, OfferStatus.ACCEPTED),
            (
                OfferStatus.COUNTERED,
                OfferEvent.ACCEPT_COUNTER,
                BUYER_ID,
                OfferStatus.ACCEPTED,
            ),
            (
                OfferStatus.COUNTERED,
                OfferEvent.DECLINE_COUNTER,
                BUYER_ID,
                OfferStatus.DECLINED,
            ),
            (OfferStatus.COUNTERED, OfferEvent.EXPIRE, None, OfferStatus.EXPIRED),
            (OfferStatus.PENDING, OfferEvent.SUPERSEDE, None, OfferStatus.DECLINED),
        ],
    )
    def test_allowed_moves(self, status, event, actor_id, expected):
        transition = resolve_transition(make_offer(status), event, actor_id)
        assert transition.to_status == expected

    def test_buyer_cannot_accept_own_offer(self):
        with pytest.raises(ForbiddenError):
            resolve_transition(make_offer(), OfferEvent.ACCEPT, BUYER_ID)

    def test_seller_cannot_withdraw(self):
        with pytest.raises(ForbiddenError):
            resolve_transition(make_offer(), OfferEvent.WITHDRAW, SELLER_ID)

    def test_stranger_is_forbidden_even_on_terminal_offer(self):
        with pytest.raises(ForbiddenError):
            resolve_transition(
                make_offer(OfferStatus.ACCEPTED), OfferEvent.REJECT, STRANGER_ID
            )

    def test_users_cannot_expire_offers(self):
        with pytest.raises(ForbiddenError):
            resolve_transition(make_offer(), OfferEvent.EXPIRE, SELLER_ID)

    def test_counter_only_from_pending(self):
        with pytest.raises(InvalidStateError):
            resolve_transition(
                make_offer(OfferStatus.COUNTERED), OfferEvent.COUNTER, SELLER_ID
            )

    def test_accept_counter_requires_counter(self):
        with pytest.raises(InvalidStateError):
            resolve_transition(make_offer(), OfferEvent.ACCEPT_COUNTER, BUYER_ID)

    @pytest.mark.parametrize(
        "status",
        [
            OfferStatus.ACCEPTED,
            OfferStatus.DECLINED,
            OfferStatus.WITHDRAWN,
            OfferStatus.EXPIRED,
        ],
    )
    def test_terminal_offers_cannot_be_withdrawn(self, status):
        with pytest.raises(InvalidStateError):
            resolve_transition(make_offer(status), OfferEvent.WITHDRAW, BUYER_ID)

    def test_elapsed_offer_cannot_be_accepted_before_sweep(self):
        offer = make_offer(expires_in=-timedelta(minutes=1))
        with pytest.raises(InvalidStateError, match="expired"):
            resolve_transition(offer, OfferEvent.ACCEPT, SELLER_ID)

    def test_elapsed_offer_can_still_be_withdrawn(self):
        offer = make_offer(expires_in=-timedelta(minutes=1))
        transition = resolve_transition(offer, OfferEvent.WITHDRAW, BUYER_ID)
        assert transition.to_status == OfferStatus.WITHDRAWN

    def test_roles(self):
        assert TRANSITIONS[(OfferStatus.PENDING, OfferEvent.ACCEPT)].actor_role == SELLER
        assert TRANSITIONS[(OfferStatus.PENDING, OfferEvent.UPDATE)].actor_role == BUYER
        assert TRANSITIONS[(OfferStatus.PENDING, OfferEvent.EXPIRE)].actor_role == SYSTEM
