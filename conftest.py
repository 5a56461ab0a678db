from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from apps.listings.models import Listing, ListingStatus


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def create_user(db):
    User = get_user_model()

    def make_user(email, **extra):
        return User.objects.create_user(
            email=email,
            password="testpassword123",
            first_name=extra.pop("first_name", email.split("@")[0].title()),
            last_name=extra.pop("last_name", "User"),
            **extra,
        )

    return make_user


@pytest.fixture
def seller(create_user):
    return create_user("seller@example.com")


@pytest.fixture
def buyer(create_user):
    return create_user("buyer@example.com")


@pytest.fixture
def other_buyer(create_user):
    return create_user("other.buyer@example.com")


@pytest.fixture
def create_listing(db):
    def make_listing(seller, price="100.00", status=ListingStatus.ACTIVE, **extra):
        return Listing.objects.create(
            seller=seller,
            title=extra.pop("title", "Vintage road bike"),
            price=Decimal(price),
            status=status,
            **extra,
        )

    return make_listing


@pytest.fixture
def listing(create_listing, seller):
    return create_listing(seller)
