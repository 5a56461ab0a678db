import pytest

from apps.users.models import BlockedUser
from apps.users.services.block_list import BlockListService


@pytest.mark.django_db
class TestBlockListService:
    def test_block_is_symmetric(self, buyer, seller):
        BlockListService.block(seller, buyer)

        assert BlockListService.is_blocked(seller.id, buyer.id)
        assert BlockListService.is_blocked(buyer.id, seller.id)

    def test_unrelated_users_are_not_blocked(self, buyer, seller, other_buyer):
        BlockListService.block(seller, buyer)
        assert not BlockListService.is_blocked(seller.id, other_buyer.id)

    def test_block_twice_keeps_one_row(self, buyer, seller):
        BlockListService.block(seller, buyer)
        BlockListService.block(seller, buyer)
        assert BlockedUser.objects.count() == 1

    def test_unblock(self, buyer, seller):
        BlockListService.block(seller, buyer)

        assert BlockListService.unblock(seller, buyer) == 1
        assert not BlockListService.is_blocked(buyer.id, seller.id)


@pytest.mark.django_db
class TestCustomUser:
    def test_email_is_username(self, create_user):
        user = create_user("Jane.Doe@EXAMPLE.com", first_name="Jane", last_name="Doe")

        assert user.email == "Jane.Doe@example.com"
        assert user.check_password("testpassword123")
        assert user.get_full_name() == "Jane Doe"
        assert user.get_short_name() == "Jane"

    def test_email_required(self, django_user_model):
        with pytest.raises(ValueError):
            django_user_model.objects.create_user(email="", password="x")
