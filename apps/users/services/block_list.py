from django.db.models import Q

from apps.users.models import BlockedUser


class BlockListService:
    """Answers whether two users may interact."""

    @staticmethod
    def is_blocked(user_a_id, user_b_id) -> bool:
        """True if either user has blocked the other."""
        return BlockedUser.objects.filter(
            Q(blocker_id=user_a_id, blocked_id=user_b_id)
            | Q(blocker_id=user_b_id, blocked_id=user_a_id)
        ).exists()

    @staticmethod
    def block(blocker, blocked) -> BlockedUser:
        block, _ = BlockedUser.objects.get_or_create(blocker=blocker, blocked=blocked)
        return block

    @staticmethod
    def unblock(blocker, blocked) -> int:
        deleted, _ = BlockedUser.objects.filter(
            blocker=blocker, blocked=blocked
        ).delete()
        return deleted
