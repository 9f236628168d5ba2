"""
Read/write access to a user's off-chain points balance.

Balance changes are single-row UPDATEs using F() expressions so they are
atomic at the database level. Debits are conditional: the row is only
updated when the balance covers the amount.
"""
import logging
from typing import Optional

from django.db.models import F

from pointsledger.apps.users.models import CommunityUser

logger = logging.getLogger(__name__)


class InsufficientPoints(Exception):
    """Raised when a debit would take a balance below zero."""


class UserBalanceRepository:
    """Balance accessor backed by the CommunityUser table."""

    def find_by_id(self, user_id) -> Optional[CommunityUser]:
        try:
            return CommunityUser.objects.filter(pk=int(str(user_id))).first()
        except (TypeError, ValueError):
            return None

    def get_balance(self, user_id) -> Optional[int]:
        user = self.find_by_id(user_id)
        return user.total_points if user else None

    def debit(self, user_id, points: int) -> int:
        """Subtract points if the balance allows it. Returns the new balance."""
        updated = CommunityUser.objects.filter(
            pk=user_id, total_points__gte=points
        ).update(total_points=F("total_points") - points)
        if not updated:
            logger.warning(f"[Balance] Debit of {points} refused for user {user_id}")
            raise InsufficientPoints(f"User {user_id} cannot cover {points} points")
        return self.get_balance(user_id)

    def credit(self, user_id, points: int) -> Optional[int]:
        """Add points. Returns the new balance, or None if the user is gone."""
        updated = CommunityUser.objects.filter(pk=user_id).update(
            total_points=F("total_points") + points
        )
        if not updated:
            return None
        return self.get_balance(user_id)
