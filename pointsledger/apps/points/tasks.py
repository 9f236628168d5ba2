from __future__ import annotations

import logging

from celery import shared_task

from pointsledger.apps.points.repositories import PointsHistoryRepository
from pointsledger.apps.users.models import CommunityUser

logger = logging.getLogger(__name__)


@shared_task(queue="points", time_limit=600)
def reconcile_points_balances() -> dict:
    """
    Compare every active user's balance with the sum of their points history.

    Drift means a multi-step write was interrupted or the balance was changed
    outside the ledger. Mismatches are reported for manual review only;
    nothing is corrected automatically.
    """
    history_sums = PointsHistoryRepository().sums_by_user()
    mismatches = []
    checked = 0

    users = CommunityUser.objects.filter(is_active=True).only("id", "total_points")
    for user in users.iterator():
        checked += 1
        expected = history_sums.get(user.id, 0)
        if user.total_points != expected:
            mismatches.append(
                {
                    "user_id": user.id,
                    "total_points": user.total_points,
                    "history_sum": expected,
                    "drift": user.total_points - expected,
                }
            )
            logger.warning(
                f"[Reconcile] User {user.id}: balance {user.total_points} != history {expected}"
            )

    logger.info(f"[Reconcile] Checked {checked} users, {len(mismatches)} mismatched")
    return {"checked": checked, "mismatches": mismatches}
