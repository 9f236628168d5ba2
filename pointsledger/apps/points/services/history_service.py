from typing import Any, Dict, Optional

from pointsledger.apps.points.repositories import PointsHistoryRepository
from pointsledger.apps.points.serializers import history_to_dict
from pointsledger.apps.points.services.base import check_pagination, translate_errors


class PointsHistoryService:
    """Paged points history with a per-type breakdown."""

    def __init__(self, history: Optional[PointsHistoryRepository] = None):
        self.history = history or PointsHistoryRepository()

    @translate_errors("Failed to get points history")
    def get_points_history(self, user_id, page=1, limit=10) -> Dict[str, Any]:
        page, limit = check_pagination(page, limit)
        entries, total, total_pages = self.history.find_by_user(user_id, page, limit)
        by_type = self.history.total_by_type(user_id)
        return {
            "history": [history_to_dict(e) for e in entries],
            "total": total,
            "totalPages": total_pages,
            "summary": {
                "totalPoints": sum(by_type.values()),
                "pointsByType": by_type,
            },
        }
