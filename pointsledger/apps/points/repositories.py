"""
ORM-backed stores for conversion rates, conversion records and points history.

Services receive these through their constructors; tests and alternative
storage can pass their own objects with the same methods.
"""
import logging
import math
import uuid
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from django.db.models import Count, Q, Sum
from django.db.models.functions import TruncDate
from django.utils import timezone

from .models import ConversionRate, PointsConversion, PointsHistory

logger = logging.getLogger(__name__)


def paginate(queryset, page: int, limit: int) -> Tuple[List[Any], int, int]:
    """Offset pagination. Returns (items, total, total_pages)."""
    skip = (page - 1) * limit
    total = queryset.count()
    items = list(queryset[skip : skip + limit])
    total_pages = math.ceil(total / limit) if limit else 0
    return items, total, total_pages


def _as_uuid(value) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


class ConversionRateRepository:
    def create(
        self,
        *,
        points_per_cvc: int,
        minimum_points: int,
        minimum_cvc,
        claim_fee_eth: str,
        is_active: bool,
        effective_from,
        created_by=None,
    ) -> ConversionRate:
        return ConversionRate.objects.create(
            points_per_cvc=points_per_cvc,
            minimum_points=minimum_points,
            minimum_cvc=Decimal(str(minimum_cvc)),
            claim_fee_eth=str(claim_fee_eth),
            is_active=is_active,
            effective_from=effective_from,
            created_by=created_by,
        )

    def find_by_id(self, rate_id) -> Optional[ConversionRate]:
        try:
            return (
                ConversionRate.objects.select_related("created_by")
                .filter(pk=int(str(rate_id)))
                .first()
            )
        except (TypeError, ValueError):
            return None

    def get_current_rate(self) -> Optional[ConversionRate]:
        return (
            ConversionRate.objects.select_related("created_by")
            .filter(is_active=True, effective_from__lte=timezone.now())
            .order_by("-effective_from")
            .first()
        )

    def find_all(self, page: int = 1, limit: int = 10):
        qs = ConversionRate.objects.select_related("created_by").order_by("-effective_from")
        return paginate(qs, page, limit)

    def deactivate_all_rates(self) -> int:
        return ConversionRate.objects.filter(is_active=True).update(is_active=False)

    def count_active(self) -> int:
        return ConversionRate.objects.filter(is_active=True).count()


class PointsConversionRepository:
    def create(
        self,
        *,
        user_id,
        points_converted: int,
        cvc_amount,
        conversion_rate: int,
        claim_fee,
    ) -> PointsConversion:
        return PointsConversion.objects.create(
            user_id=user_id,
            points_converted=points_converted,
            cvc_amount=Decimal(str(cvc_amount)),
            conversion_rate=conversion_rate,
            claim_fee=Decimal(str(claim_fee)),
        )

    def find_by_id(self, conversion_id) -> Optional[PointsConversion]:
        pk = _as_uuid(conversion_id)
        if pk is None:
            return None
        return (
            PointsConversion.objects.select_related("user", "approved_by")
            .filter(pk=pk)
            .first()
        )

    def find_by_user(self, user_id, page: int = 1, limit: int = 10):
        qs = (
            PointsConversion.objects.select_related("approved_by")
            .filter(user_id=user_id)
            .order_by("-created_at")
        )
        return paginate(qs, page, limit)

    def find_by_status(self, status: str = "all", page: int = 1, limit: int = 10):
        qs = PointsConversion.objects.select_related("user", "approved_by")
        if status != "all":
            qs = qs.filter(status=status)
        return paginate(qs.order_by("-created_at"), page, limit)

    def update_status(
        self, conversion_id, status: str, *, expected_status: str = None, **fields
    ) -> Optional[PointsConversion]:
        """
        Move a record to `status`, applying only the non-empty extra fields.

        With `expected_status` the write only lands if the row is still in
        that state, so two reviewers cannot both act on one record.
        Returns the refreshed record, or None when nothing was updated.
        """
        allowed = {
            "admin_note",
            "approved_by_id",
            "approved_at",
            "claimed_at",
            "transaction_hash",
            "wallet_address",
        }
        changes = {"status": status}
        for key, value in fields.items():
            if key not in allowed:
                raise ValueError(f"Field {key!r} cannot be set on a status change")
            if value not in (None, ""):
                changes[key] = value

        qs = PointsConversion.objects.filter(pk=_as_uuid(conversion_id))
        if expected_status is not None:
            qs = qs.filter(status=expected_status)
        if not qs.update(**changes):
            return None
        return self.find_by_id(conversion_id)

    def get_conversion_stats(self) -> Dict[str, Any]:
        stats = PointsConversion.objects.aggregate(
            total_conversions=Count("id"),
            total_points_converted=Sum("points_converted"),
            total_cvc_generated=Sum("cvc_amount"),
            total_claimed=Sum("cvc_amount", filter=Q(status="claimed")),
            total_pending=Count("id", filter=Q(status="pending")),
        )
        return {
            "total_conversions": stats["total_conversions"] or 0,
            "total_points_converted": stats["total_points_converted"] or 0,
            "total_cvc_generated": stats["total_cvc_generated"] or Decimal("0"),
            "total_claimed": stats["total_claimed"] or Decimal("0"),
            "total_pending": stats["total_pending"] or 0,
        }

    def get_user_totals(self, user_id) -> Dict[str, Any]:
        stats = PointsConversion.objects.filter(user_id=user_id).aggregate(
            total_points_converted=Sum("points_converted"),
            total_cvc_claimed=Sum("cvc_amount", filter=Q(status="claimed")),
            pending_conversions=Count("id", filter=Q(status="pending")),
        )
        return {
            "total_points_converted": stats["total_points_converted"] or 0,
            "total_cvc_claimed": stats["total_cvc_claimed"] or Decimal("0"),
            "pending_conversions": stats["pending_conversions"] or 0,
        }

    def get_daily_stats(self, days: int = 30) -> List[Dict[str, Any]]:
        since = timezone.now() - timedelta(days=days)
        rows = (
            PointsConversion.objects.filter(created_at__gte=since)
            .annotate(day=TruncDate("created_at"))
            .values("day")
            .annotate(
                conversions=Count("id"),
                points=Sum("points_converted"),
                cvc=Sum("cvc_amount"),
            )
            .order_by("day")
        )
        return list(rows)


class PointsHistoryRepository:
    def create_entry(
        self,
        *,
        user_id,
        type: str,
        points: int,
        description: str = "",
        related_id: Optional[str] = None,
    ) -> PointsHistory:
        return PointsHistory.objects.create(
            user_id=user_id,
            type=type,
            points=points,
            description=description,
            related_id=related_id,
        )

    def find_by_user(self, user_id, page: int = 1, limit: int = 10):
        qs = PointsHistory.objects.filter(user_id=user_id).order_by("-created_at")
        return paginate(qs, page, limit)

    def total_by_type(self, user_id) -> Dict[str, int]:
        totals = {key: 0 for key, _ in PointsHistory.TYPE}
        rows = (
            PointsHistory.objects.filter(user_id=user_id)
            .values("type")
            .annotate(total=Sum("points"))
        )
        for row in rows:
            totals[row["type"]] = row["total"] or 0
        return totals

    def sum_for_user(self, user_id) -> int:
        total = PointsHistory.objects.filter(user_id=user_id).aggregate(
            total=Sum("points")
        )["total"]
        return total or 0

    def sums_by_user(self) -> Dict[int, int]:
        rows = PointsHistory.objects.values("user_id").annotate(total=Sum("points"))
        return {row["user_id"]: row["total"] or 0 for row in rows}
