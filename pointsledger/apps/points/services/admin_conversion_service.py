"""
Admin side of the conversion ledger: review queue, approve/reject and rate
publishing.
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from django.db import transaction
from django.utils import timezone

from pointsledger.apps.points.exceptions import BadRequest, NotFound, Unauthorized
from pointsledger.apps.points.models import ConversionRate, PointsConversion
from pointsledger.apps.points.repositories import (
    ConversionRateRepository,
    PointsConversionRepository,
    PointsHistoryRepository,
)
from pointsledger.apps.points.serializers import (
    conversion_summary,
    conversion_to_dict,
    normalize_id,
    rate_to_dict,
    to_number,
)
from pointsledger.apps.points.services.base import check_pagination, translate_errors
from pointsledger.apps.users.services.balance import UserBalanceRepository

logger = logging.getLogger(__name__)

NOT_PENDING = "Conversion is not in pending status"
DAILY_STATS_DAYS = 30


class AdminPointsConversionService:
    def __init__(
        self,
        conversions: Optional[PointsConversionRepository] = None,
        rates: Optional[ConversionRateRepository] = None,
        users: Optional[UserBalanceRepository] = None,
        history: Optional[PointsHistoryRepository] = None,
    ):
        self.conversions = conversions or PointsConversionRepository()
        self.rates = rates or ConversionRateRepository()
        self.users = users or UserBalanceRepository()
        self.history = history or PointsHistoryRepository()

    def _admin(self, admin_id):
        admin = self.users.find_by_id(admin_id)
        if admin is None or not admin.is_admin:
            raise Unauthorized("Admin not authenticated")
        return admin

    def _pending_conversion(self, conversion_id, target: str):
        conversion = self.conversions.find_by_id(conversion_id)
        if conversion is None:
            raise NotFound("Conversion not found")
        if not conversion.can_transition_to(target):
            raise BadRequest(NOT_PENDING)
        return conversion

    @translate_errors("Failed to fetch conversions")
    def get_all_conversions(self, page=1, limit=10, status: Optional[str] = None) -> Dict[str, Any]:
        page, limit = check_pagination(page, limit)
        # Empty or 'all' means no status filter
        status = (status or "").strip()
        normalized = status if status and status != "all" else "all"
        conversions, total, total_pages = self.conversions.find_by_status(normalized, page, limit)
        return {
            "conversions": [conversion_to_dict(c) for c in conversions],
            "total": total,
            "totalPages": total_pages,
        }

    @translate_errors("Failed to approve conversion")
    def approve_conversion(self, conversion_id, admin_id, admin_note: Optional[str] = None) -> Dict[str, Any]:
        admin = self._admin(admin_id)
        conversion = self._pending_conversion(conversion_id, "approved")

        # Points were debited at creation; approval only moves the state
        updated = self.conversions.update_status(
            conversion.pk,
            "approved",
            expected_status="pending",
            admin_note=admin_note,
            approved_by_id=admin.pk,
            approved_at=timezone.now(),
        )
        if updated is None:
            raise BadRequest(NOT_PENDING)

        logger.info(f"[AdminConversion] {conversion.pk} approved by admin {admin.pk}")
        return {
            "success": True,
            "conversion": conversion_summary(updated),
            "message": f"Conversion approved. User can now claim {to_number(updated.cvc_amount)} CVC tokens.",
        }

    @translate_errors("Failed to reject conversion")
    def reject_conversion(self, conversion_id, admin_id, reason: str) -> Dict[str, Any]:
        if not reason or not str(reason).strip():
            raise BadRequest("Rejection reason is required")
        admin = self._admin(admin_id)
        conversion = self._pending_conversion(conversion_id, "rejected")
        owner_id = normalize_id(conversion.user)

        # Refund, history, state change. A missing owner aborts the whole
        # rejection rather than marking it rejected with the points lost.
        with transaction.atomic():
            if self.users.credit(owner_id, conversion.points_converted) is None:
                raise NotFound("User not found")
            self.history.create_entry(
                user_id=owner_id,
                type="conversion_refund",
                points=conversion.points_converted,
                description=f"Refund: {reason}",
                related_id=str(conversion.pk),
            )
            updated = self.conversions.update_status(
                conversion.pk,
                "rejected",
                expected_status="pending",
                admin_note=reason,
                approved_by_id=admin.pk,
                approved_at=timezone.now(),
            )
            if updated is None:
                raise BadRequest(NOT_PENDING)

        logger.info(
            f"[AdminConversion] {conversion.pk} rejected by admin {admin.pk}; "
            f"refunded {conversion.points_converted} points to user {owner_id}"
        )
        return {
            "success": True,
            "conversion": conversion_summary(updated),
            "message": "Conversion rejected successfully.",
        }

    @translate_errors("Failed to get conversion statistics")
    def get_conversion_stats(self) -> Dict[str, Any]:
        stats = self.conversions.get_conversion_stats()
        daily = [
            {
                "date": row["day"].isoformat(),
                "conversions": row["conversions"],
                "points": row["points"] or 0,
                "cvc": to_number(row["cvc"] or 0),
            }
            for row in self.conversions.get_daily_stats(DAILY_STATS_DAYS)
        ]
        return {
            "totalConversions": stats["total_conversions"],
            "totalPointsConverted": stats["total_points_converted"],
            "totalCVCGenerated": to_number(stats["total_cvc_generated"]),
            "totalClaimed": to_number(stats["total_claimed"]),
            "totalPending": stats["total_pending"],
            "dailyStats": daily,
        }

    @translate_errors("Failed to get conversion")
    def get_conversion_by_id(self, conversion_id) -> Dict[str, Any]:
        conversion = self.conversions.find_by_id(conversion_id)
        if conversion is None:
            raise NotFound("Conversion not found")
        return conversion_to_dict(conversion)

    @translate_errors("Failed to update conversion rate")
    def update_conversion_rate(self, admin_id, rate_data: Dict[str, Any]) -> Dict[str, Any]:
        admin = self._admin(admin_id)
        terms = _clean_rate_data(rate_data)
        effective_from = rate_data.get("effective_from") or timezone.now()

        # Deactivate then insert; one transaction keeps exactly one active rate
        with transaction.atomic():
            deactivated = self.rates.deactivate_all_rates()
            rate = self.rates.create(
                is_active=True,
                effective_from=effective_from,
                created_by=admin,
                **terms,
            )

        logger.info(
            f"[AdminConversion] Admin {admin.pk} published rate {rate.pk} "
            f"({rate.points_per_cvc} pts/CVC); deactivated {deactivated} previous"
        )
        return {
            "success": True,
            "rate": rate_to_dict(rate),
            "message": "Conversion rate updated successfully",
        }

    @translate_errors("Failed to get conversion rates")
    def get_conversion_rates(self, page=1, limit=10) -> Dict[str, Any]:
        page, limit = check_pagination(page, limit)
        rates, total, total_pages = self.rates.find_all(page, limit)
        return {
            "rates": [rate_to_dict(r) for r in rates],
            "total": total,
            "totalPages": total_pages,
        }

    @translate_errors("Failed to get current rate")
    def get_current_rate(self) -> Optional[Dict[str, Any]]:
        rate = self.rates.get_current_rate()
        return rate_to_dict(rate) if rate else None


def _clean_rate_data(rate_data: Dict[str, Any]) -> Dict[str, Any]:
    """Check and coerce admin-supplied rate values."""
    try:
        points_per_cvc = _as_decimal(rate_data["points_per_cvc"])
        minimum_points = _as_decimal(rate_data["minimum_points"])
        minimum_cvc = _as_decimal(rate_data["minimum_cvc"])
        claim_fee = _as_decimal(rate_data["claim_fee_eth"])
    except (KeyError, TypeError, ValueError, InvalidOperation):
        raise BadRequest("All rate parameters are required")

    # 2.5 must not be published as 2
    for value in (points_per_cvc, minimum_points):
        if not value.is_finite() or value <= 0 or value != value.to_integral_value():
            raise BadRequest("pointsPerCVC and minimumPoints must be positive integers")
    if not minimum_cvc.is_finite() or minimum_cvc <= 0:
        raise BadRequest("minimumCVC must be a positive number")
    if not claim_fee.is_finite() or claim_fee < 0:
        raise BadRequest("claimFeeETH must be a non-negative decimal")

    # Values the columns would round (e.g. a floor rounded down to zero) are refused
    for name, value, field in (
        ("minimumCVC", minimum_cvc, ConversionRate._meta.get_field("minimum_cvc")),
        ("claimFeeETH", claim_fee, PointsConversion._meta.get_field("claim_fee")),
    ):
        problem = _column_problem(value, field.max_digits, field.decimal_places)
        if problem:
            raise BadRequest(f"{name} {problem}")

    return {
        "points_per_cvc": int(points_per_cvc),
        "minimum_points": int(minimum_points),
        "minimum_cvc": minimum_cvc,
        "claim_fee_eth": str(rate_data["claim_fee_eth"]).strip(),
    }


def _as_decimal(value) -> Decimal:
    if value is None or isinstance(value, bool):
        raise TypeError(f"Not a number: {value!r}")
    return Decimal(str(value).strip())


def _column_problem(value: Decimal, max_digits: int, decimal_places: int) -> Optional[str]:
    if value.normalize().as_tuple().exponent < -decimal_places:
        return f"allows at most {decimal_places} decimal places"
    if abs(value) >= Decimal(10) ** (max_digits - decimal_places):
        return "is too large"
    return None
