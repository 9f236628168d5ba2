"""
User-facing points -> CVC conversion workflow.

create -> (admin approve / reject) -> claim. Points leave the balance when a
conversion is created and come back only if an admin rejects it.
"""
import logging
from typing import Any, Dict, Optional

from django.db import transaction
from django.utils import timezone

from pointsledger.apps.points.config import ConversionConfig, get_conversion_config
from pointsledger.apps.points.conversion import ConversionTerms, validate_conversion
from pointsledger.apps.points.exceptions import BadRequest, NotFound, Unauthorized
from pointsledger.apps.points.repositories import (
    ConversionRateRepository,
    PointsConversionRepository,
    PointsHistoryRepository,
)
from pointsledger.apps.points.serializers import (
    conversion_to_dict,
    normalize_id,
    to_number,
)
from pointsledger.apps.points.services.base import (
    check_pagination,
    require_positive_int,
    translate_errors,
)
from pointsledger.apps.users.services.balance import (
    InsufficientPoints,
    UserBalanceRepository,
)

logger = logging.getLogger(__name__)

INVALID_POINTS = "A valid positive points amount is required"


class PointsConversionService:
    """Create, list, claim and dry-run points conversions for a user."""

    def __init__(
        self,
        conversions: Optional[PointsConversionRepository] = None,
        rates: Optional[ConversionRateRepository] = None,
        users: Optional[UserBalanceRepository] = None,
        history: Optional[PointsHistoryRepository] = None,
        config: Optional[ConversionConfig] = None,
    ):
        self.conversions = conversions or PointsConversionRepository()
        self.rates = rates or ConversionRateRepository()
        self.users = users or UserBalanceRepository()
        self.history = history or PointsHistoryRepository()
        self.config = config or get_conversion_config()

    @translate_errors("Failed to create conversion")
    def create_conversion(self, user_id, points_to_convert) -> Dict[str, Any]:
        points = require_positive_int(points_to_convert, INVALID_POINTS)

        rate = self.rates.get_current_rate()
        if rate is None:
            raise NotFound("No conversion rate found")
        if not rate.is_active:
            raise BadRequest("Points conversion is currently disabled")

        user = self.users.find_by_id(user_id)
        if user is None:
            raise NotFound("User not found")

        terms = ConversionTerms.from_rate(rate)
        validation = validate_conversion(points, terms)
        if not validation.is_valid:
            raise BadRequest(validation.error)

        if user.total_points < points:
            raise BadRequest("Insufficient points")

        cvc_amount = validation.cvc_amount

        # Record, debit, history in that order; one transaction so a failure
        # in a later step leaves no half-written conversion behind.
        with transaction.atomic():
            conversion = self.conversions.create(
                user_id=user.pk,
                points_converted=points,
                cvc_amount=cvc_amount,
                conversion_rate=terms.points_per_cvc,
                claim_fee=terms.claim_fee_eth,
            )
            try:
                # Conditional decrement: a concurrent conversion that already
                # spent these points makes this one fail instead of overdrawing.
                self.users.debit(user.pk, points)
            except InsufficientPoints:
                raise BadRequest("Insufficient points")
            self.history.create_entry(
                user_id=user.pk,
                type="conversion_deduction",
                points=-points,
                description=f"Converted {points} points to {cvc_amount} CVC",
                related_id=str(conversion.pk),
            )

        logger.info(
            f"[Conversion] User {user.pk} converted {points} points -> {cvc_amount} CVC ({conversion.pk})"
        )
        return {
            "success": True,
            "conversionId": str(conversion.pk),
            "cvcAmount": cvc_amount,
            "message": f"Successfully converted {points} points to {cvc_amount} CVC. Awaiting approval.",
        }

    @translate_errors("Failed to fetch conversions")
    def get_user_conversions(self, user_id, page=1, limit=10) -> Dict[str, Any]:
        page, limit = check_pagination(page, limit)
        conversions, total, total_pages = self.conversions.find_by_user(user_id, page, limit)
        stats = self.conversions.get_user_totals(user_id)
        return {
            "conversions": [conversion_to_dict(c, include_user=False) for c in conversions],
            "total": total,
            "totalPages": total_pages,
            "stats": {
                "totalPointsConverted": stats["total_points_converted"],
                "totalCVCClaimed": to_number(stats["total_cvc_claimed"]),
                "pendingConversions": stats["pending_conversions"],
            },
        }

    @translate_errors("Failed to claim CVC")
    def claim_cvc(self, conversion_id, user_id, wallet_address, transaction_hash) -> Dict[str, Any]:
        conversion = self.conversions.find_by_id(conversion_id)
        if conversion is None:
            raise NotFound("Conversion not found")

        # The owner may come back as a raw id or as a loaded user object
        owner_id = normalize_id(conversion.user)
        requester_id = normalize_id(user_id)
        if owner_id != requester_id:
            logger.error(
                f"[Conversion] Owner mismatch on claim: conversion {conversion_id} "
                f"belongs to {owner_id}, requested by {requester_id}"
            )
            raise Unauthorized("Unauthorized - This conversion does not belong to you")

        if conversion.status != "approved":
            raise BadRequest("Conversion not approved for claiming")

        # No on-chain verification: the hash is recorded as the caller sent it
        updated = self.conversions.update_status(
            conversion.pk,
            "claimed",
            expected_status="approved",
            wallet_address=wallet_address,
            transaction_hash=transaction_hash,
            claimed_at=timezone.now(),
        )
        if updated is None:
            raise BadRequest("Conversion not approved for claiming")

        logger.info(
            f"[Conversion] {conversion.pk} claimed by {requester_id} to {wallet_address} (tx {transaction_hash})"
        )
        return {
            "success": True,
            "message": f"Successfully claimed {to_number(conversion.cvc_amount)} CVC tokens",
        }

    @translate_errors("Failed to get conversion rate")
    def get_current_conversion_rate(self) -> Dict[str, Any]:
        rate = self.rates.get_current_rate()
        if rate is None:
            raise NotFound("No conversion rate found")
        data = {
            "pointsPerCVC": rate.points_per_cvc,
            "minimumPoints": rate.minimum_points,
            "minimumCVC": to_number(rate.minimum_cvc),
            "claimFeeETH": rate.claim_fee_eth,
            "isActive": rate.is_active,
        }
        data.update(self.config.public_fields())
        return data

    def validate_conversion(self, user_id, points_to_convert) -> Dict[str, Any]:
        """Dry run of create_conversion. Reports problems instead of raising."""
        try:
            user = self.users.find_by_id(user_id)
            if user is None:
                return {"isValid": False, "error": "User not found"}

            rate = self.rates.get_current_rate()
            if rate is None:
                return {"isValid": False, "error": "No conversion rate available"}

            if (
                isinstance(points_to_convert, bool)
                or not isinstance(points_to_convert, int)
                or points_to_convert <= 0
            ):
                return {
                    "isValid": False,
                    "error": INVALID_POINTS,
                    "userPoints": user.total_points,
                }

            if user.total_points < points_to_convert:
                return {
                    "isValid": False,
                    "error": "Insufficient points",
                    "userPoints": user.total_points,
                }

            validation = validate_conversion(points_to_convert, ConversionTerms.from_rate(rate))
            result = {"isValid": validation.is_valid, "userPoints": user.total_points}
            if validation.error:
                result["error"] = validation.error
            if validation.cvc_amount is not None:
                result["cvcAmount"] = validation.cvc_amount
            return result
        except Exception as e:
            logger.error(f"[Conversion] Validate conversion error: {e}", exc_info=True)
            return {"isValid": False, "error": "Validation failed"}
