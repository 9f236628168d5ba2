"""Plain-dict renderings of ledger rows for the JSON API."""
from decimal import Decimal
from typing import Any, Dict, Optional


def normalize_id(ref) -> Optional[str]:
    """
    Canonical string id for a reference that may be a raw id (int/str/UUID)
    or a loaded object carrying `pk`.
    """
    if ref is None:
        return None
    pk = getattr(ref, "pk", None)
    if pk is not None:
        return str(pk)
    return str(ref)


def to_number(value):
    """Decimal -> int when whole, float otherwise (JSON friendly)."""
    if value is None:
        return None
    d = Decimal(str(value))
    if d == d.to_integral_value():
        return int(d)
    return float(d)


def _iso(dt):
    return dt.isoformat() if dt else None


def user_summary(user) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return {
        "id": str(user.pk),
        "username": user.username,
        "email": user.email or "",
        "profilePic": user.profile_pic or "",
    }


def conversion_to_dict(conversion, *, include_user: bool = True) -> Dict[str, Any]:
    data = {
        "id": str(conversion.pk),
        "pointsConverted": conversion.points_converted,
        "cvcAmount": to_number(conversion.cvc_amount),
        "conversionRate": conversion.conversion_rate,
        "status": conversion.status,
        "transactionHash": conversion.transaction_hash,
        "claimFee": to_number(conversion.claim_fee),
        "walletAddress": conversion.wallet_address,
        "adminNote": conversion.admin_note or None,
        "approvedBy": normalize_id(conversion.approved_by_id),
        "approvedAt": _iso(conversion.approved_at),
        "claimedAt": _iso(conversion.claimed_at),
        "createdAt": _iso(conversion.created_at),
    }
    if include_user:
        data["user"] = user_summary(conversion.user)
    else:
        data["user"] = {"id": normalize_id(conversion.user_id)}
    return data


def conversion_summary(conversion) -> Dict[str, Any]:
    """Short form returned by admin review actions."""
    return {
        "id": str(conversion.pk),
        "pointsConverted": conversion.points_converted,
        "cvcAmount": to_number(conversion.cvc_amount),
        "status": conversion.status,
        "adminNote": conversion.admin_note or None,
    }


def rate_to_dict(rate) -> Dict[str, Any]:
    return {
        "id": str(rate.pk),
        "pointsPerCVC": rate.points_per_cvc,
        "minimumPoints": rate.minimum_points,
        "minimumCVC": to_number(rate.minimum_cvc),
        "claimFeeETH": rate.claim_fee_eth,
        "isActive": rate.is_active,
        "effectiveFrom": _iso(rate.effective_from),
        "createdBy": normalize_id(rate.created_by_id),
        "createdAt": _iso(rate.created_at),
    }


def history_to_dict(entry) -> Dict[str, Any]:
    return {
        "id": str(entry.pk),
        "type": entry.type,
        "points": entry.points,
        "description": entry.description,
        "relatedId": entry.related_id,
        "createdAt": _iso(entry.created_at),
    }
