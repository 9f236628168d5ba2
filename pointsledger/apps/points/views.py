import json
import logging

from django.conf import settings
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from pointsledger.apps.points.exceptions import BadRequest, ConversionError
from pointsledger.apps.points.services.conversion_service import PointsConversionService
from pointsledger.apps.points.services.history_service import PointsHistoryService
from pointsledger.apps.points.validators import is_valid_wallet
from pointsledger.apps.users.middleware import actor_required

logger = logging.getLogger(__name__)


# ---------------------------
# Helpers
# ---------------------------


def ok(data, status=200):
    return JsonResponse({"success": True, "data": data}, status=status)


def fail(message, status):
    return JsonResponse({"success": False, "error": message}, status=status)


def error_response(exc: Exception, fallback: str):
    """Business errors keep their message/status; anything else is a bare 500."""
    if isinstance(exc, ConversionError):
        return fail(exc.message, exc.status_code)
    logger.error(f"[PointsAPI] {fallback}: {exc}", exc_info=True)
    return fail(fallback, 500)


def json_body(request) -> dict:
    if not request.body:
        return {}
    try:
        body = json.loads(request.body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise BadRequest("Request body must be valid JSON")
    if not isinstance(body, dict):
        raise BadRequest("Request body must be a JSON object")
    return body


def parse_int(value, default=None):
    """Lenient int parsing for query/body values; None when not an integer."""
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def page_params(request):
    page = parse_int(request.GET.get("page"), 1)
    limit = parse_int(request.GET.get("limit"), getattr(settings, "DEFAULT_PAGE_SIZE", 10))
    if page is None or limit is None:
        raise BadRequest("Page and limit must be positive integers")
    return page, limit


# ---------------------------
# User endpoints
# ---------------------------


@csrf_exempt
@require_POST
@actor_required
def create_conversion_view(request):
    try:
        body = json_body(request)
        points = parse_int(body.get("pointsToConvert"))
        if points is None or points <= 0:
            return fail("A valid positive points amount is required", 400)
        result = PointsConversionService().create_conversion(request.actor.pk, points)
        return ok(result)
    except Exception as e:
        return error_response(e, "Failed to create conversion")


@require_GET
@actor_required
def user_conversions_view(request):
    try:
        page, limit = page_params(request)
        result = PointsConversionService().get_user_conversions(request.actor.pk, page, limit)
        return ok(result)
    except Exception as e:
        return error_response(e, "Failed to fetch conversions")


@csrf_exempt
@require_POST
@actor_required
def claim_cvc_view(request):
    try:
        body = json_body(request)
        conversion_id = body.get("conversionId")
        wallet_address = (body.get("walletAddress") or "").strip()
        transaction_hash = (body.get("transactionHash") or "").strip()
        if not conversion_id or not wallet_address or not transaction_hash:
            return fail("conversionId, walletAddress and transactionHash are required", 400)
        if not is_valid_wallet(wallet_address):
            return fail("Invalid wallet address", 400)
        result = PointsConversionService().claim_cvc(
            conversion_id, request.actor.pk, wallet_address, transaction_hash
        )
        return ok(result)
    except Exception as e:
        return error_response(e, "Failed to claim CVC")


@require_GET
def current_rate_view(request):
    try:
        return ok(PointsConversionService().get_current_conversion_rate())
    except Exception as e:
        return error_response(e, "Failed to get conversion rate")


@require_GET
@actor_required
def validate_conversion_view(request):
    raw = request.GET.get("pointsToConvert")
    if not raw:
        return fail("Points amount is required", 400)
    points = parse_int(raw)
    if points is None:
        return fail("Points amount must be an integer", 400)
    try:
        result = PointsConversionService().validate_conversion(request.actor.pk, points)
        return ok(result)
    except Exception as e:
        return error_response(e, "Failed to validate conversion")


@require_GET
@actor_required
def points_history_view(request):
    try:
        page, limit = page_params(request)
        result = PointsHistoryService().get_points_history(request.actor.pk, page, limit)
        return ok(result)
    except Exception as e:
        return error_response(e, "Failed to get points history")
