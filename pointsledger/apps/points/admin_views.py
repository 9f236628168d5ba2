"""JSON endpoints for the admin conversion dashboard."""
from datetime import timezone as dt_timezone

from django.utils.dateparse import parse_datetime
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from pointsledger.apps.points.exceptions import BadRequest
from pointsledger.apps.points.services.admin_conversion_service import (
    AdminPointsConversionService,
)
from pointsledger.apps.points.views import error_response, fail, json_body, ok, page_params
from pointsledger.apps.users.middleware import admin_required

RATE_FIELDS = {
    "pointsPerCVC": "points_per_cvc",
    "minimumPoints": "minimum_points",
    "minimumCVC": "minimum_cvc",
    "claimFeeETH": "claim_fee_eth",
}


@require_GET
@admin_required
def all_conversions_view(request):
    try:
        page, limit = page_params(request)
        status = request.GET.get("status", "")
        result = AdminPointsConversionService().get_all_conversions(page, limit, status)
        return ok(result)
    except Exception as e:
        return error_response(e, "Failed to get conversions")


@csrf_exempt
@require_POST
@admin_required
def approve_conversion_view(request, conversion_id):
    try:
        body = json_body(request)
        result = AdminPointsConversionService().approve_conversion(
            conversion_id, request.actor.pk, body.get("adminNote")
        )
        return ok(result)
    except Exception as e:
        return error_response(e, "Failed to approve conversion")


@csrf_exempt
@require_POST
@admin_required
def reject_conversion_view(request, conversion_id):
    try:
        body = json_body(request)
        reason = body.get("reason")
        if not reason or not str(reason).strip():
            return fail("Rejection reason is required", 400)
        result = AdminPointsConversionService().reject_conversion(
            conversion_id, request.actor.pk, str(reason).strip()
        )
        return ok(result)
    except Exception as e:
        return error_response(e, "Failed to reject conversion")


@require_GET
@admin_required
def conversion_stats_view(request):
    try:
        return ok(AdminPointsConversionService().get_conversion_stats())
    except Exception as e:
        return error_response(e, "Failed to get conversion statistics")


@require_GET
@admin_required
def conversion_detail_view(request, conversion_id):
    try:
        return ok(AdminPointsConversionService().get_conversion_by_id(conversion_id))
    except Exception as e:
        return error_response(e, "Failed to get conversion")


@csrf_exempt
@require_POST
@admin_required
def update_rate_view(request):
    try:
        body = json_body(request)
        if any(body.get(key) in (None, "") for key in RATE_FIELDS):
            return fail("All rate parameters are required", 400)
        rate_data = {field: body[key] for key, field in RATE_FIELDS.items()}

        raw_effective = body.get("effectiveFrom")
        if raw_effective:
            try:
                effective_from = parse_datetime(str(raw_effective))
            except ValueError:
                effective_from = None
            if effective_from is None:
                raise BadRequest("effectiveFrom must be an ISO 8601 datetime")
            if timezone.is_naive(effective_from):
                effective_from = timezone.make_aware(effective_from, dt_timezone.utc)
            rate_data["effective_from"] = effective_from

        result = AdminPointsConversionService().update_conversion_rate(request.actor.pk, rate_data)
        return ok(result)
    except Exception as e:
        return error_response(e, "Failed to update conversion rate")


@require_GET
@admin_required
def conversion_rates_view(request):
    try:
        page, limit = page_params(request)
        return ok(AdminPointsConversionService().get_conversion_rates(page, limit))
    except Exception as e:
        return error_response(e, "Failed to get conversion rates")


@require_GET
@admin_required
def admin_current_rate_view(request):
    try:
        return ok(AdminPointsConversionService().get_current_rate())
    except Exception as e:
        return error_response(e, "Failed to get current rate")
