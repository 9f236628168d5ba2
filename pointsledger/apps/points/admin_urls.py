from django.urls import path
from .admin_views import (
    admin_current_rate_view,
    all_conversions_view,
    approve_conversion_view,
    conversion_detail_view,
    conversion_rates_view,
    conversion_stats_view,
    reject_conversion_view,
    update_rate_view,
)

# Fixed paths come before <conversion_id> so "stats"/"rates" are not read as ids
urlpatterns = [
    path("points-conversion/all", all_conversions_view, name="admin-conversions-all"),
    path("points-conversion/stats", conversion_stats_view, name="admin-conversions-stats"),
    path("points-conversion/rate/update", update_rate_view, name="admin-rate-update"),
    path("points-conversion/rates", conversion_rates_view, name="admin-rates"),
    path("points-conversion/rate/current", admin_current_rate_view, name="admin-rate-current"),
    path(
        "points-conversion/<str:conversion_id>/approve",
        approve_conversion_view,
        name="admin-conversion-approve",
    ),
    path(
        "points-conversion/<str:conversion_id>/reject",
        reject_conversion_view,
        name="admin-conversion-reject",
    ),
    path(
        "points-conversion/<str:conversion_id>",
        conversion_detail_view,
        name="admin-conversion-detail",
    ),
]
