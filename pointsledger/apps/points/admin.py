from django.contrib import admin
from .models import ConversionRate, PointsConversion, PointsHistory


@admin.register(ConversionRate)
class ConversionRateAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "points_per_cvc",
        "minimum_points",
        "minimum_cvc",
        "claim_fee_eth",
        "is_active",
        "effective_from",
        "created_by",
    )
    list_filter = ("is_active",)
    date_hierarchy = "effective_from"


@admin.register(PointsConversion)
class PointsConversionAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "user",
        "points_converted",
        "cvc_amount",
        "conversion_rate",
        "status",
        "approved_by",
        "claimed_at",
        "created_at",
    )
    list_filter = ("status",)
    search_fields = ("id", "user__username", "transaction_hash", "wallet_address")
    date_hierarchy = "created_at"
    # State changes go through the review endpoints so refunds are recorded
    readonly_fields = (
        "user",
        "points_converted",
        "cvc_amount",
        "conversion_rate",
        "claim_fee",
        "status",
        "transaction_hash",
        "wallet_address",
        "approved_by",
        "approved_at",
        "claimed_at",
    )

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(PointsHistory)
class PointsHistoryAdmin(admin.ModelAdmin):
    list_display = ("user", "type", "points", "related_id", "created_at")
    list_filter = ("type",)
    search_fields = ("user__username", "related_id")
    date_hierarchy = "created_at"

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
