from django.contrib import admin
from .models import CommunityUser


@admin.register(CommunityUser)
class CommunityUserAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "username",
        "email",
        "role",
        "total_points",
        "is_active",
        "created_at",
    )
    search_fields = ("username", "email")
    list_filter = ("role", "is_active")
    date_hierarchy = "created_at"
    # Balance moves only through the conversion ledger
    readonly_fields = ("total_points",)
