from django.urls import path
from .views import (
    claim_cvc_view,
    create_conversion_view,
    current_rate_view,
    points_history_view,
    user_conversions_view,
    validate_conversion_view,
)

urlpatterns = [
    path("points-conversion/create", create_conversion_view, name="points-conversion-create"),
    path("points-conversion/history", user_conversions_view, name="points-conversion-history"),
    path("points-conversion/claim", claim_cvc_view, name="points-conversion-claim"),
    path("points-conversion/rate", current_rate_view, name="points-conversion-rate"),
    path("points-conversion/validate", validate_conversion_view, name="points-conversion-validate"),
    path("points/history", points_history_view, name="points-history"),
]
