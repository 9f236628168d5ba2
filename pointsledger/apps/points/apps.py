from django.apps import AppConfig


class PointsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "pointsledger.apps.points"
    verbose_name = "Points"
