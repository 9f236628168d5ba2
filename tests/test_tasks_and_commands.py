from io import StringIO

from django.core.management import call_command

from pointsledger.apps.points.models import ConversionRate
from pointsledger.apps.points.tasks import reconcile_points_balances
from pointsledger.apps.points.services.conversion_service import PointsConversionService


class TestReconcile:
    def test_clean_ledger(self, make_user, active_rate):
        user = make_user(points=800)
        PointsConversionService().create_conversion(user.pk, 300)

        result = reconcile_points_balances.delay().get()

        assert result["mismatches"] == []
        # admin_user and the member above
        assert result["checked"] == 2

    def test_reports_drift(self, make_user):
        user = make_user(points=500)
        # Balance changed behind the ledger's back
        type(user).objects.filter(pk=user.pk).update(total_points=650)

        result = reconcile_points_balances()

        assert result["mismatches"] == [
            {"user_id": user.pk, "total_points": 650, "history_sum": 500, "drift": 150}
        ]


class TestSeedConversionRate:
    def test_seeds_default_rate_once(self, db):
        out = StringIO()
        call_command("seed_conversion_rate", stdout=out)
        assert "Published rate" in out.getvalue()

        rate = ConversionRate.objects.get()
        assert rate.is_active is True
        assert rate.points_per_cvc == 100
        assert rate.minimum_points == 100
        assert rate.claim_fee_eth == "0.0001"
        assert rate.created_by is None

        out = StringIO()
        call_command("seed_conversion_rate", stdout=out)
        assert "nothing to do" in out.getvalue()
        assert ConversionRate.objects.count() == 1

    def test_force_replaces_active_rate(self, active_rate):
        call_command("seed_conversion_rate", "--force", stdout=StringIO())

        assert ConversionRate.objects.count() == 2
        assert ConversionRate.objects.filter(is_active=True).count() == 1
        active_rate.refresh_from_db()
        assert active_rate.is_active is False
