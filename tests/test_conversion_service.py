from datetime import timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest
from django.utils import timezone

from pointsledger.apps.points.config import ConversionConfig
from pointsledger.apps.points.exceptions import BadRequest, InternalError, NotFound, Unauthorized
from pointsledger.apps.points.models import ConversionRate, PointsConversion, PointsHistory
from pointsledger.apps.points.services.conversion_service import PointsConversionService

WALLET = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
TX_HASH = "0x" + "de" * 32


@pytest.fixture
def service():
    return PointsConversionService()


def _approve(conversion):
    PointsConversion.objects.filter(pk=conversion.pk).update(status="approved")


class TestCreateConversion:
    def test_debits_balance_and_writes_record_and_history(self, service, member, active_rate):
        result = service.create_conversion(member.pk, 500)

        assert result["success"] is True
        assert result["cvcAmount"] == 5
        assert result["message"] == (
            "Successfully converted 500 points to 5 CVC. Awaiting approval."
        )

        conversion = PointsConversion.objects.get(pk=result["conversionId"])
        assert conversion.status == "pending"
        assert conversion.points_converted == 500
        assert conversion.cvc_amount == Decimal("5")
        assert conversion.conversion_rate == 100
        assert conversion.claim_fee == Decimal("0.0001")

        member.refresh_from_db()
        assert member.total_points == 500

        entry = PointsHistory.objects.get(user=member, type="conversion_deduction")
        assert entry.points == -500
        assert entry.related_id == str(conversion.pk)

    def test_remainder_is_floored(self, service, member, active_rate):
        result = service.create_conversion(member.pk, 250)
        assert result["cvcAmount"] == 2
        member.refresh_from_db()
        assert member.total_points == 750

    def test_no_rate_is_not_found(self, service, member):
        with pytest.raises(NotFound) as exc:
            service.create_conversion(member.pk, 500)
        assert exc.value.status_code == 404

    def test_future_rate_is_not_current(self, service, member, admin_user):
        ConversionRate.objects.create(
            points_per_cvc=100,
            minimum_points=100,
            minimum_cvc="1",
            claim_fee_eth="0.0001",
            is_active=True,
            effective_from=timezone.now() + timedelta(days=1),
            created_by=admin_user,
        )
        with pytest.raises(NotFound):
            service.create_conversion(member.pk, 500)

    def test_unknown_user(self, service, active_rate):
        with pytest.raises(NotFound) as exc:
            service.create_conversion(999999, 500)
        assert exc.value.message == "User not found"

    def test_below_minimum_points(self, service, member, active_rate):
        with pytest.raises(BadRequest) as exc:
            service.create_conversion(member.pk, 50)
        assert exc.value.message == "Minimum 100 points required for conversion"
        member.refresh_from_db()
        assert member.total_points == 1000
        assert not PointsConversion.objects.exists()

    def test_rule_validation_runs_before_balance_check(self, service, make_user, active_rate):
        poor = make_user(points=20)
        with pytest.raises(BadRequest) as exc:
            service.create_conversion(poor.pk, 50)
        assert exc.value.message == "Minimum 100 points required for conversion"

    def test_insufficient_points(self, service, make_user, active_rate):
        user = make_user(points=300)
        with pytest.raises(BadRequest) as exc:
            service.create_conversion(user.pk, 500)
        assert exc.value.message == "Insufficient points"
        assert not PointsConversion.objects.exists()

    @pytest.mark.parametrize("points", [0, -100, 1.5, "500", True, None])
    def test_points_must_be_positive_int(self, service, member, active_rate, points):
        with pytest.raises(BadRequest):
            service.create_conversion(member.pk, points)

    def test_failed_debit_rolls_back_record(self, member, active_rate):
        class RefusingBalance:
            def find_by_id(self, user_id):
                return member

            def debit(self, user_id, points):
                from pointsledger.apps.users.services.balance import InsufficientPoints

                raise InsufficientPoints("spent elsewhere")

        service = PointsConversionService(users=RefusingBalance())
        with pytest.raises(BadRequest) as exc:
            service.create_conversion(member.pk, 500)
        assert exc.value.message == "Insufficient points"
        assert not PointsConversion.objects.exists()
        assert not PointsHistory.objects.filter(type="conversion_deduction").exists()

    def test_unexpected_storage_error_is_hidden(self, member, active_rate):
        class BrokenHistory:
            def create_entry(self, **kwargs):
                raise RuntimeError("disk full on db-3")

        service = PointsConversionService(history=BrokenHistory())
        with pytest.raises(InternalError) as exc:
            service.create_conversion(member.pk, 500)
        assert exc.value.message == "Failed to create conversion"
        assert "db-3" not in exc.value.message
        # Whole sequence rolled back
        member.refresh_from_db()
        assert member.total_points == 1000
        assert not PointsConversion.objects.exists()


class TestRateFreeze:
    def test_rate_change_does_not_touch_existing_conversion(self, service, member, active_rate, admin_user):
        result = service.create_conversion(member.pk, 500)

        ConversionRate.objects.update(is_active=False)
        ConversionRate.objects.create(
            points_per_cvc=50,
            minimum_points=10,
            minimum_cvc="1",
            claim_fee_eth="0.01",
            is_active=True,
            effective_from=timezone.now(),
            created_by=admin_user,
        )

        conversion = PointsConversion.objects.get(pk=result["conversionId"])
        assert conversion.cvc_amount == Decimal("5")
        assert conversion.conversion_rate == 100
        assert conversion.claim_fee == Decimal("0.0001")


class TestClaim:
    def test_claim_approved_conversion(self, service, member, active_rate):
        result = service.create_conversion(member.pk, 500)
        conversion = PointsConversion.objects.get(pk=result["conversionId"])
        _approve(conversion)

        claimed = service.claim_cvc(conversion.pk, member.pk, WALLET, TX_HASH)

        assert claimed == {"success": True, "message": "Successfully claimed 5 CVC tokens"}
        conversion.refresh_from_db()
        assert conversion.status == "claimed"
        assert conversion.wallet_address == WALLET
        assert conversion.transaction_hash == TX_HASH
        assert conversion.claimed_at is not None

    @pytest.mark.parametrize("status", ["pending", "rejected", "claimed"])
    def test_claim_requires_approved(self, service, member, active_rate, status):
        result = service.create_conversion(member.pk, 500)
        PointsConversion.objects.filter(pk=result["conversionId"]).update(status=status)
        with pytest.raises(BadRequest) as exc:
            service.claim_cvc(result["conversionId"], member.pk, WALLET, TX_HASH)
        assert exc.value.message == "Conversion not approved for claiming"

    def test_claim_someone_elses_conversion(self, service, member, make_user, active_rate):
        other = make_user(points=100)
        result = service.create_conversion(member.pk, 500)
        _approve(PointsConversion.objects.get(pk=result["conversionId"]))

        with pytest.raises(Unauthorized) as exc:
            service.claim_cvc(result["conversionId"], other.pk, WALLET, TX_HASH)
        assert exc.value.status_code == 401
        assert PointsConversion.objects.get(pk=result["conversionId"]).status == "approved"

    def test_claim_unknown_conversion(self, service, member):
        with pytest.raises(NotFound):
            service.claim_cvc("not-a-uuid", member.pk, WALLET, TX_HASH)


class StubConversions:
    """Returns one fixed record; records the status update it receives."""

    def __init__(self, record):
        self.record = record
        self.updated = None

    def find_by_id(self, conversion_id):
        return self.record

    def update_status(self, conversion_id, status, **fields):
        self.updated = (status, fields)
        return self.record


STUB_CONFIG = ConversionConfig("0xcompany", "0xcvc", "0xpool", "testnet")


class TestOwnershipNormalization:
    @pytest.mark.parametrize("owner", [7, "7", SimpleNamespace(pk=7)])
    @pytest.mark.parametrize("requester", [7, "7", SimpleNamespace(pk=7)])
    def test_owner_matches_across_representations(self, owner, requester):
        record = SimpleNamespace(pk="c-1", user=owner, status="approved", cvc_amount=Decimal("3"))
        conversions = StubConversions(record)
        service = PointsConversionService(conversions=conversions, config=STUB_CONFIG)

        result = service.claim_cvc("c-1", requester, WALLET, TX_HASH)

        assert result["success"] is True
        assert conversions.updated[0] == "claimed"
        assert conversions.updated[1]["expected_status"] == "approved"

    @pytest.mark.parametrize("owner", [7, SimpleNamespace(pk=7)])
    def test_mismatch_is_unauthorized_for_both_representations(self, owner):
        record = SimpleNamespace(pk="c-1", user=owner, status="approved", cvc_amount=Decimal("3"))
        conversions = StubConversions(record)
        service = PointsConversionService(conversions=conversions, config=STUB_CONFIG)

        with pytest.raises(Unauthorized):
            service.claim_cvc("c-1", 8, WALLET, TX_HASH)
        assert conversions.updated is None


class TestListing:
    def test_user_conversions_paginated_with_stats(self, service, make_user, active_rate):
        user = make_user(points=5000)
        ids = [service.create_conversion(user.pk, 200)["conversionId"] for _ in range(3)]
        PointsConversion.objects.filter(pk=ids[0]).update(status="claimed")

        page = service.get_user_conversions(user.pk, page=1, limit=2)

        assert page["total"] == 3
        assert page["totalPages"] == 2
        assert len(page["conversions"]) == 2
        assert page["stats"] == {
            "totalPointsConverted": 600,
            "totalCVCClaimed": 2,
            "pendingConversions": 2,
        }
        assert page["conversions"][0]["user"] == {"id": str(user.pk)}

        second = service.get_user_conversions(user.pk, page=2, limit=2)
        assert len(second["conversions"]) == 1

    def test_user_conversions_only_own(self, service, member, make_user, active_rate):
        other = make_user(points=1000)
        service.create_conversion(other.pk, 500)
        page = service.get_user_conversions(member.pk)
        assert page["total"] == 0
        assert page["totalPages"] == 0
        assert page["stats"]["pendingConversions"] == 0

    def test_bad_pagination(self, service, member):
        with pytest.raises(BadRequest):
            service.get_user_conversions(member.pk, page=0, limit=10)

    def test_page_beyond_offset_range(self, service, member):
        with pytest.raises(BadRequest) as exc:
            service.get_user_conversions(member.pk, page=10**20, limit=10)
        assert exc.value.message == "Page is out of range"


class TestRateAndDryRun:
    def test_current_rate_merges_config(self, active_rate):
        service = PointsConversionService(config=STUB_CONFIG)
        rate = service.get_current_conversion_rate()
        assert rate == {
            "pointsPerCVC": 100,
            "minimumPoints": 100,
            "minimumCVC": 1,
            "claimFeeETH": "0.0001",
            "isActive": True,
            "companyWallet": "0xcompany",
            "cvcContractAddress": "0xcvc",
            "liquidityContractAddress": "0xpool",
            "network": "testnet",
        }

    def test_current_rate_missing(self, service, db):
        with pytest.raises(NotFound):
            service.get_current_conversion_rate()

    def test_dry_run_valid(self, service, member, active_rate):
        assert service.validate_conversion(member.pk, 500) == {
            "isValid": True,
            "userPoints": 1000,
            "cvcAmount": 5,
        }
        # Nothing written
        assert not PointsConversion.objects.exists()

    def test_dry_run_reports_problems(self, service, member, active_rate):
        assert service.validate_conversion(member.pk, 5000) == {
            "isValid": False,
            "error": "Insufficient points",
            "userPoints": 1000,
        }
        assert service.validate_conversion(member.pk, 50)["error"] == (
            "Minimum 100 points required for conversion"
        )
        assert service.validate_conversion(999999, 500) == {
            "isValid": False,
            "error": "User not found",
        }

    def test_dry_run_without_rate(self, service, member):
        assert service.validate_conversion(member.pk, 500) == {
            "isValid": False,
            "error": "No conversion rate available",
        }
