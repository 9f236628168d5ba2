# pointsledger/apps/points/models.py
import uuid
from django.db import models
from pointsledger.apps.users.models import CommunityUser


class ConversionRate(models.Model):
    """Versioned points -> CVC policy. Only one row is active at a time."""

    points_per_cvc = models.PositiveIntegerField()
    minimum_points = models.PositiveIntegerField()
    minimum_cvc = models.DecimalField(max_digits=24, decimal_places=8)
    claim_fee_eth = models.CharField(max_length=32)  # decimal string, charged off-ledger
    is_active = models.BooleanField(default=True, db_index=True)
    effective_from = models.DateTimeField(db_index=True)
    created_by = models.ForeignKey(
        CommunityUser,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="conversion_rates",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-effective_from"]
        indexes = [models.Index(fields=["is_active", "effective_from"])]

    def __str__(self):
        return f"{self.points_per_cvc} pts/CVC ({'active' if self.is_active else 'inactive'})"


class PointsConversion(models.Model):
    """One user's request to turn points into CVC (ledger record)."""

    STATUS = [
        ("pending", "Pending"),
        ("approved", "Approved"),
        ("rejected", "Rejected"),
        ("claimed", "Claimed"),
    ]
    # Allowed state moves; anything else is rejected by the services
    TRANSITIONS = {
        "pending": {"approved", "rejected"},
        "approved": {"claimed"},
        "rejected": set(),
        "claimed": set(),
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    # Ledger rows are never deleted, so neither is their owner
    user = models.ForeignKey(
        CommunityUser, on_delete=models.PROTECT, related_name="points_conversions"
    )
    # Frozen at creation
    points_converted = models.PositiveIntegerField()
    cvc_amount = models.DecimalField(max_digits=24, decimal_places=8)
    conversion_rate = models.PositiveIntegerField()  # points_per_cvc snapshot
    claim_fee = models.DecimalField(max_digits=30, decimal_places=18)

    status = models.CharField(
        max_length=16, choices=STATUS, default="pending", db_index=True
    )
    # Set on claim; the hash is recorded as supplied, not verified on-chain
    transaction_hash = models.CharField(max_length=128, null=True, blank=True, db_index=True)
    wallet_address = models.CharField(max_length=64, null=True, blank=True)

    admin_note = models.TextField(blank=True, default="")
    approved_by = models.ForeignKey(
        CommunityUser,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reviewed_conversions",
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    claimed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["user", "status", "created_at"])]

    def can_transition_to(self, status: str) -> bool:
        return status in self.TRANSITIONS.get(self.status, set())


class PointsHistory(models.Model):
    """Append-only log of balance deltas. Sum per user == user.total_points."""

    TYPE = [
        ("daily_checkin", "Daily check-in"),
        ("referral_bonus", "Referral bonus"),
        ("quest_reward", "Quest reward"),
        ("bonus", "Bonus"),
        ("deduction", "Deduction"),
        ("conversion_deduction", "Conversion deduction"),
        ("conversion_refund", "Conversion refund"),
    ]
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        CommunityUser, on_delete=models.PROTECT, related_name="points_history"
    )
    type = models.CharField(max_length=32, choices=TYPE, db_index=True)
    points = models.IntegerField()  # signed delta
    description = models.CharField(max_length=255, blank=True, default="")
    related_id = models.CharField(max_length=64, null=True, blank=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "points history"
        indexes = [models.Index(fields=["user", "type", "created_at"])]
