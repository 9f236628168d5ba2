"""
Shared fixtures for the points ledger tests.
"""
import itertools

import pytest
from django.utils import timezone

from pointsledger.apps.points.models import ConversionRate, PointsHistory
from pointsledger.apps.users.models import CommunityUser

_seq = itertools.count(1)


def grant_points(user, points, type="bonus"):
    """Credit points the way the rest of the platform does: balance + history."""
    user.total_points += points
    user.save(update_fields=["total_points"])
    PointsHistory.objects.create(
        user=user, type=type, points=points, description=f"Test grant of {points}"
    )
    return user


@pytest.fixture
def make_user(db):
    def _make(points=0, role="user", **kwargs):
        n = next(_seq)
        user = CommunityUser.objects.create(
            username=kwargs.pop("username", f"user{n}"),
            email=kwargs.pop("email", f"user{n}@example.com"),
            role=role,
            **kwargs,
        )
        if points:
            grant_points(user, points)
        return user

    return _make


@pytest.fixture
def member(make_user):
    return make_user(points=1000)


@pytest.fixture
def admin_user(make_user):
    return make_user(role="admin", username="admin")


@pytest.fixture
def active_rate(db, admin_user):
    return ConversionRate.objects.create(
        points_per_cvc=100,
        minimum_points=100,
        minimum_cvc="1",
        claim_fee_eth="0.0001",
        is_active=True,
        effective_from=timezone.now(),
        created_by=admin_user,
    )


@pytest.fixture
def as_user(client):
    """Request helper that sends the X-User-Id identity header."""

    def _request(user, method, path, data=None, **extra):
        headers = {"HTTP_X_USER_ID": str(user.pk)} if user is not None else {}
        headers.update(extra)
        call = getattr(client, method)
        if method == "post":
            return call(path, data=data or {}, content_type="application/json", **headers)
        return call(path, data=data or {}, **headers)

    return _request


@pytest.fixture
def grant(db):
    return grant_points
