"""
Request identity for the JSON API.

Authentication happens upstream (gateway / session layer); by the time a
request reaches us it carries the authenticated user's id in X-User-Id.
This middleware only resolves that id to a CommunityUser.
"""
from functools import wraps

from django.http import JsonResponse

from pointsledger.apps.users.services.balance import UserBalanceRepository

ACTOR_HEADER = "HTTP_X_USER_ID"


class RequestActorMiddleware:
    def __init__(self, get_response):
        self.get_response = get_response
        self.users = UserBalanceRepository()

    def __call__(self, request):
        request.actor = None
        raw_id = (request.META.get(ACTOR_HEADER) or "").strip()
        if raw_id:
            user = self.users.find_by_id(raw_id)
            if user and user.is_active:
                request.actor = user
        return self.get_response(request)


def actor_required(view):
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        if getattr(request, "actor", None) is None:
            return JsonResponse(
                {"success": False, "error": "User not authenticated"}, status=401
            )
        return view(request, *args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        actor = getattr(request, "actor", None)
        if actor is None or not actor.is_admin:
            return JsonResponse(
                {"success": False, "error": "Admin not authenticated"}, status=401
            )
        return view(request, *args, **kwargs)

    return wrapper
