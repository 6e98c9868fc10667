from functools import wraps

from django.http import JsonResponse

from .models import Profile
from .roles import can_access


def get_profile(user):
    """Profile of an authenticated user, or None (e.g. a superuser created from the shell)."""
    if not user.is_authenticated:
        return None
    try:
        return user.profile
    except Profile.DoesNotExist:
        return None


def json_login_required(view_func):
    """
    Like ``login_required`` but answers anonymous callers with 401 JSON
    instead of redirecting them to a login page.
    """
    @wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return JsonResponse({'error': 'Authentication required'}, status=401)
        return view_func(request, *args, **kwargs)
    return _wrapped


def view_required(view_name):
    """
    Decorator that checks the logged-in user's profile is allowed to open
    ``view_name`` according to the capability table in ``roles``.
    The profile is handed to the view as an explicit ``profile`` argument.
    Anonymous callers get 401, callers without a permitted profile 403.
    """
    def decorator(view_func):
        @wraps(view_func)
        def _wrapped(request, *args, **kwargs):
            if not request.user.is_authenticated:
                return JsonResponse({'error': 'Authentication required'}, status=401)
            profile = get_profile(request.user)
            if profile is None:
                return JsonResponse({'error': 'No profile for this account'}, status=403)
            if not can_access(profile.role, view_name):
                return JsonResponse({'error': 'Unauthorized'}, status=403)
            return view_func(request, *args, profile=profile, **kwargs)
        return _wrapped
    return decorator
