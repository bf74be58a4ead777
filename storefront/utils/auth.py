import logging
from functools import wraps
from urllib.parse import urlencode

from django.conf import settings
from django.contrib import messages
from django.shortcuts import redirect
from django.urls import reverse

from ..api import ApiClient, ApiError, SessionExpired
from ..api.schemas import UserOutSchema

logger = logging.getLogger(__name__)

ACCESS_KEY = "access_token"
REFRESH_KEY = "refresh_token"
USER_KEY = "user"


class SessionTokens:
    """Access/refresh token pair kept in the visitor's session."""

    def __init__(self, session):
        self.session = session

    @property
    def access(self):
        return self.session.get(ACCESS_KEY)

    @property
    def refresh(self):
        return self.session.get(REFRESH_KEY)

    def set(self, access, refresh=None):
        self.session[ACCESS_KEY] = access
        if refresh:
            self.session[REFRESH_KEY] = refresh
        self.session.modified = True

    def clear(self):
        for key in (ACCESS_KEY, REFRESH_KEY, USER_KEY):
            self.session.pop(key, None)
        self.session.modified = True


def api_client(request):
    """ApiClient carrying the visitor's tokens; use it as a context manager."""
    tokens = SessionTokens(request.session)
    return ApiClient(
        settings.STOREFRONT_API_URL,
        tokens=tokens,
        on_logout=lambda: _forget_user(request),
        timeout=settings.STOREFRONT_API_TIMEOUT,
        transport=getattr(settings, "STOREFRONT_API_TRANSPORT", None),
    )


def _forget_user(request):
    SessionTokens(request.session).clear()
    request._cached_shop_user = None


def remember_user(request, user):
    request.session[USER_KEY] = user.model_dump(mode="json")
    request.session.modified = True
    request._cached_shop_user = user


def get_shop_user(request):
    if hasattr(request, "_cached_shop_user"):
        return request._cached_shop_user

    user = None
    if request.session.get(ACCESS_KEY):
        cached = request.session.get(USER_KEY)
        if cached:
            user = UserOutSchema.model_validate(cached)
        else:
            try:
                with api_client(request) as api:
                    user = api.get_me()
            except (ApiError, SessionExpired) as exc:
                logger.info("Stored session no longer valid: %s", exc)
                _forget_user(request)
            else:
                remember_user(request, user)
    request._cached_shop_user = user
    return user


def login(request, access, refresh, user=None):
    request.session.cycle_key()
    SessionTokens(request.session).set(access, refresh)
    if user is None:
        try:
            with api_client(request) as api:
                user = api.get_me()
        except (ApiError, SessionExpired):
            # the middleware retries on the next page load
            logger.exception("Could not load profile after login")
    if user is not None:
        remember_user(request, user)
    messages.success(request, "Welcome back!")
    return user


def logout(request):
    _forget_user(request)
    messages.info(request, "Logged out successfully")


def login_url(next_url=None):
    url = reverse("auth")
    if next_url:
        url += "?" + urlencode({"next": next_url})
    return url


def login_required(message="Please sign in to continue"):
    def decorator(view):
        @wraps(view)
        def wrapper(request, *args, **kwargs):
            if not get_shop_user(request):
                messages.error(request, message)
                return redirect(login_url(request.get_full_path()))
            return view(request, *args, **kwargs)
        return wrapper
    return decorator
