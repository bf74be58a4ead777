import logging

from django.contrib import messages
from django.shortcuts import redirect
from django.utils.functional import SimpleLazyObject

from .api import SessionExpired
from .utils.auth import get_shop_user, login_url

logger = logging.getLogger(__name__)


class AuthMiddleware:
    """Attach ``request.shop_user`` and send expired sessions to the sign-in page."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.shop_user = SimpleLazyObject(lambda: get_shop_user(request))
        return self.get_response(request)

    def process_exception(self, request, exception):
        if not isinstance(exception, SessionExpired):
            return None
        logger.warning("Session expired during %s %s", request.method, request.path)
        messages.error(request, "Your session has expired. Please sign in again.")
        return redirect(login_url())
