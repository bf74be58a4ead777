"""
Bearer-token authentication with transparent refresh.

The backend issues short-lived access tokens and a longer-lived refresh
token. Every request carries the current access token; a 401 triggers one
refresh and one retry of the original request. Refreshes are serialised so
concurrent 401s on the same client share a single refresh call.
"""
import logging
import threading

import httpx

from .errors import SessionExpired

logger = logging.getLogger(__name__)

TOKEN_PATH_PREFIX = "/api/token/"
REFRESH_PATH = "/api/token/refresh"


class MemoryTokens:
    """Token holder for clients that live outside a browser session."""

    def __init__(self, access=None, refresh=None):
        self.access = access
        self.refresh = refresh

    def set(self, access, refresh=None):
        self.access = access
        if refresh:
            self.refresh = refresh

    def clear(self):
        self.access = None
        self.refresh = None


class TokenRefreshAuth(httpx.Auth):
    requires_response_body = True

    def __init__(self, tokens, refresh_url, on_logout=None):
        self.tokens = tokens
        self.refresh_url = refresh_url
        self.on_logout = on_logout
        self._lock = threading.Lock()

    def auth_flow(self, request):
        sent_token = self.tokens.access
        self._authorize(request, sent_token)
        response = yield request

        # token endpoints answer 401 for bad credentials, never retry them
        if response.status_code != 401 or TOKEN_PATH_PREFIX in request.url.path:
            return

        with self._lock:
            current = self.tokens.access
            if current and current != sent_token:
                # another request refreshed while this one was in flight
                token = current
            else:
                refresh = self.tokens.refresh
                if not refresh:
                    self._expire(request, "No refresh token")
                refresh_response = yield httpx.Request(
                    "POST", self.refresh_url, json={"refresh": refresh}
                )
                if refresh_response.is_error:
                    self._expire(request, refresh_response.reason_phrase)
                try:
                    payload = refresh_response.json()
                except ValueError:
                    payload = {}
                token = payload.get("access") if isinstance(payload, dict) else None
                if not token:
                    self._expire(request, "Refresh response without access token")
                self.tokens.set(token, payload.get("refresh"))
                logger.info("Access token refreshed after 401 on %s", request.url.path)

        self._authorize(request, token)
        yield request

    def _authorize(self, request, token):
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        else:
            request.headers.pop("Authorization", None)

    def _expire(self, request, reason):
        logger.warning("Session expired (%s), logging out", reason)
        self.tokens.clear()
        if self.on_logout is not None:
            self.on_logout()
        raise SessionExpired(request.method, str(request.url), reason)
