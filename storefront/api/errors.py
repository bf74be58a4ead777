class ApiError(Exception):
    """Raised for any backend call that did not return a 2xx response.

    Transport failures (connection refused, timeouts) are reported with
    ``status == 0`` so callers only ever handle this one type.
    """

    def __init__(self, method, url, status, status_text, body=None):
        self.method = method
        self.url = url
        self.status = status
        self.status_text = status_text
        self.body = body
        super().__init__(f"{method} {url} -> {status} {status_text}")

    @property
    def message(self):
        if isinstance(self.body, dict):
            for key in ("message", "detail"):
                value = self.body.get(key)
                if isinstance(value, str) and value:
                    return value
        return self.status_text

    @property
    def is_not_found(self):
        return self.status == 404


class SessionExpired(Exception):
    """The access token was rejected and could not be refreshed.

    Not an ``ApiError``: views do not catch it, ``AuthMiddleware`` does.
    """

    def __init__(self, method, url, reason=""):
        self.method = method
        self.url = url
        self.reason = reason
        super().__init__(f"{method} {url}: session expired ({reason})")
