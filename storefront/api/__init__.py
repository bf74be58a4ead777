from .client import ApiClient
from .errors import ApiError, SessionExpired

__all__ = ["ApiClient", "ApiError", "SessionExpired"]
