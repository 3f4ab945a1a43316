"""Middleware module for room booking API."""

from .auth import AuthenticationError, get_current_actor, get_admin_actor, create_access_token
from .logging import RequestResponseLoggingMiddleware

__all__ = [
    "AuthenticationError",
    "get_current_actor",
    "get_admin_actor",
    "create_access_token",
    "RequestResponseLoggingMiddleware"
]
