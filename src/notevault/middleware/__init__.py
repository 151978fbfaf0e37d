"""Middleware for authentication and other cross-cutting concerns."""

from .auth import JWTBearer, get_current_identity, get_identity_provider

__all__ = ["JWTBearer", "get_current_identity", "get_identity_provider"]
