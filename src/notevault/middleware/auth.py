"""Authentication middleware."""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..core.identity import IdentityProvider, UserIdentity
from ..security import get_identity_from_token


class JWTBearer(HTTPBearer):
    """JWT Bearer token authentication.

    Never rejects the request itself: a missing, malformed or expired
    token just means "no identity", and the services decide whether the
    operation needs one.
    """

    def __init__(self):
        super().__init__(auto_error=False)

    async def __call__(self, request: Request) -> Optional[UserIdentity]:
        credentials: Optional[HTTPAuthorizationCredentials] = await super().__call__(request)
        if not credentials or credentials.scheme.lower() != "bearer":
            return None
        return get_identity_from_token(credentials.credentials)


# Dependency for getting the caller's identity (or None) from JWT
async def get_current_identity(
    identity: Optional[UserIdentity] = Depends(JWTBearer()),
) -> Optional[UserIdentity]:
    return identity


async def get_identity_provider(
    identity: Optional[UserIdentity] = Depends(get_current_identity),
) -> IdentityProvider:
    """Per-request identity provider handed to the services."""
    return IdentityProvider(identity)
