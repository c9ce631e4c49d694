"""
Document AI Assistant — Caller Identity
========================================

What:  Verifies the bearer token issued by the hosted auth backend and turns
       it into an OwnerContext passed explicitly into every service call.
Why:   Owner scoping is the only isolation mechanism between users' data.
       Carrying a typed context object (instead of a loose user id string)
       keeps every query's owner filter visible at the call site.

Token contract (HS256 JWT):
    sub  → user id (UUID)
    aud  → settings.jwt_audience ("authenticated")
    exp  → required
    email (optional) → kept for display and logging
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from docassist.config import settings
from docassist.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class OwnerContext:
    """The authenticated caller; every service method takes one."""

    user_id: uuid.UUID
    email: Optional[str] = None

    def require_same_user(self, claimed_user_id: Optional[str]) -> None:
        """
        Rejects a request body that names a different user than the token.

        An absent claim is accepted; the token is authoritative.
        """
        if claimed_user_id is None:
            return
        if str(claimed_user_id) != str(self.user_id):
            raise AuthenticationError(
                message="User ID mismatch",
                context={"claimed": str(claimed_user_id)},
            )


class TokenVerifier:
    """Decodes and checks backend-issued access tokens."""

    def __init__(
        self,
        secret: Optional[str] = None,
        audience: Optional[str] = None,
        algorithm: Optional[str] = None,
    ):
        self.secret = secret if secret is not None else settings.jwt_secret
        self.audience = audience if audience is not None else settings.jwt_audience
        self.algorithm = algorithm or settings.jwt_algorithm

    def verify(self, token: str) -> OwnerContext:
        if not self.secret:
            logger.error("JWT_SECRET is not configured; rejecting request")
            raise AuthenticationError(message="Authentication is not configured")

        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                audience=self.audience or None,
                options={"require": ["exp", "sub"], "verify_aud": bool(self.audience)},
            )
        except jwt.ExpiredSignatureError as exc:
            raise AuthenticationError(message="Token expired") from exc
        except jwt.InvalidTokenError as exc:
            logger.info("Rejected token: %s", type(exc).__name__)
            raise AuthenticationError(message="Invalid authentication credentials") from exc

        try:
            user_id = uuid.UUID(str(payload["sub"]))
        except ValueError as exc:
            raise AuthenticationError(message="Invalid authentication credentials") from exc

        return OwnerContext(user_id=user_id, email=payload.get("email"))


token_verifier = TokenVerifier()


async def get_owner(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> OwnerContext:
    """
    FastAPI dependency: verified caller or 401.

    Runs before the handler body, so rejected requests have no side effects.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError(message="Missing bearer token")

    owner = token_verifier.verify(credentials.credentials)
    # Read back by the access-log middleware
    request.state.owner_id = str(owner.user_id)
    return owner
