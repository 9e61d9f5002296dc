"""
Caller identity from a signed bearer token.

Clients send ``Authorization: Bearer <jwt>``. The token is verified
against the configured secret and the caller's id and tier come from its
``sub`` and ``tier`` claims. A missing, malformed, expired or wrongly
signed token means the caller is a Guest.
"""

import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

import jwt
from flask import current_app, g, request

from sentimentiq.core.models import UserTier
from sentimentiq.core.tiers import get_tier_limits

logger = logging.getLogger("web.identity")

AUTHORIZATION_HEADER = "Authorization"
BEARER_PREFIX = "Bearer "
ADMIN_TOKEN_HEADER = "X-Admin-Token"
DEFAULT_ALGORITHMS = ("HS256",)


@dataclass(frozen=True)
class Identity:
    user_id: Optional[str]
    tier: UserTier

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)


GUEST = Identity(user_id=None, tier=UserTier.GUEST)


def bearer_token(headers: Mapping[str, str]) -> Optional[str]:
    """Token from an ``Authorization: Bearer`` header, if present."""
    auth_header = headers.get(AUTHORIZATION_HEADER) or ""
    if not auth_header.startswith(BEARER_PREFIX):
        return None
    return auth_header[len(BEARER_PREFIX):].strip() or None


def resolve_identity(
    headers: Mapping[str, str],
    secret: Optional[str],
    algorithms: Sequence[str] = DEFAULT_ALGORITHMS,
) -> Identity:
    """
    Verify the bearer token and read the caller from its claims.

    Args:
        headers: Request headers
        secret: Signing secret; with none configured every caller is a Guest
        algorithms: Accepted signing algorithms

    Returns:
        Identity: Verified caller, or GUEST
    """
    token = bearer_token(headers)
    if not token or not secret:
        return GUEST

    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=list(algorithms),
            options={"require": ["sub"]},
        )
    except jwt.ExpiredSignatureError:
        logger.info("Bearer token expired; treating caller as guest")
        return GUEST
    except jwt.InvalidTokenError as e:
        logger.warning(f"Bearer token rejected: {e}")
        return GUEST

    user_id = str(claims.get("sub") or "").strip() or None
    tier = UserTier.parse(claims.get("tier"))
    if get_tier_limits(tier).requires_auth and not user_id:
        return GUEST
    return Identity(user_id=user_id, tier=tier)


def current_identity() -> Identity:
    """Identity of the current request, verified once and kept on ``g``."""
    identity = g.get("identity")
    if identity is None:
        identity = resolve_identity(
            request.headers,
            current_app.config.get("JWT_SECRET"),
            current_app.config.get("JWT_ALGORITHMS", DEFAULT_ALGORITHMS),
        )
        g.identity = identity
    return identity
