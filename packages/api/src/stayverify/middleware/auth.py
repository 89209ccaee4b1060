# This project was developed with assistance from AI tools.
"""
Keycloak bearer-token authentication for partners and operators.

Tokens are RS256 JWTs checked against the realm's JWKS. The realm role
decides what a caller may reach: partners their own subjects, operators
and admins the review console.

Set AUTH_DISABLED=true to bypass validation (tests / local dev without Keycloak).
"""

import logging
import time
from typing import Annotated

import httpx
import jwt
from db.enums import UserRole
from fastapi import Depends, HTTPException, Request, status

from ..core.auth import build_data_scope
from ..core.config import settings
from ..schemas.auth import DataScope, TokenPayload, UserContext

logger = logging.getLogger(__name__)

# Most privileged first; a token carrying several realm roles gets the first match.
_ROLE_PRECEDENCE = (UserRole.ADMIN, UserRole.OPERATOR, UserRole.PARTNER, UserRole.GUEST)

# ---------------------------------------------------------------------------
# JWKS cache
# ---------------------------------------------------------------------------

_jwks_data: dict | None = None
_jwks_fetched_at: float = 0


def _realm_url() -> str:
    return f"{settings.KEYCLOAK_URL}/realms/{settings.KEYCLOAK_REALM}"


def _get_jwks(force_refresh: bool = False) -> dict:
    """Realm JWKS, cached for JWKS_CACHE_TTL seconds."""
    global _jwks_data, _jwks_fetched_at  # noqa: PLW0603

    now = time.time()
    if _jwks_data is None or force_refresh or (now - _jwks_fetched_at) > settings.JWKS_CACHE_TTL:
        response = httpx.get(f"{_realm_url()}/protocol/openid-connect/certs", timeout=5)
        response.raise_for_status()
        _jwks_data = response.json()
        _jwks_fetched_at = now
    return _jwks_data


def _get_signing_key(token: str) -> jwt.PyJWK:
    """Key matching the token's ``kid``; one forced refresh covers key rotation."""
    kid = jwt.get_unverified_header(token).get("kid")
    try:
        for force_refresh in (False, True):
            for key in jwt.PyJWKSet.from_dict(_get_jwks(force_refresh)).keys:
                if key.key_id == kid:
                    return key
    except httpx.HTTPError as exc:
        logger.error("Failed to fetch JWKS from Keycloak: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service unavailable",
        ) from exc
    raise jwt.InvalidTokenError(f"No signing key for kid={kid}")


# ---------------------------------------------------------------------------
# Token -> UserContext
# ---------------------------------------------------------------------------


def _extract_token(request: Request) -> str | None:
    auth = request.headers.get("Authorization")
    if auth and auth.startswith("Bearer "):
        return auth[7:]
    return None


def _decode_token(token: str) -> TokenPayload:
    payload = jwt.decode(
        token,
        _get_signing_key(token).key,
        algorithms=["RS256"],
        issuer=_realm_url(),
        options={"verify_aud": False},
    )
    return TokenPayload(**payload)


def _resolve_role(token_payload: TokenPayload) -> UserRole:
    """Most privileged StayVerify role in ``realm_access.roles``; Keycloak built-ins are ignored."""
    granted = set(token_payload.realm_access.get("roles", []))
    for role in _ROLE_PRECEDENCE:
        if role.value in granted:
            return role
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="No recognized role assigned",
    )


_DISABLED_USER = UserContext(
    user_id="dev-user",
    role=UserRole.ADMIN,
    email="dev@stayverify.local",
    name="Dev User",
    data_scope=DataScope(all_subjects=True),
)


def user_from_token(token: str) -> UserContext:
    """Decode a raw JWT into a UserContext.

    Raises ``jwt.InvalidTokenError`` (including expiry) for bad tokens and
    HTTPException 403 when no known role is present. The WebSocket route
    maps these onto close codes instead of HTTP statuses.
    """
    payload = _decode_token(token)
    role = _resolve_role(payload)
    return UserContext(
        user_id=payload.sub,
        role=role,
        email=payload.email,
        name=payload.name or payload.preferred_username,
        data_scope=build_data_scope(role, payload.sub),
    )


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(request: Request) -> UserContext:
    """Validated caller, or the dev admin when AUTH_DISABLED=true."""
    if settings.AUTH_DISABLED:
        return _DISABLED_USER

    token = _extract_token(request)
    if not token:
        raise _unauthorized("Missing authentication token")
    try:
        return user_from_token(token)
    except jwt.ExpiredSignatureError as exc:
        raise _unauthorized("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise _unauthorized("Invalid token") from exc


CurrentUser = Annotated[UserContext, Depends(get_current_user)]


def require_roles(*allowed_roles: UserRole):
    """Dependency factory restricting a route to ``allowed_roles``.

    Usage:
        @router.get("/queue", dependencies=[Depends(require_roles(*UserRole.operator_roles()))])
    """

    async def _check(user: CurrentUser) -> UserContext:
        if user.role not in allowed_roles:
            logger.warning(
                "RBAC denied: user=%s role=%s attempted route requiring %s",
                user.user_id,
                user.role.value,
                sorted(r.value for r in allowed_roles),
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return _check


require_partner = require_roles(UserRole.PARTNER)
