import logging
from typing import Iterable, Optional

from fastapi import Depends, Header, Request

from database import get_db
from models.token import Claims
from models.user import Role
from utils.errors import Forbidden, Unauthenticated
from utils.guards import parse_object_id
from utils.jwt import TokenCodec, TokenError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise Unauthenticated("Authorization token is required")

    token = authorization
    if token.startswith(BEARER_PREFIX):
        token = token[len(BEARER_PREFIX):]

    token = token.strip()
    if not token:
        raise Unauthenticated("Invalid token format")
    return token


def authorize(
    authorization: Optional[str],
    codec: TokenCodec,
    roles: Optional[Iterable[Role]] = None,
) -> Claims:
    """
    Gate a request on its Authorization header.

    Raises Unauthenticated for a missing or unusable token and Forbidden when
    the verified role is not in `roles`. Never touches the store.
    """
    token = extract_bearer_token(authorization)

    try:
        claims = codec.verify(token)
    except TokenError as e:
        logger.info("Rejected token: %s", e.__class__.__name__)
        raise Unauthenticated("Invalid or expired token")

    if roles is not None:
        allowed = {Role(r) for r in roles}
        if claims.role not in allowed:
            logger.warning(
                "Role %s denied, requires one of %s",
                claims.role.value,
                sorted(r.value for r in allowed),
            )
            raise Forbidden("Insufficient permissions")

    return claims


# -------------------------------
# Ownership predicates
# -------------------------------

def ensure_owner(claims: Claims, owner_id) -> None:
    if parse_object_id(owner_id, "resource ID") != parse_object_id(claims.user_id, "user ID"):
        raise Forbidden("You do not own this resource")


def ensure_self_or_admin(claims: Claims, user_id) -> None:
    if claims.role == Role.ADMIN:
        return
    ensure_owner(claims, user_id)


# -------------------------------
# FastAPI dependencies
# -------------------------------

def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


async def get_current_claims(
    authorization: Optional[str] = Header(None),
    codec: TokenCodec = Depends(get_token_codec),
) -> Claims:
    return authorize(authorization, codec)


def require_role(*roles: Role):
    async def checker(
        authorization: Optional[str] = Header(None),
        codec: TokenCodec = Depends(get_token_codec),
    ) -> Claims:
        return authorize(authorization, codec, roles)

    return checker


async def _load_active_user(db, claims: Claims) -> dict:
    user = await db.users.find_one({"_id": parse_object_id(claims.user_id, "user ID")})
    if not user:
        raise Unauthenticated("User not found")

    if user.get("suspended"):
        logger.info("Suspended account %s refused", claims.user_id)
        raise Forbidden("Account suspended")

    return user


async def get_current_user(
    claims: Claims = Depends(get_current_claims),
    db=Depends(get_db),
):
    return await _load_active_user(db, claims)


async def get_active_claims(
    claims: Claims = Depends(get_current_claims),
    db=Depends(get_db),
) -> Claims:
    await _load_active_user(db, claims)
    return claims


def require_active_role(*roles: Role):
    """Like `require_role`, then refuses tokens whose account is gone or suspended."""
    role_checker = require_role(*roles)

    async def checker(
        claims: Claims = Depends(role_checker),
        db=Depends(get_db),
    ) -> Claims:
        await _load_active_user(db, claims)
        return claims

    return checker
