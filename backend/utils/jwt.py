import json
from datetime import datetime, timezone
from typing import Callable, Optional

from jose import jws, jwt, JWSError, JWTError
from pydantic import ValidationError

from config.env import TokenSettings, HMAC_ALGORITHMS
from models.token import Claims
from models.user import Role


class TokenError(Exception):
    """Base class for every reason a token is refused."""


class MalformedToken(TokenError):
    pass


class InvalidAlgorithm(TokenError):
    pass


class InvalidSignature(TokenError):
    pass


class MalformedClaims(TokenError):
    pass


class TokenExpired(TokenError):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenCodec:
    """
    Issues and verifies HMAC-signed access tokens.

    Holds no state besides the immutable settings it was built with, so a
    single instance is shared by every request.
    """

    def __init__(self, settings: TokenSettings, clock: Optional[Callable[[], datetime]] = None):
        if settings.algorithm not in HMAC_ALGORITHMS:
            raise ValueError(f"Unsupported signing algorithm: {settings.algorithm}")
        self.settings = settings
        self._clock = clock or _utcnow

    def issue(self, user_id: str, role: Role | str, seller_id: Optional[str] = None) -> str:
        now = self._clock()
        claims = Claims(
            user_id=user_id,
            role=Role(role),
            seller_id=seller_id or None,
            expires_at=int((now + self.settings.ttl).timestamp()),
        )
        payload = claims.to_payload()
        payload["iat"] = int(now.timestamp())
        return jwt.encode(payload, self.settings.secret, algorithm=self.settings.algorithm)

    def verify(self, token: str) -> Claims:
        try:
            header = jwt.get_unverified_header(token)
        except JWTError:
            raise MalformedToken("Token could not be parsed")

        # checked before touching the key: a token must never pick its own algorithm
        if header.get("alg") != self.settings.algorithm:
            raise InvalidAlgorithm(f"Unexpected signing algorithm: {header.get('alg')}")

        try:
            raw = jws.verify(token, self.settings.secret, algorithms=[self.settings.algorithm])
        except JWSError:
            raise InvalidSignature("Signature verification failed")

        try:
            payload = json.loads(raw)
        except ValueError:
            raise MalformedClaims("Claims segment is not valid JSON")

        if not isinstance(payload, dict):
            raise MalformedClaims("Claims segment must be a JSON object")

        try:
            claims = Claims.model_validate(payload)
        except ValidationError as e:
            raise MalformedClaims(str(e))

        if claims.is_expired(self._clock()):
            raise TokenExpired("Token has expired")

        return claims
