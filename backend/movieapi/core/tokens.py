# movieapi/core/tokens.py
"""
Signed access and refresh tokens.

Wire format (HS256 JWT by default):
  access token:  {"email": ..., "exp": <epoch seconds>, "jti": ...}
  refresh token: {"email": ..., "refresh_exp": <epoch seconds>, "jti": ...}

The two kinds carry their expiry under different claim names; clients rely on
this, so the names must not be unified. Expiry is checked here rather than by
python-jose so that signature, shape and expiry failures stay distinguishable
and are reported in that order.

Nothing in this module knows about HTTP. Callers translate
InvalidTokenError / TokenExpiredError into their own errors.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, Callable

from jose import JWTError, jwt

from movieapi.core.config import settings


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"

    @property
    def expiry_claim(self) -> str:
        return "exp" if self is TokenKind.ACCESS else "refresh_exp"


class InvalidTokenError(ValueError):
    pass


class TokenExpiredError(ValueError):
    pass


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expires_at: int


@dataclass(frozen=True)
class TokenClaims:
    email: str
    expires_at: int
    kind: TokenKind


class TokenIssuer:
    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret or not secret.strip():
            raise RuntimeError("A signing secret is required to issue tokens.")
        self._secret = secret
        self._algorithm = algorithm
        self._clock = clock

    def now(self) -> int:
        return int(self._clock())

    # -------------------------
    # Issuing
    # -------------------------
    def issue_access_token(self, email: str, ttl_seconds: int) -> IssuedToken:
        return self._issue(email, ttl_seconds, TokenKind.ACCESS)

    def issue_refresh_token(self, email: str, ttl_seconds: int) -> IssuedToken:
        return self._issue(email, ttl_seconds, TokenKind.REFRESH)

    def _issue(self, email: str, ttl_seconds: int, kind: TokenKind) -> IssuedToken:
        if not email:
            raise ValueError("email is required")
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")

        expires_at = self.now() + int(ttl_seconds)
        payload: dict[str, Any] = {
            "email": email,
            kind.expiry_claim: expires_at,
            # Two tokens minted in the same second must still differ.
            "jti": uuid.uuid4().hex,
        }
        token = jwt.encode(payload, self._secret, algorithm=self._algorithm)
        return IssuedToken(token=token, expires_at=expires_at)

    # -------------------------
    # Verification
    # -------------------------
    def verify(
        self,
        token: str,
        *,
        kind: TokenKind | None = None,
        check_expiry: bool = True,
    ) -> TokenClaims:
        """
        Signature first, then claim shape, then expiry.

        kind=None accepts either token kind. check_expiry=False only proves
        the token was minted by us.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JWTError as e:
            raise InvalidTokenError("Invalid token signature") from e

        claims = self._parse_claims(payload)
        if kind is not None and claims.kind is not kind:
            raise InvalidTokenError(f"Expected a {kind.value} token")

        if check_expiry:
            self.ensure_not_expired(claims)

        return claims

    def ensure_not_expired(self, claims: TokenClaims) -> None:
        if self.now() > claims.expires_at:
            raise TokenExpiredError("Token has expired")

    def _parse_claims(self, payload: dict[str, Any]) -> TokenClaims:
        email = payload.get("email")
        if not isinstance(email, str) or not email:
            raise InvalidTokenError("Token missing 'email'")

        has_access = "exp" in payload
        has_refresh = "refresh_exp" in payload
        if has_access == has_refresh:
            raise InvalidTokenError("Token has no recognisable expiry claim")

        token_kind = TokenKind.ACCESS if has_access else TokenKind.REFRESH
        raw_expiry = payload[token_kind.expiry_claim]
        if isinstance(raw_expiry, bool) or not isinstance(raw_expiry, (int, float)):
            raise InvalidTokenError("Token expiry must be a number")

        return TokenClaims(email=email, expires_at=int(raw_expiry), kind=token_kind)


@lru_cache
def get_token_issuer() -> TokenIssuer:
    return TokenIssuer(settings.JWT_SECRET, settings.JWT_ALGORITHM)
