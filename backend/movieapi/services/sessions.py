# movieapi/services/sessions.py
"""
Session manager: register, login, refresh, logout and profile access.

Holds no state of its own. Every flow reads and writes the credential store,
so any API worker can serve any request. Validation happens in a fixed order
per flow and every failure leaves as an AuthError carrying an ErrorKind; the
HTTP layer maps kinds to status codes.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError

from movieapi.core.config import settings
from movieapi.core.errors import AuthError
from movieapi.core.security import PasswordHasher
from movieapi.core.tokens import (
    InvalidTokenError,
    IssuedToken,
    TokenExpiredError,
    TokenIssuer,
    TokenKind,
)
from movieapi.models.user import User
from movieapi.services.users import CredentialStore, UserAlreadyExistsError, UserNotFoundError

logger = logging.getLogger(__name__)

# Messages clients see. Login failures share one message so responses never
# reveal whether the email or the password was wrong.
MSG_CREDENTIALS_INCOMPLETE = "Request body incomplete, both email and password are required"
MSG_INCORRECT_CREDENTIALS = "Incorrect email or password"
MSG_REFRESH_TOKEN_REQUIRED = "Request body incomplete, refresh token required"
MSG_PROFILE_INCOMPLETE = "Request body incomplete: firstname, lastname, dob, and address are required"
MSG_USER_EXISTS = "User already exists"
MSG_USER_NOT_FOUND = "User not found"
MSG_TOKEN_EXPIRED = "JWT token has expired"
MSG_INVALID_TOKEN = "Invalid JWT token"
MSG_INVALID_REFRESH_TOKEN = "Invalid refresh token"
MSG_REFRESH_TOKEN_NOT_FOUND = "Refresh token not found"
MSG_BEARER_MISSING = "Authorization header ('Bearer token') not found"
MSG_INVALID_TTL = "Token lifetimes must be non-negative integers"
MSG_STORE_FAILURE = "Database error"


@dataclass(frozen=True)
class TokenPair:
    bearer: IssuedToken
    refresh: IssuedToken


@dataclass(frozen=True)
class ProfileView:
    """
    `full` is True when the profile was resolved through a live session and
    may expose dob/address; otherwise only public fields are shown.
    """

    user: User
    full: bool


class SessionManager:
    # /users/refresh always rotates with these lifetimes, whatever the client
    # asked for at login.
    ROTATION_BEARER_TTL_SECONDS = 600
    ROTATION_REFRESH_TTL_SECONDS = 86400

    def __init__(self, store: CredentialStore, hasher: PasswordHasher, issuer: TokenIssuer):
        self.store = store
        self.hasher = hasher
        self.issuer = issuer

    # -----------------------------
    # Register
    # -----------------------------
    def register(self, email: str | None, password: str | None) -> User:
        if not email or not password:
            raise AuthError.bad_request(MSG_CREDENTIALS_INCOMPLETE)

        with self._store_errors():
            try:
                user = self.store.create(email, self.hasher.hash(password))
            except UserAlreadyExistsError:
                raise AuthError.conflict(MSG_USER_EXISTS)

        logger.info("Registered user: email=%s", email)
        return user

    # -----------------------------
    # Login
    # -----------------------------
    def login(
        self,
        email: str | None,
        password: str | None,
        *,
        bearer_expires_in: int | None = None,
        refresh_expires_in: int | None = None,
    ) -> TokenPair:
        if not email or not password:
            raise AuthError.bad_request(MSG_CREDENTIALS_INCOMPLETE)

        bearer_ttl = self._resolve_ttl(bearer_expires_in, settings.ACCESS_TOKEN_EXPIRE_SECONDS)
        refresh_ttl = self._resolve_ttl(refresh_expires_in, settings.REFRESH_TOKEN_EXPIRE_SECONDS)

        with self._store_errors():
            user = self.store.find_by_email(email)
        if user is None or not self.hasher.verify(password, user.password_hash):
            logger.warning("Failed login: email=%s", email)
            raise AuthError.unauthorized(MSG_INCORRECT_CREDENTIALS)

        pair = self._issue_pair(user.email, bearer_ttl, refresh_ttl)
        logger.info("Logged in: email=%s", user.email)
        return pair

    # -----------------------------
    # Refresh
    # -----------------------------
    def refresh(self, refresh_token: str | None) -> TokenPair:
        if not refresh_token:
            raise AuthError.bad_request(MSG_REFRESH_TOKEN_REQUIRED)

        with self._store_errors():
            user = self.store.find_by_refresh_token(refresh_token)
        if user is None:
            # Unknown, revoked, or already rotated away.
            raise AuthError.unauthorized(MSG_USER_NOT_FOUND)

        try:
            claims = self.issuer.verify(refresh_token, kind=TokenKind.REFRESH)
        except TokenExpiredError:
            raise AuthError.unauthorized(MSG_TOKEN_EXPIRED)
        except InvalidTokenError:
            raise AuthError.unauthorized(MSG_INVALID_REFRESH_TOKEN)

        if claims.email != user.email:
            logger.warning("Refresh token identity mismatch: stored_for=%s", user.email)
            raise AuthError.unauthorized(MSG_INVALID_REFRESH_TOKEN)

        pair = self._issue_pair(
            claims.email,
            self.ROTATION_BEARER_TTL_SECONDS,
            self.ROTATION_REFRESH_TTL_SECONDS,
        )
        logger.info("Rotated refresh token: email=%s", claims.email)
        return pair

    # -----------------------------
    # Logout
    # -----------------------------
    def logout(self, refresh_token: str | None) -> None:
        if not refresh_token:
            raise AuthError.bad_request(MSG_REFRESH_TOKEN_REQUIRED)

        try:
            claims = self.issuer.verify(refresh_token, kind=TokenKind.REFRESH)
        except TokenExpiredError:
            raise AuthError.unauthorized(MSG_TOKEN_EXPIRED)
        except InvalidTokenError:
            raise AuthError.unauthorized(MSG_INVALID_TOKEN)

        with self._store_errors():
            cleared = self.store.clear_refresh_token(refresh_token)
        if cleared == 0:
            # Already logged out, or superseded by a later login/refresh.
            raise AuthError.internal(MSG_REFRESH_TOKEN_NOT_FOUND)

        logger.info("Logged out: email=%s", claims.email)

    # -----------------------------
    # Profile
    # -----------------------------
    def get_profile(self, email: str) -> ProfileView:
        """
        A stored refresh token is taken as proof of a live session: the full
        profile of the identity it names is returned without the caller
        presenting any token. Without one, only public fields are exposed.
        """
        with self._store_errors():
            user = self.store.find_by_email(email)
        if user is None:
            raise AuthError.not_found(MSG_USER_NOT_FOUND)

        if not user.refresh_token:
            return ProfileView(user=user, full=False)

        try:
            claims = self.issuer.verify(user.refresh_token, check_expiry=False)
        except InvalidTokenError:
            raise AuthError.unauthorized(MSG_BEARER_MISSING)

        if claims.email == user.email:
            return ProfileView(user=user, full=True)

        with self._store_errors():
            owner = self.store.find_by_email(claims.email)
        if owner is None:
            raise AuthError.not_found(MSG_USER_NOT_FOUND)
        return ProfileView(user=owner, full=True)

    def update_profile(
        self,
        email: str,
        *,
        firstname: str | None,
        lastname: str | None,
        dob: date | None,
        address: str | None,
        bearer_token: str | None,
    ) -> User:
        if not firstname or not lastname or dob is None or not address:
            raise AuthError.bad_request(MSG_PROFILE_INCOMPLETE)

        if not bearer_token:
            raise AuthError.unauthorized(MSG_BEARER_MISSING)

        try:
            claims = self.issuer.verify(bearer_token, kind=TokenKind.ACCESS, check_expiry=False)
        except InvalidTokenError:
            raise AuthError.unauthorized(MSG_INVALID_TOKEN)

        if claims.email != email:
            logger.warning("Profile update forbidden: token_email=%s path_email=%s", claims.email, email)
            raise AuthError.forbidden()

        try:
            self.issuer.ensure_not_expired(claims)
        except TokenExpiredError:
            raise AuthError.unauthorized(MSG_TOKEN_EXPIRED)

        with self._store_errors():
            try:
                user = self.store.update_profile(
                    email,
                    {"firstname": firstname, "lastname": lastname, "dob": dob, "address": address},
                )
            except UserNotFoundError:
                raise AuthError.not_found(MSG_USER_NOT_FOUND)

        logger.info("Updated profile: email=%s", email)
        return user

    # -----------------------------
    # Helpers
    # -----------------------------
    def _issue_pair(self, email: str, bearer_ttl: int, refresh_ttl: int) -> TokenPair:
        bearer = self.issuer.issue_access_token(email, bearer_ttl)
        refresh = self.issuer.issue_refresh_token(email, refresh_ttl)
        with self._store_errors():
            # Overwrites any previous token: the old one stops working now.
            self.store.set_refresh_token(email, refresh.token)
        return TokenPair(bearer=bearer, refresh=refresh)

    @staticmethod
    def _resolve_ttl(value: int | None, default: int) -> int:
        if value is None:
            return default
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise AuthError.bad_request(MSG_INVALID_TTL)
        return value

    @staticmethod
    @contextmanager
    def _store_errors() -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            logger.exception("Credential store failure")
            raise AuthError.internal(MSG_STORE_FAILURE) from e
