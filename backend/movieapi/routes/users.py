# movieapi/routes/users.py
from __future__ import annotations

from fastapi import APIRouter, Body, Depends, status

from movieapi.dependencies.auth import get_bearer_token, get_session_manager
from movieapi.schemas.auth import (
    LoginIn,
    LogoutOut,
    MessageOut,
    RefreshTokenIn,
    RegisterIn,
    TokenOut,
    TokenPairOut,
)
from movieapi.schemas.user import FullProfileOut, ProfileOut, ProfileUpdateIn, PublicProfileOut
from movieapi.services.sessions import SessionManager, TokenPair

router = APIRouter(prefix="/users", tags=["users"])


def _token_pair_out(pair: TokenPair) -> TokenPairOut:
    return TokenPairOut(
        bearer_token=TokenOut(
            token=pair.bearer.token,
            token_type="Bearer",
            expires_in=pair.bearer.expires_at,
        ),
        refresh_token=TokenOut(
            token=pair.refresh.token,
            token_type="Refresh",
            expires_in=pair.refresh.expires_at,
        ),
    )


# An absent or empty body is treated like a body with every field missing.

@router.post("/register", response_model=MessageOut, status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterIn | None = Body(default=None),
    sessions: SessionManager = Depends(get_session_manager),
):
    payload = payload or RegisterIn()
    sessions.register(payload.email, payload.password)
    return {"message": "User created"}


@router.post("/login", response_model=TokenPairOut)
def login(
    payload: LoginIn | None = Body(default=None),
    sessions: SessionManager = Depends(get_session_manager),
):
    payload = payload or LoginIn()
    pair = sessions.login(
        payload.email,
        payload.password,
        bearer_expires_in=payload.bearer_expires_in,
        refresh_expires_in=payload.refresh_expires_in,
    )
    return _token_pair_out(pair)


@router.post("/refresh", response_model=TokenPairOut)
def refresh(
    payload: RefreshTokenIn | None = Body(default=None),
    sessions: SessionManager = Depends(get_session_manager),
):
    """
    Exchange a refresh token for a new bearer + refresh pair.
    The presented refresh token is unusable afterwards.
    """
    payload = payload or RefreshTokenIn()
    return _token_pair_out(sessions.refresh(payload.refresh_token))


@router.post("/logout", response_model=LogoutOut)
def logout(
    payload: RefreshTokenIn | None = Body(default=None),
    sessions: SessionManager = Depends(get_session_manager),
):
    payload = payload or RefreshTokenIn()
    sessions.logout(payload.refresh_token)
    return {"error": False, "message": "Token successfully invalidated"}


@router.get(
    "/{email}/profile",
    response_model=None,
    responses={200: {"model": FullProfileOut, "description": "Full profile while a session is live, otherwise public fields only"}},
)
def get_profile(email: str, sessions: SessionManager = Depends(get_session_manager)):
    view = sessions.get_profile(email)
    if view.full:
        return FullProfileOut.model_validate(view.user)
    return PublicProfileOut.model_validate(view.user)


@router.put("/{email}/profile", response_model=ProfileOut)
def update_profile(
    email: str,
    payload: ProfileUpdateIn | None = Body(default=None),
    bearer_token: str | None = Depends(get_bearer_token),
    sessions: SessionManager = Depends(get_session_manager),
):
    payload = payload or ProfileUpdateIn()
    return sessions.update_profile(
        email,
        firstname=payload.firstname,
        lastname=payload.lastname,
        dob=payload.dob,
        address=payload.address,
        bearer_token=bearer_token,
    )
