# movieapi/dependencies/auth.py
from __future__ import annotations

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from movieapi.core.database import get_db
from movieapi.core.security import PasswordHasher, get_password_hasher
from movieapi.core.tokens import TokenIssuer, get_token_issuer
from movieapi.services.sessions import SessionManager
from movieapi.services.users import CredentialStore

# auto_error=False: a missing header must reach the session manager, which
# checks the request body first and reports its own 401.
bearer_scheme = HTTPBearer(auto_error=False)


def get_bearer_token(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str | None:
    """
    Returns the raw token from `Authorization: Bearer <token>`, or None.
    Validation is left to the session manager.
    """
    if not creds or creds.scheme.lower() != "bearer":
        return None
    token = (creds.credentials or "").strip()
    return token or None


def get_session_manager(
    db: Session = Depends(get_db),
    hasher: PasswordHasher = Depends(get_password_hasher),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> SessionManager:
    return SessionManager(CredentialStore(db), hasher, issuer)
