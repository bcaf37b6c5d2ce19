# movieapi/core/security.py
from __future__ import annotations

from functools import lru_cache

from passlib.context import CryptContext

from movieapi.core.config import settings


class PasswordHasher:
    """
    bcrypt hashing; the salt and cost factor are embedded in each digest.
    """

    def __init__(self, rounds: int = 10) -> None:
        self.rounds = rounds
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        if not password_hash:
            return False
        try:
            return self._context.verify(password, password_hash)
        except ValueError:
            # Unrecognised or corrupt digest: treat as a mismatch.
            return False


@lru_cache
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=settings.BCRYPT_ROUNDS)
