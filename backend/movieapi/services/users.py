# movieapi/services/users.py
"""
Credential store.

Responsibilities:
- User lookup by email or by stored refresh token
- Creating users with a pre-computed password hash
- Writing the single refresh token slot and profile fields

Every method is one single-row read or write, committed immediately. On a
database error the session is rolled back and the SQLAlchemyError propagates;
translating it is the caller's concern.
"""
from __future__ import annotations

import logging
from datetime import date
from typing import Optional, TypedDict

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from movieapi.models.user import User

logger = logging.getLogger(__name__)


class UserAlreadyExistsError(Exception):
    pass


class UserNotFoundError(Exception):
    pass


class ProfileFields(TypedDict):
    firstname: str
    lastname: str
    dob: date
    address: str


class CredentialStore:
    def __init__(self, db: Session):
        self.db = db

    def find_by_email(self, email: str) -> Optional[User]:
        """Look up a user by email address (exact match)."""
        if not email:
            return None
        return self.db.query(User).filter(User.email == email).first()

    def find_by_refresh_token(self, token: str) -> Optional[User]:
        """Look up the user whose stored refresh token equals `token`."""
        if not token:
            return None
        return self.db.query(User).filter(User.refresh_token == token).first()

    def create(self, email: str, password_hash: str) -> User:
        """
        Insert a new user.

        Raises:
            UserAlreadyExistsError: the email is taken, either found up front
                or reported by the unique index under a concurrent insert.
        """
        if self.find_by_email(email) is not None:
            raise UserAlreadyExistsError(email)

        user = User(email=email, password_hash=password_hash)
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise UserAlreadyExistsError(email) from e
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(user)

        logger.info("Created user: id=%s email=%s", user.id, email)
        return user

    def set_refresh_token(self, email: str, token: str | None) -> None:
        """Overwrite (or clear, with None) the stored refresh token for `email`."""
        self._execute_update(
            self.db.query(User).filter(User.email == email),
            {User.refresh_token: token},
        )

    def clear_refresh_token(self, token: str) -> int:
        """
        Null the refresh token on the row currently holding exactly `token`.
        Returns the number of rows changed (0 or 1).
        """
        return self._execute_update(
            self.db.query(User).filter(User.refresh_token == token),
            {User.refresh_token: None},
        )

    def update_profile(self, email: str, fields: ProfileFields) -> User:
        """
        Raises:
            UserNotFoundError: no user with that email.
        """
        user = self.find_by_email(email)
        if user is None:
            raise UserNotFoundError(email)

        user.firstname = fields["firstname"]
        user.lastname = fields["lastname"]
        user.dob = fields["dob"]
        user.address = fields["address"]
        self.db.add(user)
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(user)
        return user

    def _execute_update(self, query, values: dict) -> int:
        try:
            rowcount = query.update(values, synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        return int(rowcount or 0)
