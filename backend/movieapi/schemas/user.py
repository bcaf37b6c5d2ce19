from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict


class ProfileUpdateIn(BaseModel):
    firstname: str | None = None
    lastname: str | None = None
    dob: date | None = None
    address: str | None = None


class PublicProfileOut(BaseModel):
    email: str
    firstname: str | None = None
    lastname: str | None = None

    model_config = ConfigDict(from_attributes=True)


class FullProfileOut(PublicProfileOut):
    dob: date | None = None
    address: str | None = None


class ProfileOut(BaseModel):
    firstname: str | None = None
    lastname: str | None = None
    dob: date | None = None
    address: str | None = None

    model_config = ConfigDict(from_attributes=True)
