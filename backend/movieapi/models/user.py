# movieapi/models/user.py
from sqlalchemy import Column, Date, DateTime, Integer, String, Text, func

from movieapi.core.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    # Case-sensitive: stored and matched exactly as registered.
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)

    # Encoded current refresh token. At most one live value per user:
    # overwritten on login/refresh, nulled on logout.
    refresh_token = Column(Text, nullable=True, index=True)

    # Profile, empty until the first authenticated update
    firstname = Column(String(100), nullable=True)
    lastname = Column(String(100), nullable=True)
    dob = Column(Date, nullable=True)
    address = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
