# movieapi/schemas/auth.py
from pydantic import BaseModel, ConfigDict, Field

# Request fields are optional at the schema level: the session manager decides
# what "incomplete" means so that missing fields get the documented 400 message.


class RegisterIn(BaseModel):
    email: str | None = None
    password: str | None = None


class LoginIn(BaseModel):
    email: str | None = None
    password: str | None = None
    bearer_expires_in: int | None = Field(default=None, alias="bearerExpiresInSeconds")
    refresh_expires_in: int | None = Field(default=None, alias="refreshExpiresInSeconds")

    model_config = ConfigDict(populate_by_name=True)


class RefreshTokenIn(BaseModel):
    refresh_token: str | None = Field(default=None, alias="refreshToken")

    model_config = ConfigDict(populate_by_name=True)


class TokenOut(BaseModel):
    token: str
    token_type: str
    # Absolute expiry, epoch seconds
    expires_in: int


class TokenPairOut(BaseModel):
    bearer_token: TokenOut = Field(alias="bearerToken")
    refresh_token: TokenOut = Field(alias="refreshToken")

    model_config = ConfigDict(populate_by_name=True)


class MessageOut(BaseModel):
    message: str


class LogoutOut(BaseModel):
    error: bool = False
    message: str
