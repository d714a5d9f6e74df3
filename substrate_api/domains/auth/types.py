"""Auth domain type definitions for type safety."""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SessionTokenPayload(BaseModel):
    """Session token payload structure."""

    sub: str = Field(..., description="Subject (user ID)")
    sid: str = Field(..., description="Device session identifier")
    typ: Literal["access", "refresh"] = Field(..., description="Token type")
    iat: Optional[int] = Field(None, description="Issued at timestamp")
    exp: Optional[int] = Field(None, description="Expiration timestamp")

    model_config = {"extra": "allow"}


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "Bearer"

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AccessToken(BaseModel):
    access_token: str
    expires_in: int
    token_type: str = "Bearer"

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
