import time
from typing import Literal, Optional

import jwt

from substrate_api.core.settings import Settings
from substrate_api.shared.exceptions import InvalidTokenError

from .types import SessionTokenPayload, TokenPair

TokenType = Literal["access", "refresh"]


def encode_session_token(
    settings: Settings, user_id: str, session_id: str, token_type: TokenType
) -> str:
    ttl = (
        settings.ACCESS_TOKEN_TTL_SECONDS
        if token_type == "access"
        else settings.REFRESH_TOKEN_TTL_SECONDS
    )
    now = int(time.time())
    payload = SessionTokenPayload(
        sub=user_id, sid=session_id, typ=token_type, iat=now, exp=now + ttl
    )
    return jwt.encode(
        payload.model_dump(), settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM
    )


def issue_token_pair(settings: Settings, user_id: str, session_id: str) -> TokenPair:
    return TokenPair(
        access_token=encode_session_token(settings, user_id, session_id, "access"),
        refresh_token=encode_session_token(settings, user_id, session_id, "refresh"),
        expires_in=settings.ACCESS_TOKEN_TTL_SECONDS,
    )


def decode_session_token(
    settings: Settings, token: str, expected_type: Optional[TokenType] = None
) -> SessionTokenPayload:
    """
    Verifies a session token signed with JWT_SECRET.

    Raises:
        InvalidTokenError: If the signature, expiry or token type is wrong
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except jwt.PyJWTError:
        raise InvalidTokenError()

    decoded = SessionTokenPayload(**dict(payload))
    if expected_type and decoded.typ != expected_type:
        raise InvalidTokenError()
    return decoded
