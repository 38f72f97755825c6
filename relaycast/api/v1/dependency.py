from typing import Annotated

import jwt
from fastapi import Depends, Request
from loguru import logger
from pydantic import BaseModel

from relaycast.app_config import get_app_environ_config
from relaycast.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


class User(BaseModel):
    user_id: str


def _bad_token() -> AppError:
    return AppError(
        errcode=AppErrorCode.E_BAD_TOKEN,
        errmesg="Invalid token",
        status_code=HttpStatusCode.UNAUTHORIZED,
    )


def decode_token(token: str) -> dict:
    """Verify a bearer token issued by the platform's auth service."""
    cfg = get_app_environ_config()
    if not cfg.AUTH_JWT_SECRET:
        logger.error("AUTH_JWT_SECRET not configured, rejecting all tokens")
        raise _bad_token()

    try:
        return jwt.decode(token, cfg.AUTH_JWT_SECRET, algorithms=[cfg.AUTH_JWT_ALGORITHM])
    except jwt.PyJWTError as e:
        logger.debug("Token rejected: {}", e)
        raise _bad_token() from None


async def get_current_user(request: Request) -> User:
    # Do not log request headers here (may include secrets like Authorization).
    scheme, _, token = request.headers.get("authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _bad_token()

    claims = decode_token(token.strip())
    user_id = claims.get("user_id") or claims.get("sub")
    if not user_id:
        raise _bad_token()

    logger.debug("Authenticated user_id: {}", user_id)
    return User(user_id=str(user_id))


CurrentUser = Annotated[User, Depends(get_current_user)]
