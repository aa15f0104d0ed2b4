# certichain/api/v1/auth.py
from __future__ import annotations

import hmac
import logging

from fastapi import APIRouter, Depends, HTTPException

from certichain.api.deps import get_settings
from certichain.core.config import Settings
from certichain.core.security_password import verify_password
from certichain.core.tokens import create_access_token
from certichain.schemas.token import Token, TokenIn

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/token", response_model=Token)
def login(body: TokenIn, settings: Settings = Depends(get_settings)):
    username_ok = hmac.compare_digest(body.username.strip().lower(), settings.OPERATOR_USERNAME.strip().lower())
    password_ok = verify_password(body.password, settings.OPERATOR_PASSWORD_HASH)
    if not (username_ok and password_ok):
        logger.warning("operator login failed for %r", body.username)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    token = create_access_token(sub=settings.OPERATOR_USERNAME, settings=settings)
    return Token(access_token=token, expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60)
