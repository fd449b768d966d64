"""
Bearer token helpers
HS256 JWTs whose subject is the user id
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from config import Settings, get_settings


logger = logging.getLogger(__name__)


def create_access_token(
    user_id: str,
    expires_delta: Optional[timedelta] = None,
    settings: Optional[Settings] = None
) -> str:
    settings = settings or get_settings()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {"sub": user_id, "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str, settings: Optional[Settings] = None) -> Optional[Dict[str, Any]]:
    """Decoded claims, or None when the token is malformed, expired or unsigned by us"""
    settings = settings or get_settings()
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.debug(f"Token verification failed: {e}")
        return None

    if not payload.get("sub"):
        return None
    return payload
