from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from rentfinder.core.config import settings
from rentfinder.core.database import get_db
from rentfinder.db.models import User as DBUser
import logging

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class AuthService:
    """Verifies bearer tokens issued by the authentication service.

    Tokens are HS256 JWTs whose ``sub`` claim carries the user id. Issuing
    tokens for real logins happens elsewhere; ``create_access_token`` is kept
    for the seed script and the test-suite.
    """

    @staticmethod
    def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        to_encode = data.copy()
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        )
        to_encode.update({"exp": expire})
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def decode_token(token: str) -> Optional[str]:
        """Return the user id carried by ``token`` or None if it does not verify."""
        try:
            payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except JWTError as e:
            logger.debug(f"Rejected bearer token: {e}")
            return None

        user_id = payload.get("sub")
        if not user_id:
            return None
        return str(user_id)


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Authentication required",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    if credentials is None:
        raise _credentials_exception()

    user_id = AuthService.decode_token(credentials.credentials)
    if user_id is None:
        raise _credentials_exception()
    return user_id


async def get_optional_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """Identify the viewer when a valid token is present; anonymous otherwise."""
    if credentials is None:
        return None
    return AuthService.decode_token(credentials.credentials)


async def get_current_user(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> DBUser:
    user = db.get(DBUser, user_id)
    if user is None:
        raise _credentials_exception()
    return user
