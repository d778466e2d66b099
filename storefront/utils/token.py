from jose import jwt
from datetime import timedelta
from typing import Optional
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session
from storefront.config import settings
from storefront.database import get_session
from storefront.errors import AuthError
from storefront.models.user import User
from storefront.utils.timestamps import utc_now

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()

    expire = utc_now() + (
        expires_delta
        if expires_delta
        else timedelta(minutes=settings.access_token_expire_minutes)
    )

    to_encode.update({"exp": expire})

    encoded_jwt = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.algorithm
    )
    return encoded_jwt


def decode_access_token(token: str):
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
        )
        return payload
    except jwt.JWTError:
        return None


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    session: Session = Depends(get_session)
) -> User:
    if not token:
        raise AuthError("Not authorized: missing token")

    payload = decode_access_token(token)

    if payload is None:
        raise AuthError("Not authorized: invalid token")

    user_id = payload.get("user_id") or payload.get("sub")

    if user_id is None:
        raise AuthError("Not authorized: invalid token payload")

    user = session.get(User, int(user_id))

    if user is None:
        raise AuthError("Not authorized: user not found")

    return user
