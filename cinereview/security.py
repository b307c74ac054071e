"""Password hashing, bearer tokens and the auth dependencies used by routes."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from bson import ObjectId
from fastapi import Depends, Path
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from cinereview import config
from cinereview.errors import AuthenticationError, AuthorizationError
from cinereview.models import User

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user_id, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(days=config.JWT_EXPIRE_DAYS))
    payload = {"id": str(user_id), "exp": expire}
    return jwt.encode(payload, config.require_jwt_secret(), algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, config.require_jwt_secret(), algorithms=[config.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except JWTError:
        raise AuthenticationError("Token is not valid.")


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> User:
    """Resolve the bearer token to a stored user or fail with 401."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access denied. No token provided.")
    claims = decode_access_token(credentials.credentials)
    user_id = claims.get("id")
    if not user_id or not ObjectId.is_valid(user_id):
        raise AuthenticationError("Token is not valid.")
    user = User.objects(id=ObjectId(user_id)).first()
    if user is None:
        raise AuthenticationError("Token is not valid. User not found.")
    return user


def require_admin(current: User = Depends(get_current_user)) -> User:
    if not current.is_admin:
        raise AuthorizationError("Access denied. Admin privileges required.")
    return current


def is_owner_or_admin(current: User, owner_id) -> bool:
    return bool(current.is_admin) or str(current.pk) == str(owner_id)


def require_owner_or_admin(
    user_id: str = Path(...),
    current: User = Depends(get_current_user),
) -> User:
    """Guard for routes with a ``{user_id}`` path parameter."""
    if not is_owner_or_admin(current, user_id):
        raise AuthorizationError("Access denied. You can only access your own resources.")
    return current
