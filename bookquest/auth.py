from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends, Request
from jose import JWTError, jwt
import bcrypt
from sqlalchemy.orm import Session
from . import models
from .database import get_db
from .config import settings
from .errors import ForbiddenError, UnauthorizedError

# Password hashing
# Replaced passlib with direct bcrypt usage to avoid compatibility issues with bcrypt 4.x

# JWT configuration
SECRET_KEY = settings.SECRET_KEY
ALGORITHM = settings.ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES

def verify_password(plain_password, hashed_password):
    if isinstance(plain_password, str):
        plain_password = plain_password.encode('utf-8')
    if isinstance(hashed_password, str):
        hashed_password = hashed_password.encode('utf-8')
    return bcrypt.checkpw(plain_password, hashed_password)

def get_password_hash(password):
    if isinstance(password, str):
        password = password.encode('utf-8')
    # gensalt default rounds is 12
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password, salt).decode('utf-8')

def create_access_token(user: models.User, expires_delta: Optional[timedelta] = None):
    to_encode = {
        "sub": str(user.id),
        "email": user.email,
        "name": user.name,
        "role": user.role,
    }
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt

def _read_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1]
    # Cookie as fallback for browser clients
    return request.cookies.get("access_token")

def get_current_user(request: Request, db: Session = Depends(get_db)):
    """
    Dependency to get current user from the bearer token (or cookie).
    """
    token = _read_token(request)
    if not token:
        return None

    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        user_id = int(payload.get("sub"))
    except (JWTError, TypeError, ValueError):
        return None

    return db.query(models.User).filter(models.User.id == user_id).first()

def get_current_user_required(user: Optional[models.User] = Depends(get_current_user)):
    """
    Dependency that raises 401 if user is not logged in.
    """
    if not user:
        raise UnauthorizedError("Invalid or missing token")
    return user

def require_role(role: str):
    """
    Dependency factory that raises 403 unless the current user has ``role``.
    """
    def checker(user: models.User = Depends(get_current_user_required)):
        if user.role != role:
            raise ForbiddenError("You are not authorized to perform this action")
        return user
    return checker
