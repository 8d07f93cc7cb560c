import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from config import Settings
from database import get_db
from errors import AuthenticationError, TokenExpired, TokenInvalid
from models import User

logger = logging.getLogger(__name__)

# auto_error=False so a missing header goes through our own error type
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/token", auto_error=False)


class AuthService:
    """Password hashing and stateless bearer tokens."""

    def __init__(self, settings: Settings):
        self.secret_key = settings.secret_key
        self.algorithm = settings.algorithm
        self.expires = timedelta(minutes=settings.access_token_expire_minutes)
        self.pwd_context = CryptContext(
            schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.bcrypt_rounds
        )

    def get_password_hash(self, password: str) -> str:
        return self.pwd_context.hash(password)

    def verify_password(self, plain: str, hashed: str) -> bool:
        return self.pwd_context.verify(plain, hashed)

    def issue_token(self, user_id: int, expires_delta: Optional[timedelta] = None) -> str:
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta if expires_delta is not None else self.expires)
        to_encode = {"sub": str(user_id), "iat": now, "exp": expire}
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> int:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise TokenExpired()
        except JWTError as e:
            logger.warning("Token verification error: %s", e)
            raise TokenInvalid()
        sub = payload.get("sub")
        if sub is None:
            raise TokenInvalid()
        try:
            return int(sub)
        except (TypeError, ValueError):
            raise TokenInvalid()


def get_auth(request: Request) -> AuthService:
    return request.app.state.auth


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    auth: AuthService = Depends(get_auth),
    db: Session = Depends(get_db),
) -> User:
    if not token:
        raise AuthenticationError("Authentication required. No token provided.")
    user_id = auth.verify_token(token)
    user = db.get(User, user_id)
    if user is None:
        raise AuthenticationError("Invalid token: User not found")
    return user
