from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi.security import HTTPBearer
from pydantic import BaseModel, ValidationError as PayloadError
from enum import Enum

from .config import settings

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Missing credentials are reported by get_current_user, not by the scheme
security = HTTPBearer(auto_error=False)

class UserRole(str, Enum):
    DOCTOR = "doctor"
    PATIENT = "patient"

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int

class TokenPayload(BaseModel):
    sub: int
    email: Optional[str] = None
    role: Optional[UserRole] = None
    exp: Optional[int] = None

# Password utilities
def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    """Generate password hash."""
    return pwd_context.hash(password)

# JWT utilities
def create_access_token(
    user_id: int,
    email: str,
    role: UserRole,
    expires_delta: Optional[timedelta] = None
) -> Token:
    """Create a signed access token identifying the user."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta

    # "sub" must be a string in a JWT
    to_encode = {
        "sub": str(user_id),
        "email": email,
        "role": UserRole(role).value,
        "exp": expire,
    }
    encoded_jwt = jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )
    return Token(
        access_token=encoded_jwt,
        expires_in=int(expires_delta.total_seconds())
    )

def verify_token(token: str) -> Optional[TokenPayload]:
    """Verify and decode JWT token."""
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
        return TokenPayload(**payload)

    except (JWTError, PayloadError):
        return None
