from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import jwt
from passlib.context import CryptContext
import hashlib

from infrastructure.config import settings

SECRET_KEY = settings.SECRET_KEY
ALGORITHM = settings.ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__ident="2b"
)

def _prepare_password(password: str) -> str:
    """
    bcrypt only looks at the first 72 bytes; longer passwords are
    pre-hashed with SHA256 so the whole secret counts.
    """
    password_bytes = password.encode('utf-8')
    if len(password_bytes) > 72:
        return hashlib.sha256(password_bytes).hexdigest()
    return password

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash"""
    return pwd_context.verify(_prepare_password(plain_password), hashed_password)

def get_password_hash(password: str) -> str:
    """Generate password hash"""
    return pwd_context.hash(_prepare_password(password))

def create_access_token(subject: str, claims: Optional[dict] = None, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token whose ``sub`` is the verified subject id"""
    to_encode = dict(claims or {})
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=15))
    to_encode.update({"sub": subject, "exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

def decode_access_token(token: str) -> dict:
    """Decode and verify a JWT; raises jose.JWTError when invalid or expired"""
    return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
