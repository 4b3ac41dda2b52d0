"""API Dependencies - Authentication"""
import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from domain.auth import User, UserInDB
from infrastructure.config import settings
from infrastructure.security import decode_access_token, get_password_hash, verify_password
from api.schemas import TokenData

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")

# Staff accounts for the development token issuer.
# In production tokens come from the identity provider and this is unused.
_staff_directory = {
    settings.ADMIN_USERNAME: {
        "user_id": settings.ADMIN_USER_ID,
        "username": settings.ADMIN_USERNAME,
        "full_name": "Front Desk Admin",
        "email": "admin@example.com",
        "role": "admin",
        "plain_password": settings.ADMIN_PASSWORD,  # hashed on first access
        "disabled": False,
    }
}

# Cache for hashed passwords
_password_hash_cache = {}


def _get_hashed_password(username: str) -> str:
    """Lazily hash passwords on first access"""
    if username not in _password_hash_cache:
        account = _staff_directory.get(username)
        if account and "plain_password" in account:
            _password_hash_cache[username] = get_password_hash(account["plain_password"])
    return _password_hash_cache.get(username, "")


def get_user(username: str) -> Optional[UserInDB]:
    if username in _staff_directory:
        user_dict = _staff_directory[username].copy()
        user_dict["hashed_password"] = _get_hashed_password(username)
        del user_dict["plain_password"]
        return UserInDB(**user_dict)
    return None


def authenticate_user(username: str, password: str) -> Optional[UserInDB]:
    user = get_user(username)
    if not user or not verify_password(password, user.hashed_password):
        return None
    return user


async def get_current_user(token: str = Depends(oauth2_scheme)) -> User:
    """Resolve the verified subject id from the bearer token"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
        token_data = TokenData(sub=payload.get("sub"), role=payload.get("role"))
        if not token_data.sub:
            raise credentials_exception
    except JWTError:
        logger.info("Rejected bearer token")
        raise credentials_exception

    return User(
        user_id=token_data.sub,
        username=payload.get("username") or token_data.sub,
        email=payload.get("email"),
        full_name=payload.get("name"),
        role=token_data.role or "staff",
        disabled=bool(payload.get("disabled", False)),
    )


async def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if current_user.disabled:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user
