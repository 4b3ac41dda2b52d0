"""Domain Entities - Auth"""
from pydantic import BaseModel
from typing import Optional

class User(BaseModel):
    """Authenticated subject as asserted by the identity provider"""
    user_id: str
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: str = "staff"
    disabled: bool = False

    class Config:
        from_attributes = True

class UserInDB(User):
    """Staff account with hashed password, used by the development token issuer"""
    hashed_password: str
