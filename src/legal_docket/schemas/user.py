from pydantic import BaseModel, EmailStr
from uuid import UUID
from datetime import datetime
from typing import Literal, Optional

RoleName = Literal["Admin", "Lawyer"]


class UserBase(BaseModel):
    email: EmailStr
    name: str

class UserRegister(UserBase):
    password: str

class UserCreate(UserBase):
    """Admin adding a member to their org."""
    password: str
    role: RoleName = "Lawyer"

class UserUpdate(BaseModel):
    name: Optional[str] = None
    password: Optional[str] = None
    role: Optional[RoleName] = None

class User(UserBase):
    id: UUID
    org_id: UUID
    role: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True

class UserPage(BaseModel):
    page: int
    limit: int
    total: int
    items: list[User]

class Token(BaseModel):
    access_token: str
    token_type: str
