from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    email_verified_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class CurrentUserResponse(UserResponse):
    roles: List[str] = Field(default_factory=list)


class RoleAssignment(BaseModel):
    role: str = Field(..., min_length=1, max_length=255)


class UserRoles(BaseModel):
    user: UserResponse
    roles: List[str]


class UserPermissions(BaseModel):
    roles: List[str]
    permissions: List[str]
    direct_permissions: List[str]


class SuperAdminCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8)


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
