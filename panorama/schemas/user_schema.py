from typing import Optional
from pydantic import BaseModel, EmailStr

from panorama.models.user import Permissions, Preferences, Theme


class LoginRequest(BaseModel):
    email: str
    password: str


class UserCreate(BaseModel):
    first_name: str
    last_name: str = ""
    email: EmailStr
    password: str
    permissions: Permissions = Permissions()


class UserUpdate(BaseModel):
    first_name: str
    last_name: str = ""
    permissions: Permissions
    preferences: Optional[Preferences] = None


class UserOut(BaseModel):
    id: str
    first_name: str
    last_name: str
    email: str
    permissions: Permissions
    preferences: Preferences


class ThemeUpdate(BaseModel):
    theme: Theme


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut
