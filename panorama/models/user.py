from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class Theme(str, Enum):
    ENTERPRISE = "enterprise"
    DARK = "dark"
    MATERIAL = "material"
    GREEN = "green"
    MODERN = "modern"


class Permissions(BaseModel):
    can_view_dashboard: bool = True
    can_read_list: bool = True
    can_create: bool = False
    can_update: bool = False
    can_delete: bool = False
    can_export: bool = False
    is_admin: bool = False


class Preferences(BaseModel):
    theme: Theme = Theme.ENTERPRISE


class User(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(alias="_id", default=None)
    first_name: str
    last_name: str = ""
    email: str
    permissions: Permissions = Field(default_factory=Permissions)
    preferences: Preferences = Field(default_factory=Preferences)

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
