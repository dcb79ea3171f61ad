"""
Application configuration model definition.

This module defines `AppConfig`, the global configuration shared by every
session: the category taxonomy, the lists of locations, states and holder
presences, the administrator-defined custom fields and the labels and
visibility of the optional core fields.

The configuration is stored as a single document and falls back to
`default_config()` when nothing has been saved yet.
"""

from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, Field

from panorama.core.config import COMPANY_NAME
from panorama.models.asset import AssetState


class CustomField(BaseModel):
    """
    Administrator-defined attribute attached to every asset.

    Values are stored in `Asset.custom_attributes` under the field `id`.
    Archived fields keep their stored values but are left out of forms,
    exports and import templates.
    """

    id: str
    """Stable key used in `Asset.custom_attributes`."""

    label: str
    """Column header and form label."""

    type: Literal["text", "number", "date", "select"] = "text"

    options: List[str] = Field(default_factory=list)
    """Allowed values when `type` is `select`."""

    order: int = 0
    """Display position; lower values come first."""

    is_archived: bool = False


class CoreFieldConfig(BaseModel):
    """Label and visibility of an optional built-in asset field."""

    key: str
    label: str
    is_visible: bool = True


# Optional core fields and their default labels.
CORE_FIELD_DEFAULTS: Dict[str, str] = {
    "door": "Porte",
    "holder": "Détenteur",
    "description": "Description",
    "observation": "Observation",
    "photo_url": "Photo",
    "registration_date": "Date d'enregistrement",
}


class AppConfig(BaseModel):
    """
    Global configuration of the inventory.

    Example:
        >>> config = default_config()
        >>> config.field_label("holder")
        'Détenteur'
    """

    company_name: str = COMPANY_NAME

    categories: Dict[str, List[str]] = Field(default_factory=dict)
    """Category code mapped to the suggested asset names of that category."""

    categories_descriptions: Dict[str, str] = Field(default_factory=dict)
    """Category code mapped to its human-readable description."""

    locations: List[str] = Field(default_factory=list)

    states: List[str] = Field(default_factory=lambda: [s.value for s in AssetState])

    holder_presences: List[str] = Field(default_factory=lambda: ["Présent", "Absent"])

    custom_fields: List[CustomField] = Field(default_factory=list)

    core_fields: List[CoreFieldConfig] = Field(default_factory=list)

    def core_field(self, key: str) -> Optional[CoreFieldConfig]:
        return next((f for f in self.core_fields if f.key == key), None)

    def field_label(self, key: str) -> str:
        field = self.core_field(key)
        if field and field.label:
            return field.label
        return CORE_FIELD_DEFAULTS.get(key, key)

    def is_field_visible(self, key: str) -> bool:
        field = self.core_field(key)
        return field.is_visible if field else True

    def active_custom_fields(self) -> List[CustomField]:
        return sorted((f for f in self.custom_fields if not f.is_archived), key=lambda f: f.order)

    def category_label(self, code: str) -> str:
        return f"{code} - {self.categories_descriptions.get(code, '')}"

    @property
    def default_state(self) -> str:
        return self.states[0] if self.states else AssetState.GOOD.value

    @property
    def default_holder_presence(self) -> str:
        return self.holder_presences[0] if self.holder_presences else "Présent"


def default_config() -> AppConfig:
    """Configuration used until an administrator saves one."""
    return AppConfig(
        categories={
            "AA": ["Agrafeuse", "Perforatrice", "Calculatrice"],
            "IT": ["Ordinateur portable", "Ordinateur fixe", "Imprimante", "Écran"],
            "MB": ["Bureau", "Chaise", "Armoire"],
        },
        categories_descriptions={
            "AA": "Matériel de bureau",
            "IT": "Matériel informatique",
            "MB": "Mobilier",
        },
        locations=["EDC"],
        core_fields=[CoreFieldConfig(key=key, label=label) for key, label in CORE_FIELD_DEFAULTS.items()],
    )
