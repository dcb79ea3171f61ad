"""
Asset model definition.

This module defines the `Asset` data model used to represent the physical
items of company property tracked by EDC Panorama. Each asset carries a
human-readable inventory code derived from its acquisition year, location
and category, a condition state, an optional holder, free-text notes and
an open-ended set of custom attributes defined by the administrators.

The model is implemented using Pydantic for data validation and type
hinting, ensuring consistency across the API and MongoDB storage.
"""

from enum import Enum
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field


class AssetState(str, Enum):
    """Built-in condition states of an asset."""

    GOOD = "Bon état"
    DEFECTIVE = "Défectueux"
    DEPRECIATED = "Déprécié"
    IN_MAINTENANCE = "En maintenance"
    RETIRED = "Retiré"


class Asset(BaseModel):
    """
    Represents an inventory asset as stored in the `assets` collection.

    Example:
        >>> asset = Asset(
        ...     code="2024-EDC-AA-0001",
        ...     name="Agrafeuse géante",
        ...     category="AA",
        ...     location="EDC",
        ...     acquisition_year="2024",
        ... )
        >>> print(asset.state)
        Bon état
    """

    code: str = ""
    """Inventory code, `YEAR-LOCATION-CATEGORY-SEQUENCE`."""

    name: str = ""
    """Human-readable name of the asset."""

    category: str = ""
    """Category code from the configured taxonomy (e.g., `AA`)."""

    location: str = ""
    """Location code where the asset is kept."""

    acquisition_year: str = ""
    """Year the asset was acquired."""

    registration_date: str = ""
    """Date the asset was registered, as an ISO `YYYY-MM-DD` string."""

    state: str = AssetState.GOOD.value
    """Condition state, one of the configured states."""

    holder: str = ""
    """Person the asset is assigned to."""

    holder_presence: str = ""
    """Whether the holder is currently present."""

    door: str = ""
    """Door or office number."""

    description: str = ""
    observation: str = ""

    photo_url: Optional[str] = None
    """Photo reference or data URL."""

    custom_attributes: Dict[str, Any] = Field(default_factory=dict)
    """Values of the administrator-defined custom fields, keyed by field id."""

    amount: Optional[float] = None
    """Monetary value of the asset."""

    unit: Optional[str] = None
    """Currency or unit of `amount`."""

    is_archived: bool = False
    """Soft-deletion flag; archived assets are hidden from the main listing."""
