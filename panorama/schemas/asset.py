"""
Asset schemas.

This module defines the Pydantic schemas used to validate asset payloads
sent to the API and to shape the asset data it returns.

Schemas:
    - AssetCreate: Payload of a new asset; the code is derived server-side.
    - AssetUpdate: Payload of an edit, with the optional justification.
    - AssetResponse: Stored asset returned by the API.
    - AssetPage: One page of the filtered active listing.
    - CodePreview: Inventory code a new asset would receive.
    - ImportReport: Outcome of a spreadsheet import.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from panorama.models.asset import Asset


class AssetCreate(BaseModel):
    name: str = ""
    category: str = ""
    location: str = ""
    acquisition_year: str = ""
    registration_date: str = ""
    state: Optional[str] = None
    holder: str = ""
    holder_presence: Optional[str] = None
    door: str = ""
    description: str = ""
    observation: str = ""
    photo_url: Optional[str] = None
    custom_attributes: Dict[str, Any] = Field(default_factory=dict)
    amount: Optional[float] = None
    unit: Optional[str] = None


class AssetUpdate(AssetCreate):
    reason: Optional[str] = None
    """Justification, required when a critical field changes."""


class AssetResponse(Asset):
    id: str


class AssetPage(BaseModel):
    items: List[AssetResponse]
    total: int
    page: int
    pages: int


class CodePreview(BaseModel):
    code: str
    complete: bool
    """Whether year, location and category were all given."""


class ImportReport(BaseModel):
    imported: int
    already_existing: int
    duplicates_in_file: int
    message: str
