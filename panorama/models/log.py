"""
Audit log model definition.

A log entry records who did what to which asset. Entries are appended to
the `logs` collection and never modified afterwards. Updates carry the
list of field-level changes computed by `panorama.util.audit_diff`.
"""

from enum import Enum
from typing import Any, List, Optional
from pydantic import BaseModel


class LogAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    CONFIG = "CONFIG"


class FieldChange(BaseModel):
    """
    Before/after values of a single asset field.

    Example:
        >>> FieldChange(field="location", before="EDC", after="DG")
    """

    field: str
    before: Optional[Any] = None
    after: Optional[Any] = None


class Log(BaseModel):
    id: str
    """Entry identifier, the creation timestamp as a string."""

    timestamp: int
    """Creation time in milliseconds since the epoch."""

    user_id: str
    user_email: str
    user_name: str

    action: LogAction

    description: str

    target_code: str = "N/A"
    """Code of the affected asset, `N/A` or `MASS_DELETE` for batch operations."""

    changes: Optional[List[FieldChange]] = None
