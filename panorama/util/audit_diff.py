"""
Audit diff helpers.

Edits to an asset are recorded in the audit log as a list of before/after
pairs over a fixed set of tracked fields. Some of those fields are
critical: changing any of them requires the editor to give a written
justification before the edit is saved.
"""

from typing import Any, List, Mapping

from panorama.models.log import FieldChange

TRACKED_FIELDS = (
    "name",
    "location",
    "state",
    "holder",
    "category",
    "description",
    "acquisition_year",
    "door",
    "holder_presence",
    "observation",
)

CRITICAL_FIELDS = frozenset({
    "location",
    "acquisition_year",
    "name",
    "category",
    "door",
    "state",
    "holder_presence",
})


def compute_changes(before: Mapping[str, Any], after: Mapping[str, Any]) -> List[FieldChange]:
    """
    Compares the tracked fields of two versions of an asset.

    Args:
        before (Mapping[str, Any]): Stored asset document.
        after (Mapping[str, Any]): Edited asset data.

    Returns:
        List[FieldChange]: One entry per tracked field whose value differs,
        in `TRACKED_FIELDS` order.
    """

    changes = []
    for field in TRACKED_FIELDS:
        old_value = before.get(field)
        new_value = after.get(field)
        # Missing and empty values are the same for string fields.
        if (old_value or "") != (new_value or ""):
            changes.append(FieldChange(field=field, before=old_value, after=new_value))
    return changes


def requires_justification(changes: List[FieldChange]) -> bool:
    return any(change.field in CRITICAL_FIELDS for change in changes)
