"""
Audit log service.

Appends entries to the `logs` collection and reads back the most recent
window. Entries are never updated or deleted by the application.

A failure to write a log entry is printed and swallowed: the operation
that triggered it has already been applied and is not reported as failed.
"""

import time
from typing import Any, Iterable, List, Optional

from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from panorama.core.config import LOG_WINDOW
from panorama.db.client import get_db
from panorama.models.log import FieldChange, Log, LogAction
from panorama.models.user import User


def sanitize_changes(changes: Optional[Iterable[Any]]) -> Optional[List[dict]]:
    """
    Normalizes change records before storage.

    Missing field names become ``Inconnu`` and missing values are stored as null.
    """

    if changes is None:
        return None

    sanitized = []
    for change in changes:
        if isinstance(change, FieldChange):
            change = change.model_dump()
        sanitized.append({
            "field": change.get("field") or "Inconnu",
            "before": change.get("before"),
            "after": change.get("after"),
        })
    return sanitized


async def add_log(
    action: LogAction,
    description: str,
    actor: Optional[User],
    target_code: Optional[str] = None,
    changes: Optional[Iterable[Any]] = None,
) -> Optional[dict]:
    """
    Appends one entry to the audit log.

    Args:
        action (LogAction): Kind of operation.
        description (str): Human-readable description or edit justification.
        actor (Optional[User]): User performing the operation.
        target_code (Optional[str]): Code of the affected asset.
        changes (Optional[Iterable[Any]]): Field-level changes of an update.

    Returns:
        Optional[dict]: The stored entry, or None if the write failed.
    """

    timestamp = int(time.time() * 1000)
    entry = {
        "id": str(timestamp),
        "timestamp": timestamp,
        "user_id": actor.id if actor and actor.id else "ID_INCONNU",
        "user_email": actor.email if actor else "email_inconnu",
        "user_name": (actor.display_name if actor else "") or "Utilisateur Inconnu",
        "action": LogAction(action).value,
        "description": description,
        "target_code": target_code or "N/A",
    }
    sanitized = sanitize_changes(changes)
    if sanitized is not None:
        entry["changes"] = sanitized

    try:
        db = get_db()
        await db["logs"].insert_one(dict(entry))
    except PyMongoError as e:
        print(f"❌ [ERROR] ERREUR LOG: {e}")
        return None
    return entry


async def list_recent_logs(limit: int = LOG_WINDOW) -> List[Log]:
    """Returns the newest `limit` entries, most recent first."""
    db = get_db()
    docs = await db["logs"].find().sort("timestamp", DESCENDING).limit(limit).to_list(length=limit)
    return [Log.model_validate({k: v for k, v in doc.items() if k != "_id"}) for doc in docs]
