"""
Configuration service.

Reads and replaces the `system_config` singleton document holding the
category taxonomy, locations, states, custom fields and core field labels.
"""

from panorama.db.client import get_db
from panorama.models.config import AppConfig, default_config
from panorama.models.log import LogAction
from panorama.models.user import User
from panorama.services.log_service import add_log

CONFIG_COLLECTION = "parametre"
CONFIG_DOCUMENT_ID = "system_config"


async def get_config() -> AppConfig:
    """
    Returns the stored configuration, or the defaults when none was saved.
    """

    db = get_db()
    doc = await db[CONFIG_COLLECTION].find_one({"_id": CONFIG_DOCUMENT_ID})
    if not doc:
        return default_config()
    doc.pop("_id", None)
    return AppConfig.model_validate(doc)


async def update_config(config: AppConfig, actor: User) -> AppConfig:
    """
    Replaces the whole configuration document and records it in the audit log.
    """

    db = get_db()
    await db[CONFIG_COLLECTION].replace_one(
        {"_id": CONFIG_DOCUMENT_ID},
        {"_id": CONFIG_DOCUMENT_ID, **config.model_dump()},
        upsert=True,
    )
    await add_log(LogAction.CONFIG, f"Mise à jour des paramètres par {actor.display_name}", actor)
    return config
