"""
Assets service.

This module defines the core business logic for managing inventory assets
within EDC Panorama: the filtered listing, creation with code generation,
audited edits, archival and restoration, permanent deletion and the
spreadsheet export.

Every mutation is recorded in the audit log. Archival is a soft delete
(the record stays in the `assets` collection with `is_archived` set);
permanent deletion only applies to archived records and needs an explicit
confirmation.
"""

import re
from datetime import date
from typing import List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import HTTPException
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from panorama.core.config import DELETE_CHUNK_SIZE, ITEMS_PER_PAGE
from panorama.db.client import get_db
from panorama.models.asset import Asset, AssetState
from panorama.models.log import LogAction
from panorama.models.user import User
from panorama.schemas.asset import AssetCreate, AssetUpdate
from panorama.services.config_service import get_config
from panorama.services.log_service import add_log
from panorama.util.asset_codes import next_asset_code, preview_code
from panorama.util.audit_diff import compute_changes, requires_justification
from panorama.util.spreadsheet import asset_to_row, column_headers, write_workbook


def asset_to_response(doc: dict) -> dict:
    asset = dict(doc)
    asset["id"] = str(asset.pop("_id"))
    return asset


def _object_id(asset_id: str) -> ObjectId:
    try:
        return ObjectId(asset_id)
    except (InvalidId, TypeError):
        raise ValueError("Asset not found")


async def _find_asset(asset_id: str) -> dict:
    db = get_db()
    doc = await db["assets"].find_one({"_id": _object_id(asset_id)})
    if not doc:
        raise ValueError("Asset not found")
    return doc


async def all_asset_codes() -> List[str]:
    """Codes of every asset, archived ones included."""
    db = get_db()
    return await db["assets"].distinct("code")


def build_listing_query(
    search: Optional[str] = None,
    location: Optional[str] = None,
    category: Optional[str] = None,
    state: Optional[str] = None,
) -> dict:
    """
    Builds the MongoDB filter of the active asset listing.

    The free-text search matches code, name, holder and location
    case-insensitively; the other filters are exact and all criteria
    are combined with AND.
    """

    query: dict = {"is_archived": {"$ne": True}}
    if search:
        pattern = {"$regex": re.escape(search.strip()), "$options": "i"}
        query["$or"] = [{field: pattern} for field in ("code", "name", "holder", "location")]
    if location:
        query["location"] = location
    if category:
        query["category"] = category
    if state:
        query["state"] = state
    return query


async def list_assets(
    search: Optional[str] = None,
    location: Optional[str] = None,
    category: Optional[str] = None,
    state: Optional[str] = None,
    page: int = 1,
) -> dict:
    """
    Returns one page of the filtered active listing, sorted by code.

    Args:
        search (Optional[str]): Free-text search.
        location (Optional[str]): Exact location filter.
        category (Optional[str]): Exact category filter.
        state (Optional[str]): Exact state filter.
        page (int): 1-based page number, `ITEMS_PER_PAGE` items per page.

    Returns:
        dict: `items`, `total`, `page` and `pages`.
    """

    db = get_db()
    query = build_listing_query(search, location, category, state)
    total = await db["assets"].count_documents(query)
    pages = (total + ITEMS_PER_PAGE - 1) // ITEMS_PER_PAGE
    cursor = db["assets"].find(query).sort("code", ASCENDING).skip((page - 1) * ITEMS_PER_PAGE).limit(ITEMS_PER_PAGE)
    docs = await cursor.to_list(length=ITEMS_PER_PAGE)
    return {
        "items": [asset_to_response(doc) for doc in docs],
        "total": total,
        "page": page,
        "pages": pages,
    }


async def list_active_assets(**filters) -> List[dict]:
    """Every active asset matching the listing filters, sorted by code."""
    db = get_db()
    docs = await db["assets"].find(build_listing_query(**filters)).sort("code", ASCENDING).to_list(length=None)
    return [asset_to_response(doc) for doc in docs]


async def list_archived_assets() -> List[dict]:
    db = get_db()
    docs = await db["assets"].find({"is_archived": True}).sort("code", ASCENDING).to_list(length=None)
    return [asset_to_response(doc) for doc in docs]


async def get_asset(asset_id: str) -> dict:
    return asset_to_response(await _find_asset(asset_id))


async def preview_next_code(year: str, location: str, category: str) -> dict:
    codes = await all_asset_codes()
    return {
        "code": preview_code(year, location, category, codes),
        "complete": bool(year and location and category),
    }


async def create_asset(data: AssetCreate, actor: User) -> dict:
    """
    Creates an asset and derives its inventory code.

    Raises:
        HTTPException:
            - 400: If location, category, name or acquisition year is missing.
            - 409: If the generated code was taken concurrently.
    """

    if not data.location or not data.category or not data.name:
        raise HTTPException(status_code=400, detail="Veuillez remplir les champs obligatoires (Localisation, Catégorie, Nom)")
    if not data.acquisition_year:
        raise HTTPException(
            status_code=400,
            detail="Impossible de générer le code complet. Vérifiez l'année, la localisation et la catégorie.",
        )

    config = await get_config()
    values = data.model_dump()
    values["state"] = data.state or config.default_state
    values["holder_presence"] = data.holder_presence or config.default_holder_presence
    values["registration_date"] = data.registration_date or date.today().isoformat()
    values["code"] = next_asset_code(data.acquisition_year, data.location, data.category, await all_asset_codes())
    values["is_archived"] = False
    asset = Asset.model_validate(values).model_dump()

    db = get_db()
    try:
        result = await db["assets"].insert_one(asset)
    except DuplicateKeyError:
        raise HTTPException(status_code=409, detail=f"Le code {asset['code']} existe déjà, veuillez réessayer.")

    await add_log(LogAction.CREATE, f"Création par {actor.display_name}", actor, asset["code"])
    asset["_id"] = result.inserted_id
    return asset_to_response(asset)


async def update_asset(asset_id: str, data: AssetUpdate, actor: User) -> dict:
    """
    Applies an edit to an asset and records the field changes.

    The inventory code is never regenerated. When a critical field changes
    the edit must carry a justification, which becomes the log description.

    Raises:
        ValueError: If the asset does not exist.
        HTTPException: 422 if a critical field changes without justification.
    """

    current = await _find_asset(asset_id)

    # Fields left out of the payload keep their stored value.
    values = data.model_dump(exclude={"reason"}, exclude_unset=True)
    for key in ("state", "holder_presence", "registration_date"):
        if not values.get(key):
            values.pop(key, None)

    changes = compute_changes(current, {**current, **values})
    reason = (data.reason or "").strip()
    if requires_justification(changes) and not reason:
        raise HTTPException(
            status_code=422,
            detail={
                "message": "Une justification est requise pour modifier un champ critique.",
                "fields": [change.field for change in changes],
            },
        )

    db = get_db()
    await db["assets"].update_one({"_id": current["_id"]}, {"$set": values})
    await add_log(
        LogAction.UPDATE,
        reason or f"Modification par {actor.display_name}",
        actor,
        current["code"],
        changes,
    )
    return await get_asset(asset_id)


async def archive_asset(asset_id: str, actor: User) -> dict:
    """Soft-deletes an asset: archived and marked as retired."""
    current = await _find_asset(asset_id)
    db = get_db()
    await db["assets"].update_one(
        {"_id": current["_id"]},
        {"$set": {"is_archived": True, "state": AssetState.RETIRED.value}},
    )
    await add_log(LogAction.DELETE, f"Archivage par {actor.display_name}", actor, current["code"])
    return await get_asset(asset_id)


async def restore_asset(asset_id: str, actor: User) -> dict:
    current = await _find_asset(asset_id)
    db = get_db()
    await db["assets"].update_one({"_id": current["_id"]}, {"$set": {"is_archived": False}})
    await add_log(LogAction.UPDATE, f"Restauration par {actor.display_name}", actor, current["code"])
    return await get_asset(asset_id)


async def delete_asset_permanently(asset_id: str, confirm: bool, actor: User) -> dict:
    """
    Removes an archived asset for good.

    Only assets already in the trash can be deleted permanently.

    Raises:
        HTTPException: 400 if the asset is not archived or `confirm` is not set.
        ValueError: If the asset does not exist.
    """

    current = await _find_asset(asset_id)
    if not current.get("is_archived"):
        raise HTTPException(
            status_code=400,
            detail=f"L'actif {current['code']} doit être archivé avant sa suppression définitive.",
        )
    if not confirm:
        raise HTTPException(
            status_code=400,
            detail=f"La suppression DÉFINITIVE de l'actif {current['code']} est irréversible et doit être confirmée.",
        )

    db = get_db()
    await db["assets"].delete_one({"_id": current["_id"]})
    await add_log(LogAction.DELETE, f"Suppression DÉFINITIVE par {actor.display_name}", actor, current["code"])
    return {"message": f"Actif {current['code']} supprimé définitivement."}


async def empty_trash(actor: User) -> int:
    """
    Permanently removes every archived asset.

    Deletions are sent in chunks of `DELETE_CHUNK_SIZE` ids. A failure stops
    the loop; chunks already deleted stay deleted.

    Returns:
        int: Number of assets removed.
    """

    db = get_db()
    archived = await db["assets"].find({"is_archived": True}, {"_id": 1}).to_list(length=None)
    ids = [doc["_id"] for doc in archived]
    if not ids:
        return 0

    removed = 0
    try:
        for start in range(0, len(ids), DELETE_CHUNK_SIZE):
            chunk = ids[start:start + DELETE_CHUNK_SIZE]
            result = await db["assets"].delete_many({"_id": {"$in": chunk}})
            removed += result.deleted_count
    except PyMongoError as e:
        print(f"❌ [ERROR] Erreur vidage corbeille: {e}")
        raise HTTPException(
            status_code=500,
            detail=f"Erreur lors du vidage de la corbeille: {e} ({removed} éléments supprimés)",
        )

    await add_log(
        LogAction.DELETE,
        f"VIDAGE CORBEILLE ({len(ids)} éléments) par {actor.display_name}",
        actor,
        "MASS_DELETE",
    )
    return removed


async def export_assets(**filters) -> bytes:
    """
    Exports the filtered active listing as an `.xlsx` workbook.
    """

    config = await get_config()
    assets = await list_active_assets(**filters)
    rows = [asset_to_row(asset, config) for asset in assets]
    return write_workbook(column_headers(config), rows, "Inventaire EDC")
