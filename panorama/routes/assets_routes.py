"""
Asset routes.

This module defines the API endpoints related to inventory assets: the
filtered listing, code preview, creation, audited edits, archival,
the administrator trash (archived listing, restoration, permanent deletion,
emptying) and the spreadsheet import and export.

Each route delegates to the service layer (`panorama.services.assets_service`
and `panorama.services.import_service`) and is guarded by the permission
it requires.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile

from panorama.core.security import get_current_admin, require_permission
from panorama.models.user import User
from panorama.schemas.asset import AssetCreate, AssetPage, AssetResponse, AssetUpdate, CodePreview, ImportReport
from panorama.services import assets_service, import_service
from panorama.util.spreadsheet import XLSX_MEDIA_TYPE

router = APIRouter()


def _xlsx_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("", response_model=AssetPage)
async def list_assets_route(
    search: Optional[str] = None,
    location: Optional[str] = None,
    category: Optional[str] = None,
    state: Optional[str] = None,
    page: int = Query(1, ge=1),
    user: User = Depends(require_permission("can_read_list")),
):
    """
    List active assets.

    Archived assets are never listed here. Filters are combined with AND;
    `search` matches code, name, holder and location case-insensitively.

    Example:
        >>> GET /assets?search=agrafeuse&location=EDC&page=2
    """

    return await assets_service.list_assets(search, location, category, state, page)


@router.get("/next-code", response_model=CodePreview)
async def next_code_route(
    year: str = "",
    location: str = "",
    category: str = "",
    user: User = Depends(require_permission("can_create")),
):
    """
    Preview the inventory code a new asset would receive.

    Example:
        >>> GET /assets/next-code?year=2024&location=EDC&category=AA
        {"code": "2024-EDC-AA-0004", "complete": true}
    """

    return await assets_service.preview_next_code(year, location, category)


@router.get("/export")
async def export_assets_route(
    search: Optional[str] = None,
    location: Optional[str] = None,
    category: Optional[str] = None,
    state: Optional[str] = None,
    user: User = Depends(require_permission("can_export")),
):
    """
    Download the filtered active listing as an `.xlsx` workbook.
    """

    content = await assets_service.export_assets(search=search, location=location, category=category, state=state)
    return _xlsx_response(content, f"Inventaire_EDC_{date.today().isoformat()}.xlsx")


@router.get("/import-template")
async def import_template_route(admin: User = Depends(get_current_admin)):
    """Download the import template workbook."""
    return _xlsx_response(await import_service.import_template(), "Modele_Import_EDC.xlsx")


@router.post("/import", response_model=ImportReport)
async def import_assets_route(file: UploadFile = File(...), admin: User = Depends(get_current_admin)):
    """
    Import assets from an `.xlsx` workbook.

    The whole batch is rejected when a required column is missing or when
    a row references an unknown category. Codes already in the inventory
    and repeated codes are skipped and counted.

    Returns:
        ImportReport: Counters and the summary message.
    """

    if not file.filename or not file.filename.lower().endswith((".xlsx", ".xlsm")):
        raise HTTPException(status_code=400, detail="Veuillez fournir un fichier Excel (.xlsx).")
    content = await file.read()
    return await import_service.import_workbook(content, admin)


@router.get("/archived", response_model=List[AssetResponse])
async def list_archived_route(admin: User = Depends(get_current_admin)):
    """List archived assets (the trash)."""
    return await assets_service.list_archived_assets()


@router.delete("/archived")
async def empty_trash_route(admin: User = Depends(get_current_admin)):
    """
    Permanently delete every archived asset.

    Returns:
        dict: Number of deleted assets.
    """

    removed = await assets_service.empty_trash(admin)
    if removed == 0:
        return {"deleted": 0, "message": "La corbeille est déjà vide."}
    return {"deleted": removed, "message": "Corbeille vidée avec succès."}


@router.post("", status_code=201, response_model=AssetResponse)
async def create_asset_route(data: AssetCreate, user: User = Depends(require_permission("can_create"))):
    """
    Create an asset.

    The inventory code is derived from the acquisition year, location and
    category.

    Example:
        >>> POST /assets
        {
            "name": "Agrafeuse géante",
            "category": "AA",
            "location": "EDC",
            "acquisition_year": "2024"
        }
    """

    return await assets_service.create_asset(data, user)


@router.get("/{asset_id}", response_model=AssetResponse)
async def get_asset_route(asset_id: str, user: User = Depends(require_permission("can_read_list"))):
    try:
        return await assets_service.get_asset(asset_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.put("/{asset_id}", response_model=AssetResponse)
async def update_asset_route(asset_id: str, data: AssetUpdate, user: User = Depends(require_permission("can_update"))):
    """
    Edit an asset.

    Changing a critical field (location, acquisition year, name, category,
    door, state or holder presence) requires a `reason`; without one the
    edit is rejected with 422 and nothing is written.
    """

    try:
        return await assets_service.update_asset(asset_id, data, user)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{asset_id}", response_model=AssetResponse)
async def archive_asset_route(asset_id: str, user: User = Depends(require_permission("can_delete"))):
    """Archive an asset (soft delete)."""
    try:
        return await assets_service.archive_asset(asset_id, user)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{asset_id}/restore", response_model=AssetResponse)
async def restore_asset_route(asset_id: str, admin: User = Depends(get_current_admin)):
    """Restore an archived asset."""
    try:
        return await assets_service.restore_asset(asset_id, admin)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{asset_id}/permanent")
async def delete_permanently_route(asset_id: str, confirm: bool = False, admin: User = Depends(get_current_admin)):
    """
    Permanently delete an asset.

    Irreversible; only archived assets can be deleted and the call must
    carry `confirm=true`.

    Example:
        >>> DELETE /assets/65f0c0ffee/permanent?confirm=true
    """

    try:
        return await assets_service.delete_asset_permanently(asset_id, confirm, admin)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
