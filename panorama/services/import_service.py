"""
Import service.

Bulk import of assets from an `.xlsx` workbook following the export column
schema. The rows are reconciled against the live inventory before anything
is written:

    - A workbook missing a required column is rejected as a whole.
    - Rows with a blank code are ignored.
    - A code repeated inside the file keeps its first occurrence only.
    - A code already present in the inventory is skipped.
    - Category codes are normalized and checked against the taxonomy; a
      single unknown category aborts the whole import.

Accepted rows are then upserted one by one, keyed by code.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from fastapi import HTTPException
from pymongo.errors import PyMongoError

from panorama.db.client import get_db
from panorama.models.asset import Asset
from panorama.models.config import AppConfig
from panorama.models.log import LogAction
from panorama.models.user import User
from panorama.services.assets_service import all_asset_codes
from panorama.services.config_service import get_config
from panorama.services.log_service import add_log
from panorama.util.spreadsheet import (
    CATEGORY_COLUMN,
    CODE_COLUMN,
    LOCATION_COLUMN,
    NAME_COLUMN,
    PRESENCE_COLUMN,
    REQUIRED_COLUMNS,
    STATE_COLUMN,
    YEAR_COLUMN,
    column_headers,
    format_cell_date,
    read_rows,
    template_row,
    write_workbook,
)

MAX_REPORTED_ERRORS = 10


@dataclass
class ImportPlan:
    """Outcome of reconciling the rows of a workbook with the inventory."""

    assets: List[dict] = field(default_factory=list)
    already_existing: int = 0
    duplicates_in_file: int = 0
    errors: List[str] = field(default_factory=list)


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def normalize_category(raw: Any) -> str:
    """
    Extracts the category code from a cell such as ``AA - Matériel de bureau``.

    The code is the text before the first hyphen, or else before the first
    space, upper-cased.
    """

    text = _text(raw)
    if "-" in text:
        text = text.split("-")[0]
    elif " " in text:
        text = text.split(" ")[0]
    return text.strip().upper()


def missing_columns(headers: Iterable[str]) -> List[str]:
    present = set(headers)
    return [column for column in REQUIRED_COLUMNS if column not in present]


def row_to_asset(row: Dict[str, Any], code: str, category: str, config: AppConfig) -> dict:
    """Builds the asset document of an accepted row."""
    asset = Asset(
        code=code,
        name=_text(row.get(NAME_COLUMN)),
        category=category,
        location=_text(row.get(LOCATION_COLUMN)),
        acquisition_year=_text(row.get(YEAR_COLUMN)),
        state=_text(row.get(STATE_COLUMN)) or config.default_state,
        holder_presence=_text(row.get(PRESENCE_COLUMN)) or config.default_holder_presence,
        registration_date=format_cell_date(row.get(config.field_label("registration_date"))),
        holder=_text(row.get(config.field_label("holder"))),
        door=_text(row.get(config.field_label("door"))),
        description=_text(row.get(config.field_label("description"))),
        observation=_text(row.get(config.field_label("observation"))),
    )
    for custom in config.custom_fields:
        if custom.label in row:
            asset.custom_attributes[custom.id] = _text(row[custom.label])
    return asset.model_dump()


def reconcile_rows(rows: List[Dict[str, Any]], existing_codes: Iterable[str], config: AppConfig) -> ImportPlan:
    """
    Sorts the rows of a workbook into new assets, skipped duplicates and errors.

    Args:
        rows (List[Dict[str, Any]]): Data rows keyed by column header.
        existing_codes (Iterable[str]): Codes already in the inventory.
        config (AppConfig): Configuration holding the category taxonomy.

    Returns:
        ImportPlan: The assets to write and the skip counters. Validation
        errors reference spreadsheet line numbers (the header is line 1).
    """

    plan = ImportPlan()
    existing = set(existing_codes)
    seen = set()

    for index, row in enumerate(rows):
        code = _text(row.get(CODE_COLUMN))
        if not code:
            continue

        if code in seen:
            plan.duplicates_in_file += 1
            continue
        seen.add(code)

        if code in existing:
            plan.already_existing += 1
            continue

        category = normalize_category(row.get(CATEGORY_COLUMN))
        if category not in config.categories:
            plan.errors.append(f"Ligne {index + 2}: La catégorie '{category}' n'existe pas.")

        plan.assets.append(row_to_asset(row, code, category, config))

    return plan


def summary_message(plan: ImportPlan, imported: int) -> str:
    if imported == 0:
        message = "Aucun NOUVEL actif trouvé."
        if plan.already_existing:
            message += f"\n- {plan.already_existing} actifs existaient déjà."
        if plan.duplicates_in_file:
            message += f"\n- {plan.duplicates_in_file} doublons dans le fichier Excel."
        return message
    return (
        "Importation réussie !\n\n"
        f"- {imported} actifs ajoutés.\n"
        f"- {plan.already_existing} ignorés (déjà existants).\n"
        f"- {plan.duplicates_in_file} doublons internes ignorés."
    )


async def import_workbook(content: bytes, actor: User) -> dict:
    """
    Imports the assets of an uploaded workbook.

    Args:
        content (bytes): Raw `.xlsx` file.
        actor (User): Administrator running the import.

    Returns:
        dict: Counters and the summary message (see `ImportReport`).

    Raises:
        HTTPException:
            - 400: Unreadable or empty workbook, or missing required columns.
            - 422: Unknown categories; nothing is written.
            - 500: A write failed; earlier rows stay written.
    """

    try:
        headers, rows = read_rows(content)
    except ValueError as e:
        print(f"❌ [ERROR] Erreur lecture Excel: {e}")
        raise HTTPException(status_code=400, detail="Erreur critique lors de la lecture du fichier Excel.")

    if not rows:
        raise HTTPException(status_code=400, detail="Le fichier semble vide ou illisible.")

    missing = missing_columns(headers)
    if missing:
        raise HTTPException(
            status_code=400,
            detail=(
                "ERREUR FORMAT : Le fichier ne correspond pas au modèle attendu.\n\n"
                f"Colonnes manquantes : {', '.join(missing)}\n\n"
                "Veuillez utiliser le modèle d'import."
            ),
        )

    config = await get_config()
    plan = reconcile_rows(rows, await all_asset_codes(), config)

    if plan.errors:
        raise HTTPException(
            status_code=422,
            detail={
                "message": "IMPORTATION ANNULÉE : Erreurs détectées.",
                "errors": plan.errors[:MAX_REPORTED_ERRORS],
            },
        )

    if not plan.assets:
        return {
            "imported": 0,
            "already_existing": plan.already_existing,
            "duplicates_in_file": plan.duplicates_in_file,
            "message": summary_message(plan, 0),
        }

    db = get_db()
    imported = 0
    try:
        for asset in plan.assets:
            await db["assets"].update_one({"code": asset["code"]}, {"$set": asset}, upsert=True)
            imported += 1
    except PyMongoError as e:
        print(f"❌ [ERROR] Import interrompu après {imported} actifs: {e}")
        await add_log(LogAction.CONFIG, f"Import Excel interrompu : {imported} éléments par {actor.first_name}.", actor)
        raise HTTPException(
            status_code=500,
            detail=f"Import interrompu après {imported} actifs importés : {e}",
        )

    await add_log(LogAction.CONFIG, f"Import Excel : {imported} éléments par {actor.first_name}.", actor)
    return {
        "imported": imported,
        "already_existing": plan.already_existing,
        "duplicates_in_file": plan.duplicates_in_file,
        "message": summary_message(plan, imported),
    }


async def import_template() -> bytes:
    """Workbook with the import columns and one example row."""
    config = await get_config()
    return write_workbook(column_headers(config), [template_row(config)], "Modèle Import")
