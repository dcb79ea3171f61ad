"""
Spreadsheet helpers.

Reading and writing of the `.xlsx` workbooks used to import and export the
inventory. The column schema is fixed for the core fields and extended with
one column per active custom field; the labels of the optional core fields
follow the application configuration.

Responsibilities:
    - Compute the ordered column headers for a configuration.
    - Convert a stored asset into an export row.
    - Read the first sheet of an uploaded workbook into header-keyed rows.
    - Write rows into a new workbook.
"""

import io
from datetime import date, datetime
from typing import Any, Dict, List, Tuple

from openpyxl import Workbook, load_workbook

from panorama.models.config import AppConfig

CODE_COLUMN = "Code Inventaire"
NAME_COLUMN = "Nom"
CATEGORY_COLUMN = "Catégorie"
LOCATION_COLUMN = "Localisation"
YEAR_COLUMN = "Année Acquisition"
STATE_COLUMN = "État"
PRESENCE_COLUMN = "Présence Détenteur"

REQUIRED_COLUMNS = (CODE_COLUMN, NAME_COLUMN, CATEGORY_COLUMN, LOCATION_COLUMN)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def column_headers(config: AppConfig) -> List[str]:
    """
    Ordered headers of the import/export schema.

    Optional core fields hidden in the configuration get no column.
    """

    def optional(key):
        return [config.field_label(key)] if config.is_field_visible(key) else []

    headers = [CODE_COLUMN, NAME_COLUMN, CATEGORY_COLUMN, LOCATION_COLUMN, YEAR_COLUMN]
    headers += optional("registration_date")
    headers += [STATE_COLUMN]
    headers += optional("holder")
    headers += [PRESENCE_COLUMN]
    headers += optional("door") + optional("description") + optional("observation")
    headers.extend(field.label for field in config.active_custom_fields())
    return headers


def asset_to_row(asset: Dict[str, Any], config: AppConfig) -> Dict[str, Any]:
    """
    Converts a stored asset into an export row keyed by column header.

    The category is rendered with its description (``AA - Matériel de bureau``).
    """

    custom = asset.get("custom_attributes") or {}
    row = {
        CODE_COLUMN: asset.get("code", ""),
        NAME_COLUMN: asset.get("name", ""),
        CATEGORY_COLUMN: config.category_label(asset.get("category", "")),
        LOCATION_COLUMN: asset.get("location", ""),
        YEAR_COLUMN: asset.get("acquisition_year", ""),
        config.field_label("registration_date"): asset.get("registration_date", ""),
        STATE_COLUMN: asset.get("state", ""),
        config.field_label("holder"): asset.get("holder", ""),
        PRESENCE_COLUMN: asset.get("holder_presence", ""),
        config.field_label("door"): asset.get("door", ""),
        config.field_label("description"): asset.get("description", ""),
        config.field_label("observation"): asset.get("observation", ""),
    }
    for field in config.active_custom_fields():
        row[field.label] = custom.get(field.id, "")
    return row


def template_row(config: AppConfig) -> Dict[str, Any]:
    """Example row of the import template."""
    row = {
        CODE_COLUMN: "2024-EDC-AA-0001",
        NAME_COLUMN: "Agrafeuse géante",
        CATEGORY_COLUMN: "AA - Matériel de bureau",
        LOCATION_COLUMN: "EDC",
        YEAR_COLUMN: "2024",
        config.field_label("registration_date"): "2024-01-01",
        STATE_COLUMN: config.default_state,
        config.field_label("holder"): "Jean Dupont",
        PRESENCE_COLUMN: config.default_holder_presence,
        config.field_label("door"): "101",
        config.field_label("description"): "Description...",
        config.field_label("observation"): "Observation...",
    }
    for field in config.active_custom_fields():
        row[field.label] = "2024-01-01" if field.type == "date" else ""
    return row


def read_rows(content: bytes) -> Tuple[List[str], List[Dict[str, Any]]]:
    """
    Reads the first sheet of an `.xlsx` workbook.

    Args:
        content (bytes): Raw workbook file.

    Returns:
        Tuple[List[str], List[Dict[str, Any]]]: The header row and the data
        rows keyed by header. Rows whose cells are all empty are dropped.

    Raises:
        ValueError: If the workbook cannot be read.
    """

    try:
        workbook = load_workbook(io.BytesIO(content), data_only=True, read_only=True)
    except Exception as e:
        raise ValueError(f"Unreadable workbook: {e}") from e

    sheet = workbook.worksheets[0]
    rows = list(sheet.iter_rows(values_only=True))
    workbook.close()
    if not rows:
        return [], []

    headers = [str(cell).strip() if cell is not None else "" for cell in rows[0]]
    records = []
    for values in rows[1:]:
        if values is None or all(cell is None or cell == "" for cell in values):
            continue
        record = {}
        for header, cell in zip(headers, values):
            if header and cell is not None and cell != "":
                record[header] = cell
        records.append(record)
    return headers, records


def write_workbook(headers: List[str], rows: List[Dict[str, Any]], sheet_title: str) -> bytes:
    """
    Writes rows into a single-sheet workbook.

    Column widths follow the header lengths.
    """

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = sheet_title
    sheet.append(headers)
    for row in rows:
        sheet.append([row.get(header, "") for header in headers])

    for index, header in enumerate(headers, start=1):
        letter = sheet.cell(row=1, column=index).column_letter
        sheet.column_dimensions[letter].width = len(header) + 10

    output = io.BytesIO()
    workbook.save(output)
    return output.getvalue()


def format_cell_date(value: Any) -> str:
    """
    Normalizes a date cell into an ISO `YYYY-MM-DD` string.

    Date cells are formatted, non-blank text is kept as-is and anything else
    yields today's date.
    """

    if isinstance(value, (datetime, date)):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, str) and value.strip():
        return value
    return date.today().isoformat()
