"""
Asset code helpers.

Inventory codes have the form ``YEAR-LOCATION-CATEGORY-SEQUENCE``, for
example ``2024-EDC-AA-0004``. The sequence is per prefix: it is one more
than the highest sequence already used by a code sharing the same
year, location and category, zero-padded to four digits.

Responsibilities:
    - Build the code prefix from the three required fields.
    - Compute the next code for a prefix from the codes already known.
    - Build the partial preview shown while the fields are being filled in.
"""

from typing import Iterable

SEQUENCE_WIDTH = 4


def build_prefix(year: str, location: str, category: str) -> str:
    return f"{year}-{location}-{category}"


def sequence_of(code: str, prefix: str) -> int:
    """
    Returns the numeric sequence of `code` under `prefix`.

    Args:
        code (str): Existing inventory code.
        prefix (str): Code prefix, without the trailing hyphen.

    Returns:
        int: The trailing sequence number, -1 when the code does not belong
        to the prefix and 0 when its tail is not a number.
    """

    head = prefix + "-"
    if not code.startswith(head):
        return -1
    tail = code[len(head):]
    return int(tail) if tail.isdigit() else 0


def next_asset_code(year: str, location: str, category: str, existing_codes: Iterable[str]) -> str:
    """
    Generates the next free inventory code for a year, location and category.

    Args:
        year (str): Acquisition year.
        location (str): Location code.
        category (str): Category code.
        existing_codes (Iterable[str]): Codes of every known asset, archived ones included.

    Returns:
        str: The generated code.

    Example:
        >>> next_asset_code("2024", "EDC", "AA", ["2024-EDC-AA-0001", "2024-EDC-AA-0003"])
        '2024-EDC-AA-0004'
    """

    prefix = build_prefix(year, location, category)
    highest = max((sequence_of(code, prefix) for code in existing_codes), default=0)
    return f"{prefix}-{max(highest, 0) + 1:0{SEQUENCE_WIDTH}d}"


def preview_code(year: str, location: str, category: str, existing_codes: Iterable[str]) -> str:
    """
    Builds the code preview for a form that may still be incomplete.

    The parts that are present are joined with hyphens; the sequence is only
    appended once the year, location and category are all known.
    """

    if year and location and category:
        return next_asset_code(year, location, category, existing_codes)
    return "-".join(part for part in (year, location, category) if part)
