"""
Dashboard service.

Key figures and distributions over the active (non-archived) assets:
totals by condition, the total value of the inventory, counts by state and
by acquisition year, and a configurable pivot counting assets along one
field grouped by another.
"""

import re
from collections import Counter, defaultdict
from typing import Any, Dict, List

from panorama.models.asset import AssetState
from panorama.services.assets_service import list_active_assets

PIVOT_FIELDS = {
    "location": "Localisation",
    "category": "Catégorie",
    "acquisition_year": "Année d'acquisition",
    "state": "État",
    "holder_presence": "Présence Détenteur",
}

BAD_STATES = {AssetState.DEFECTIVE.value, AssetState.DEPRECIATED.value, AssetState.RETIRED.value}

UNDEFINED = "Non défini"

_AMOUNT_KEY = re.compile(r"prix|valeur|montant|cout|cost|price|value", re.IGNORECASE)


def parse_amount(raw: Any) -> float:
    """
    Parses a free-text amount such as ``"1 250,50 FCFA"``.

    Returns 0.0 when no number can be read.
    """

    cleaned = re.sub(r"[^0-9.,-]", "", str(raw)).replace(",", ".", 1)
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def asset_value(asset: Dict[str, Any]) -> float:
    """
    Value of an asset: its `amount` when set, else the first custom
    attribute whose key looks like a price.
    """

    if asset.get("amount") is not None:
        return float(asset["amount"])
    for key, raw in (asset.get("custom_attributes") or {}).items():
        if _AMOUNT_KEY.search(key):
            return parse_amount(raw)
    return 0.0


def pivot(assets: List[Dict[str, Any]], x_axis: str, group_by: str) -> Dict[str, Any]:
    """
    Counts assets by `x_axis` value, split by `group_by` value.

    Returns:
        dict: `rows` (one mapping per x value, sorted, with a count per
        group) and `groups` (every group value, sorted).
    """

    table: Dict[str, Counter] = defaultdict(Counter)
    groups = set()
    for asset in assets:
        x_value = asset.get(x_axis) or UNDEFINED
        group_value = asset.get(group_by) or UNDEFINED
        table[x_value][group_value] += 1
        groups.add(group_value)

    rows = [{"name": x_value, **dict(counts)} for x_value, counts in sorted(table.items())]
    return {"rows": rows, "groups": sorted(groups)}


def compute_dashboard(assets: List[Dict[str, Any]], x_axis: str = "location", group_by: str = "state") -> Dict[str, Any]:
    active = [asset for asset in assets if not asset.get("is_archived")]

    by_state = Counter(asset.get("state") for asset in active)
    by_year = Counter(asset.get("acquisition_year") for asset in active)

    return {
        "kpis": {
            "total_assets": len(active),
            "good_condition": by_state.get(AssetState.GOOD.value, 0),
            "bad_condition": sum(count for state, count in by_state.items() if state in BAD_STATES),
            "total_value": sum(asset_value(asset) for asset in active),
        },
        "by_state": [{"name": state, "value": count} for state, count in by_state.most_common() if count > 0],
        "by_year": [{"name": year, "count": by_year[year]} for year in sorted(by_year, key=str)],
        "pivot": pivot(active, x_axis, group_by),
    }


async def get_dashboard(x_axis: str = "location", group_by: str = "state") -> Dict[str, Any]:
    if x_axis not in PIVOT_FIELDS or group_by not in PIVOT_FIELDS:
        raise ValueError(f"Pivot fields must be among: {', '.join(PIVOT_FIELDS)}")
    return compute_dashboard(await list_active_assets(), x_axis, group_by)
