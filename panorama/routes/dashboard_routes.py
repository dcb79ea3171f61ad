from typing import Literal

from fastapi import APIRouter, Depends

from panorama.core.security import require_permission
from panorama.services.dashboard_service import get_dashboard

router = APIRouter()

PivotField = Literal["location", "category", "acquisition_year", "state", "holder_presence"]


@router.get("", dependencies=[Depends(require_permission("can_view_dashboard"))])
async def read_dashboard(x_axis: PivotField = "location", group_by: PivotField = "state"):
    """
    Key figures and distributions of the active inventory.

    Args:
        x_axis: Field counted along the pivot's horizontal axis.
        group_by: Field splitting each pivot column.

    Example:
        >>> GET /dashboard?x_axis=category&group_by=holder_presence
    """

    return await get_dashboard(x_axis, group_by)
