from typing import List

from fastapi import APIRouter, Depends

from panorama.core.security import get_current_admin
from panorama.models.log import Log
from panorama.services.log_service import list_recent_logs

router = APIRouter()


@router.get("", response_model=List[Log], dependencies=[Depends(get_current_admin)])
async def list_logs():
    """The 100 most recent audit entries, newest first."""
    return await list_recent_logs()
