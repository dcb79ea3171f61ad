"""
Configuration routes.

Every signed-in user reads the configuration (taxonomy, locations, states,
custom fields, field labels); only administrators replace it.
"""

from fastapi import APIRouter, Depends

from panorama.core.security import get_current_admin, get_current_user
from panorama.models.config import AppConfig
from panorama.models.user import User
from panorama.services import config_service

router = APIRouter()


@router.get("", response_model=AppConfig, dependencies=[Depends(get_current_user)])
async def read_config():
    return await config_service.get_config()


@router.put("", response_model=AppConfig)
async def replace_config(config: AppConfig, admin: User = Depends(get_current_admin)):
    """
    Replace the whole configuration.

    The change is recorded in the audit log as a `CONFIG` entry.
    """

    return await config_service.update_config(config, admin)
