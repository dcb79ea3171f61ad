from typing import List

from fastapi import APIRouter, Depends, HTTPException

from panorama.core.security import get_current_admin
from panorama.schemas.user_schema import UserCreate, UserOut, UserUpdate
from panorama.services import user_service

router = APIRouter()


@router.post("", status_code=201, response_model=UserOut, dependencies=[Depends(get_current_admin)])
async def create_user(user: UserCreate):
    return await user_service.provision_user(user)


@router.get("", response_model=List[UserOut], dependencies=[Depends(get_current_admin)])
async def list_users():
    return await user_service.list_users()


@router.put("/{user_id}", response_model=UserOut, dependencies=[Depends(get_current_admin)])
async def update_user(user_id: str, user: UserUpdate):
    try:
        return await user_service.update_user(user_id, user)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{user_id}", dependencies=[Depends(get_current_admin)])
async def delete_user(user_id: str):
    try:
        return await user_service.delete_user(user_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
