from fastapi import APIRouter, Depends

from panorama.core.security import get_current_user
from panorama.models.user import User
from panorama.schemas.user_schema import LoginRequest, ThemeUpdate, TokenResponse, UserOut
from panorama.services import user_service

router = APIRouter()


@router.post("/token", response_model=TokenResponse)
async def login(request: LoginRequest):
    return await user_service.sign_in(request.email, request.password)


@router.get("/me", response_model=UserOut)
async def read_me(user: User = Depends(get_current_user)):
    return user_service.user_to_out(user)


@router.put("/me/theme", response_model=UserOut)
async def update_theme(request: ThemeUpdate, user: User = Depends(get_current_user)):
    return await user_service.set_theme(user, request.theme)
