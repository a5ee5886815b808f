from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.database import get_db
from app.schemas.common import DataResponse
from app.schemas.user import UserProfileOut
from app.services.user_service import UserService

router = APIRouter(tags=["Users"])


def get_user_service(settings: Settings = Depends(get_settings)) -> UserService:
    return UserService(settings)


@router.get("/user-profile", response_model=DataResponse[UserProfileOut])
async def get_user_profile(
    db: AsyncSession = Depends(get_db),
    service: UserService = Depends(get_user_service),
):
    return {"data": await service.get_profile(db)}
