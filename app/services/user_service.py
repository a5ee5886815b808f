from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.database import bounded
from app.errors import NotFoundError
from app.repositories.user_repo import UserRepository
from app.schemas.user import UserProfileOut


class UserService:
    def __init__(self, settings: Settings):
        self.settings = settings
        self.repo = UserRepository()

    @bounded
    async def get_profile(self, db: AsyncSession) -> UserProfileOut:
        user = await self.repo.get(db, self.settings.owner_id)
        if user is None:
            raise NotFoundError("User not found")
        return UserProfileOut.model_validate(user)
