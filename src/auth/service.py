from typing import Optional
import uuid

from sqlmodel.ext.asyncio.session import AsyncSession
from sqlmodel import select

from src.db.models import User


class UserService:
    async def get_user_by_uid(self, user_uid: uuid.UUID, session: AsyncSession) -> Optional[User]:
        statement = select(User).where(User.uid == user_uid)
        result = await session.exec(statement)
        return result.first()
