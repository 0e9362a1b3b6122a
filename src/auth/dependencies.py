# Authentication and Authorization Dependencies

from fastapi import Request, Depends
from fastapi.security import HTTPBearer
import logging
import uuid

from sqlmodel.ext.asyncio.session import AsyncSession
from typing import List, Optional

from src.db.redis import token_in_blocklist
from src.db.main import get_session
from src.db.models import User

from .service import UserService
from .utils import decode_token
from src.errors import (
    InvalidToken,
    RevokedToken,
    AccessTokenRequired,
    InsufficientPermission,
    UserNotFound,
)

logger = logging.getLogger(__name__)

# Service for user-related operations
user_service = UserService()


class TokenBearer(HTTPBearer):
    """Base class for JWT token validation.
    Extends FastAPI's HTTPBearer to add custom token validation logic.
    """
    def __init__(self):
        super().__init__(auto_error=False)

    async def __call__(self, request: Request) -> dict:
        """Validate the Bearer token from the Authorization header.

        Returns:
            dict: Decoded token data if valid

        Raises:
            AccessTokenRequired: If no bearer token was sent
            InvalidToken: If token cannot be decoded
            RevokedToken: If token has been put on the blocklist
        """
        creds = await super().__call__(request)
        if creds is None:
            raise AccessTokenRequired("Not authenticated")

        token_data = decode_token(creds.credentials)

        # Check if token has been blocklisted (e.g., after logout)
        if await token_in_blocklist(token_data.get('jti')):
            raise RevokedToken()

        self.verify_token_data(token_data)

        return token_data

    def verify_token_data(self, token_data: dict) -> None:
        """Abstract method for token-specific validation logic."""
        raise NotImplementedError("Please Override this method in child classes")


class AccessTokenBearer(TokenBearer):
    def verify_token_data(self, token_data: dict) -> None:
        if token_data.get("refresh"):
            raise AccessTokenRequired()


def _user_uid(token_data: dict) -> uuid.UUID:
    try:
        return uuid.UUID(str(token_data["user"]["user_uid"]))
    except (KeyError, TypeError, ValueError):
        raise InvalidToken()


async def get_current_user(
    token_details: dict = Depends(AccessTokenBearer()),
    session: AsyncSession = Depends(get_session)
) -> User:
    user = await user_service.get_user_by_uid(_user_uid(token_details), session)
    if user is None:
        raise UserNotFound()

    return user


async def get_optional_current_user(
    request: Request,
    session: AsyncSession = Depends(get_session)
) -> Optional[User]:
    """Same as get_current_user, but anonymous, revoked or unusable tokens yield None."""
    authorization = request.headers.get("Authorization")
    if not authorization or not authorization.startswith("Bearer "):
        return None

    try:
        token_data = decode_token(authorization[7:])
        if token_data.get("refresh"):
            return None
        if await token_in_blocklist(token_data.get('jti')):
            return None
        return await user_service.get_user_by_uid(_user_uid(token_data), session)
    except InvalidToken:
        return None


class RoleChecker:
    """Role-Based Access Control (RBAC) implementation.
    Used as a dependency to protect routes based on user roles.
    """
    def __init__(self, allowed_roles: List[str]) -> None:
        self.allowed_roles = allowed_roles

    async def __call__(self, current_user: User = Depends(get_current_user)) -> bool:
        if current_user.role in self.allowed_roles:
            return True

        logger.info(f"User {current_user.uid} with role {current_user.role} refused")
        raise InsufficientPermission()


# Vouchers are managed by administrators and sellers
discount_manager_checker = RoleChecker(allowed_roles=["ADMIN", "SELLER"])
