from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession
from typing import List, Optional
from uuid import UUID

from src.db.main import get_session
from src.auth.dependencies import get_current_user, get_optional_current_user
from src.db.models import User
from src.config import Config

from .schemas import AvailableDiscountsResponse, ValidateCodeRequest, ValidateCodeResponse
from .service import VoucherService

user_discount_router = APIRouter()


@user_discount_router.get("/available", response_model=AvailableDiscountsResponse)
async def list_available_discounts(
    limit: int = Query(Config.DEFAULT_AVAILABLE_LIMIT, ge=1, le=Config.MAX_AVAILABLE_LIMIT),
    cart_item_ids: Optional[List[UUID]] = Query(None, alias="cartItemIds"),
    only_shop_discounts: bool = Query(False, alias="onlyShopDiscounts"),
    only_platform_discounts: bool = Query(False, alias="onlyPlatformDiscounts"),
    session: AsyncSession = Depends(get_session),
    current_user: Optional[User] = Depends(get_optional_current_user)
):
    service = VoucherService(session)
    return await service.list_available(
        cart_item_ids,
        limit,
        only_shop=only_shop_discounts,
        only_platform=only_platform_discounts,
        user_uid=current_user.uid if current_user else None
    )


@user_discount_router.post("/validate-code", response_model=ValidateCodeResponse, response_model_exclude_unset=True)
async def validate_discount_code(
    data: ValidateCodeRequest,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    service = VoucherService(session)
    return await service.validate_code(data.code, data.cart_item_ids, current_user.uid)
