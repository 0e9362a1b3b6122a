from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession
from datetime import datetime
from uuid import UUID
from typing import Optional

from src.db.main import get_session
from src.db.models import User
from src.auth.dependencies import get_current_user, discount_manager_checker
from src.config import Config
from src.discounts.constants import (
    DiscountApplyType,
    DiscountStatus,
    DiscountType,
    DisplayType,
    OrderBy,
    SortBy,
    VoucherType,
)
from src.discounts.repository import DiscountFilters
from . import schemas
from .service import ManageDiscountService

manage_discount_router = APIRouter(dependencies=[Depends(discount_manager_checker)])
discount_service = ManageDiscountService()


@manage_discount_router.get("/discounts", response_model=schemas.DiscountListResponse)
async def list_discounts(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(Config.DEFAULT_PAGE_SIZE, ge=1, le=Config.MAX_PAGE_SIZE, description="Discounts per page"),
    name: Optional[str] = Query(None),
    code: Optional[str] = Query(None),
    discount_status: Optional[DiscountStatus] = Query(None, alias="discountStatus"),
    discount_type: Optional[DiscountType] = Query(None, alias="discountType"),
    discount_apply_type: Optional[DiscountApplyType] = Query(None, alias="discountApplyType"),
    voucher_type: Optional[VoucherType] = Query(None, alias="voucherType"),
    display_type: Optional[DisplayType] = Query(None, alias="displayType"),
    is_platform: Optional[bool] = Query(None, alias="isPlatform"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    min_value: Optional[int] = Query(None, alias="minValue", ge=0),
    max_value: Optional[int] = Query(None, alias="maxValue", ge=0),
    shop_id: Optional[UUID] = Query(None, alias="shopId"),
    created_by_id: Optional[UUID] = Query(None, alias="createdById"),
    order_by: OrderBy = Query(OrderBy.DESC, alias="orderBy"),
    sort_by: SortBy = Query(SortBy.CREATED_AT, alias="sortBy"),
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    """
    List vouchers with pagination and filters.

    Sellers must pass their own id as **createdById**; administrators may omit it
    or name any creator.
    """
    filters = DiscountFilters(
        name=name,
        code=code,
        discount_status=discount_status,
        discount_type=discount_type,
        discount_apply_type=discount_apply_type,
        voucher_type=voucher_type,
        display_type=display_type,
        is_platform=is_platform,
        start_date=start_date,
        end_date=end_date,
        min_value=min_value,
        max_value=max_value,
        shop_id=shop_id,
        created_by_id=created_by_id,
    )
    return await discount_service.list_discounts(
        session, current_user, filters, page=page, limit=limit, order_by=order_by, sort_by=sort_by
    )


@manage_discount_router.get("/discounts/{discount_id}", response_model=schemas.DiscountDetailResponse)
async def read_discount(
    discount_id: UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    return await discount_service.get_discount(session, discount_id, current_user)


@manage_discount_router.get("/discounts/{discount_id}/use-case", response_model=schemas.UseCaseResponse)
async def read_discount_use_case(
    discount_id: UUID,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    return await discount_service.get_use_case(session, discount_id, current_user)


@manage_discount_router.post("/discounts", response_model=schemas.DiscountDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_discount(
    data: schemas.DiscountCreate,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    return await discount_service.create_discount(session, data, current_user)


@manage_discount_router.put("/discounts/{discount_id}", response_model=schemas.DiscountDetailResponse)
async def update_discount(
    discount_id: UUID,
    data: schemas.DiscountUpdate,
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    return await discount_service.update_discount(session, discount_id, data, current_user)


@manage_discount_router.delete("/discounts/{discount_id}", response_model=schemas.MessageResponse, status_code=status.HTTP_200_OK)
async def delete_discount(
    discount_id: UUID,
    hard: bool = Query(False, description="Permanently delete (administrators only)"),
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    return await discount_service.delete_discount(session, discount_id, current_user, hard=hard)
