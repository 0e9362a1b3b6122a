from typing import Optional
import uuid
import logging

from sqlmodel.ext.asyncio.session import AsyncSession

from src.db.models import Discount, User
from src.discounts import guard
from src.discounts.classifier import apply_use_case, classify, use_case_profile
from src.discounts.constants import OrderBy, SortBy
from src.discounts.repository import DiscountFilters, DiscountRepository, RecordState
from src.discounts.validation import (
    IMMUTABLE_FIELDS,
    check_immutable_fields,
    discount_state,
    ensure_valid,
)
from src.errors import DiscountCodeAlreadyExists, DiscountNotFound, InsufficientPermission
from .schemas import (
    DiscountCreate,
    DiscountDetailResponse,
    DiscountListResponse,
    DiscountResponse,
    DiscountUpdate,
    PaginationMetadata,
    UseCaseData,
    UseCaseProfileResponse,
    UseCaseResponse,
)

logger = logging.getLogger(__name__)

RELATION_FIELDS = ("products", "categories", "brands")


class ManageDiscountService:
    """Voucher management for administrators and sellers."""

    async def _get_owned(self, session: AsyncSession, discount_id: uuid.UUID, user: User,
                         state: RecordState = RecordState.LIVE) -> Discount:
        discount = await DiscountRepository(session).get_by_id(discount_id, state=state)
        if discount is None:
            raise DiscountNotFound()
        guard.ensure_access(user.uid, user.role, discount.created_by_id)
        return discount

    def _check_platform_flag(self, user: User, is_platform: Optional[bool]) -> None:
        if is_platform and not user.is_admin:
            raise InsufficientPermission("Only administrators can manage platform vouchers")

    async def list_discounts(
        self,
        session: AsyncSession,
        user: User,
        filters: DiscountFilters,
        page: int = 1,
        limit: int = 10,
        order_by: OrderBy = OrderBy.DESC,
        sort_by: SortBy = SortBy.CREATED_AT
    ) -> DiscountListResponse:
        guard.ensure_list(user.uid, user.role, filters.created_by_id)

        items, total = await DiscountRepository(session).list(
            filters, page=page, limit=limit, order_by=order_by, sort_by=sort_by
        )
        return DiscountListResponse(
            message="Discounts retrieved successfully",
            data=[DiscountResponse.from_discount(d) for d in items],
            metadata=PaginationMetadata.build(total, page, limit)
        )

    async def get_discount(self, session: AsyncSession, discount_id: uuid.UUID, user: User) -> DiscountDetailResponse:
        discount = await self._get_owned(session, discount_id, user)
        return DiscountDetailResponse(
            message="Discount retrieved successfully",
            data=DiscountResponse.from_discount(discount)
        )

    async def get_use_case(self, session: AsyncSession, discount_id: uuid.UUID, user: User) -> UseCaseResponse:
        """Re-derive the use case of a stored voucher as the caller would edit it."""
        discount = await self._get_owned(session, discount_id, user)
        use_case = classify(discount, user.role)
        return UseCaseResponse(
            message="Use case resolved successfully",
            data=UseCaseData(
                use_case=use_case,
                profile=UseCaseProfileResponse.model_validate(use_case_profile(use_case))
            )
        )

    async def create_discount(self, session: AsyncSession, data: DiscountCreate, user: User) -> DiscountDetailResponse:
        if data.use_case is not None:
            data = apply_use_case(data, data.use_case, user.uid, user.role)

        self._check_platform_flag(user, data.is_platform)
        guard.ensure_ownership(user.uid, user.role, data.shop_id)

        payload = data.model_dump(exclude={"use_case", *RELATION_FIELDS})
        # Sellers create for their own shop when they do not name one
        if not user.is_admin and payload.get("shop_id") is None:
            payload["shop_id"] = user.uid

        relations = {name: getattr(data, name) for name in RELATION_FIELDS}
        ensure_valid({**payload, **relations})

        repository = DiscountRepository(session)
        if await repository.code_exists(payload["code"]):
            raise DiscountCodeAlreadyExists(payload["code"])

        discount = await repository.create(payload, relations, created_by_id=user.uid)
        return DiscountDetailResponse(
            message="Discount created successfully",
            data=DiscountResponse.from_discount(discount)
        )

    async def update_discount(
        self,
        session: AsyncSession,
        discount_id: uuid.UUID,
        data: DiscountUpdate,
        user: User
    ) -> DiscountDetailResponse:
        discount = await self._get_owned(session, discount_id, user)

        changes = data.model_dump(exclude_unset=True, exclude=set(RELATION_FIELDS))
        relations = {
            name: getattr(data, name)
            for name in RELATION_FIELDS
            if name in data.model_fields_set and getattr(data, name) is not None
        }

        self._check_platform_flag(user, changes.get("is_platform"))
        if "shop_id" in changes:
            guard.ensure_ownership(user.uid, user.role, changes["shop_id"])
        if not user.is_admin and changes.get("shop_id") is None:
            changes["shop_id"] = user.uid

        errors = check_immutable_fields(discount, changes)
        for field in IMMUTABLE_FIELDS:
            changes.pop(field, None)

        merged = {**discount_state(discount), **changes, **relations}
        ensure_valid(merged, errors)

        discount = await DiscountRepository(session).update(discount, changes, relations, updated_by_id=user.uid)
        return DiscountDetailResponse(
            message="Discount updated successfully",
            data=DiscountResponse.from_discount(discount)
        )

    async def delete_discount(self, session: AsyncSession, discount_id: uuid.UUID, user: User, hard: bool = False) -> dict:
        repository = DiscountRepository(session)
        if hard:
            guard.ensure_admin(user.role)
            # Hard deletion may also purge vouchers that were already soft-deleted
            discount = await self._get_owned(session, discount_id, user, state=RecordState.ANY)
            await repository.hard_delete(discount)
            return {"message": "Discount permanently deleted"}

        discount = await self._get_owned(session, discount_id, user)
        await repository.soft_delete(discount, deleted_by_id=user.uid)
        return {"message": "Discount deleted successfully"}
