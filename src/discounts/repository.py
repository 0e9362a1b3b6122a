"""
Persistence gateway for vouchers.

Every read goes through a ``RecordState`` filter so soft-deleted rows never leak
into ordinary queries. Hard deletion is a separate method that callers have to ask
for explicitly.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple
import uuid
import logging

from sqlmodel import select, func, and_, or_, asc, desc
from sqlalchemy import true, update
from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from src.db.models import Brand, Category, Discount, DiscountUsage, Product, utcnow
from src.discounts.cart import CartSnapshot
from src.discounts.constants import (
    DiscountApplyType,
    DiscountScope,
    DiscountStatus,
    DiscountType,
    DisplayType,
    OrderBy,
    SortBy,
    VoucherType,
)
from src.errors import DiscountCodeAlreadyExists, DiscountRuleViolation, FieldError

logger = logging.getLogger(__name__)


class RecordState(str, Enum):
    LIVE = "LIVE"
    DELETED = "DELETED"
    ANY = "ANY"


def state_clause(state: RecordState):
    if state == RecordState.LIVE:
        return Discount.deleted_at.is_(None)
    if state == RecordState.DELETED:
        return Discount.deleted_at.is_not(None)
    return true()


@dataclass
class DiscountFilters:
    name: Optional[str] = None
    code: Optional[str] = None
    discount_status: Optional[DiscountStatus] = None
    discount_type: Optional[DiscountType] = None
    discount_apply_type: Optional[DiscountApplyType] = None
    voucher_type: Optional[VoucherType] = None
    display_type: Optional[DisplayType] = None
    is_platform: Optional[bool] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    min_value: Optional[int] = None
    max_value: Optional[int] = None
    shop_id: Optional[uuid.UUID] = None
    created_by_id: Optional[uuid.UUID] = None


SORT_COLUMNS = {
    SortBy.CREATED_AT: Discount.created_at,
    SortBy.VALUE: Discount.value,
    SortBy.USES_COUNT: Discount.uses_count,
}

RELATION_MODELS = {
    "products": Product,
    "categories": Category,
    "brands": Brand,
}


class DiscountRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, discount_uid: uuid.UUID, state: RecordState = RecordState.LIVE) -> Optional[Discount]:
        statement = select(Discount).where(Discount.uid == discount_uid, state_clause(state))
        result = await self.session.exec(statement)
        return result.first()

    async def get_by_code(self, code: str, state: RecordState = RecordState.LIVE) -> Optional[Discount]:
        statement = select(Discount).where(Discount.code == code, state_clause(state))
        result = await self.session.exec(statement)
        return result.first()

    async def code_exists(self, code: str) -> bool:
        # Codes stay reserved after a soft delete because the column is unique
        return await self.get_by_code(code, state=RecordState.ANY) is not None

    async def list_available_candidates(
        self,
        now: datetime,
        snapshot: CartSnapshot,
        scope: DiscountScope,
        limit: int
    ) -> List[Discount]:
        """Coarse storage-side filter for the shopper listing, newest first."""
        conditions = [
            state_clause(RecordState.LIVE),
            Discount.discount_status == DiscountStatus.ACTIVE,
            Discount.start_date <= now,
            Discount.end_date >= now,
            Discount.display_type == DisplayType.PUBLIC,
        ]

        if scope == DiscountScope.SHOP:
            conditions.append(Discount.is_platform == False)
            if snapshot.shop_id is not None:
                conditions.append(or_(Discount.shop_id == snapshot.shop_id, Discount.shop_id.is_(None)))
        elif scope == DiscountScope.PLATFORM:
            conditions.append(Discount.is_platform == True)

        if snapshot.order_total > 0:
            conditions.append(or_(Discount.min_order_value == 0, Discount.min_order_value <= snapshot.order_total))

        statement = (
            select(Discount)
            .where(and_(*conditions))
            .order_by(desc(Discount.created_at))
            .limit(limit)
        )
        result = await self.session.exec(statement)
        return list(result.all())

    def _list_conditions(self, filters: DiscountFilters) -> list:
        conditions = [state_clause(RecordState.LIVE)]

        if filters.created_by_id is not None:
            conditions.append(Discount.created_by_id == filters.created_by_id)
        if filters.name:
            conditions.append(Discount.name.ilike(f"%{filters.name}%"))
        if filters.code:
            conditions.append(Discount.code.ilike(f"%{filters.code}%"))
        if filters.discount_status is not None:
            conditions.append(Discount.discount_status == filters.discount_status)
        if filters.discount_type is not None:
            conditions.append(Discount.discount_type == filters.discount_type)
        if filters.discount_apply_type is not None:
            conditions.append(Discount.discount_apply_type == filters.discount_apply_type)
        if filters.voucher_type is not None:
            conditions.append(Discount.voucher_type == filters.voucher_type)
        if filters.display_type is not None:
            conditions.append(Discount.display_type == filters.display_type)
        if filters.is_platform is not None:
            conditions.append(Discount.is_platform == filters.is_platform)
        if filters.start_date is not None:
            conditions.append(Discount.start_date >= filters.start_date)
        if filters.end_date is not None:
            conditions.append(Discount.end_date <= filters.end_date)
        if filters.min_value is not None:
            conditions.append(Discount.value >= filters.min_value)
        if filters.max_value is not None:
            conditions.append(Discount.value <= filters.max_value)
        if filters.shop_id is not None:
            conditions.append(Discount.shop_id == filters.shop_id)

        return conditions

    async def list(
        self,
        filters: DiscountFilters,
        page: int = 1,
        limit: int = 10,
        order_by: OrderBy = OrderBy.DESC,
        sort_by: SortBy = SortBy.CREATED_AT
    ) -> Tuple[List[Discount], int]:
        conditions = self._list_conditions(filters)

        count_statement = select(func.count(Discount.uid)).where(and_(*conditions))
        total_result = await self.session.exec(count_statement)
        total = total_result.one()

        column = SORT_COLUMNS[SortBy(sort_by)]
        ordering = asc(column) if OrderBy(order_by) == OrderBy.ASC else desc(column)
        statement = (
            select(Discount)
            .where(and_(*conditions))
            .order_by(ordering)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.session.exec(statement)
        return list(result.all()), total

    async def load_relations(self, relations: Dict[str, Sequence[uuid.UUID]]) -> Dict[str, list]:
        """Turn id lists into catalog rows, failing on ids that do not exist."""
        loaded = {}
        errors = []
        for name, ids in relations.items():
            ids = list(dict.fromkeys(ids or []))
            if not ids:
                loaded[name] = []
                continue
            model = RELATION_MODELS[name]
            result = await self.session.exec(select(model).where(model.uid.in_(ids)))
            rows = list(result.all())
            missing = set(ids) - {row.uid for row in rows}
            if missing:
                errors.append(FieldError(name, f"Unknown ids: {', '.join(sorted(str(m) for m in missing))}"))
            loaded[name] = rows
        if errors:
            raise DiscountRuleViolation(errors)
        return loaded

    async def create(self, data: Dict[str, Any], relations: Dict[str, Sequence[uuid.UUID]], created_by_id: uuid.UUID) -> Discount:
        loaded = await self.load_relations(relations)
        discount = Discount(**data, created_by_id=created_by_id, updated_by_id=created_by_id)
        for name, rows in loaded.items():
            setattr(discount, name, rows)

        self.session.add(discount)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            if await self.code_exists(data["code"]):
                raise DiscountCodeAlreadyExists(data["code"])
            raise
        await self.session.refresh(discount, attribute_names=["products", "categories", "brands"])
        logger.info(f"Created discount {discount.code} ({discount.uid}) by {created_by_id}")
        return discount

    async def update(
        self,
        discount: Discount,
        changes: Dict[str, Any],
        relations: Dict[str, Sequence[uuid.UUID]],
        updated_by_id: uuid.UUID
    ) -> Discount:
        """Apply column changes; provided relations replace the stored sets."""
        loaded = await self.load_relations(relations)
        for key, value in changes.items():
            setattr(discount, key, value)
        for name, rows in loaded.items():
            setattr(discount, name, rows)
        discount.updated_by_id = updated_by_id
        discount.updated_at = utcnow()

        await self.session.commit()
        await self.session.refresh(discount, attribute_names=["products", "categories", "brands"])
        logger.info(f"Updated discount {discount.code} ({discount.uid}) by {updated_by_id}")
        return discount

    async def soft_delete(self, discount: Discount, deleted_by_id: uuid.UUID) -> Discount:
        discount.deleted_at = utcnow()
        discount.deleted_by_id = deleted_by_id
        await self.session.commit()
        logger.info(f"Soft-deleted discount {discount.code} ({discount.uid}) by {deleted_by_id}")
        return discount

    async def hard_delete(self, discount: Discount) -> None:
        await self.session.delete(discount)
        await self.session.commit()
        logger.warning(f"Hard-deleted discount {discount.code} ({discount.uid})")

    async def count_user_usages(self, discount_uid: uuid.UUID, user_uid: uuid.UUID) -> int:
        statement = select(func.count(DiscountUsage.uid)).where(
            DiscountUsage.discount_uid == discount_uid,
            DiscountUsage.user_uid == user_uid
        )
        result = await self.session.exec(statement)
        return result.one()

    async def claim_usage(self, discount_uid: uuid.UUID, user_uid: uuid.UUID, order_reference: Optional[str] = None) -> bool:
        """Consume one use of a voucher for the checkout transaction.

        The global cap is enforced by a single conditional UPDATE, so concurrent
        checkouts cannot overspend it. The row lock taken first serialises the
        per-user count for the same voucher. Returns False when a cap is reached.
        """
        locked = await self.session.exec(
            select(Discount).where(Discount.uid == discount_uid, state_clause(RecordState.LIVE)).with_for_update()
        )
        discount = locked.first()
        if discount is None:
            await self.session.rollback()
            return False

        if discount.max_uses_per_user > 0:
            used = await self.count_user_usages(discount_uid, user_uid)
            if used >= discount.max_uses_per_user:
                await self.session.rollback()
                return False

        result = await self.session.execute(
            update(Discount)
            .where(
                Discount.uid == discount_uid,
                or_(Discount.max_uses == 0, Discount.uses_count < Discount.max_uses)
            )
            .values(uses_count=Discount.uses_count + 1)
        )
        if result.rowcount == 0:
            await self.session.rollback()
            return False

        self.session.add(DiscountUsage(discount_uid=discount_uid, user_uid=user_uid, order_reference=order_reference))
        await self.session.commit()
        return True
