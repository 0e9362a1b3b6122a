from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import List, Optional
from datetime import datetime, timezone
import uuid

from src.db.models import Discount
from src.discounts.classifier import ShopOwnership
from src.discounts.constants import (
    CODE_PATTERN,
    DiscountApplyType,
    DiscountStatus,
    DiscountType,
    DisplayType,
    VoucherType,
    VoucherUseCase,
)


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case accepted too."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True
    )


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class DiscountBase(CamelModel):
    name: str = Field(min_length=1, max_length=500)
    description: Optional[str] = None
    discount_type: DiscountType = DiscountType.FIX_AMOUNT
    value: int
    max_discount_value: Optional[int] = None
    min_order_value: int = 0
    max_uses: int = 0
    max_uses_per_user: int = 0
    start_date: datetime
    end_date: datetime
    is_platform: bool = False
    shop_id: Optional[uuid.UUID] = None
    voucher_type: VoucherType = VoucherType.SHOP
    display_type: DisplayType = DisplayType.PUBLIC
    discount_apply_type: DiscountApplyType = DiscountApplyType.ALL
    discount_status: DiscountStatus = DiscountStatus.ACTIVE
    products: List[uuid.UUID] = []
    categories: List[uuid.UUID] = []
    brands: List[uuid.UUID] = []

    @field_validator("start_date", "end_date")
    @classmethod
    def naive_dates_are_utc(cls, value):
        return _as_utc(value)

    # Same accessors as the table model, so payloads can be classified directly
    @property
    def product_ids(self) -> List[uuid.UUID]:
        return self.products

    @property
    def category_ids(self) -> List[uuid.UUID]:
        return self.categories

    @property
    def brand_ids(self) -> List[uuid.UUID]:
        return self.brands


class DiscountCreate(DiscountBase):
    code: str = Field(pattern=CODE_PATTERN)
    # When given, the use case decides ownership, type and visible relations
    use_case: Optional[VoucherUseCase] = None


NOT_NULLABLE_FIELDS = (
    "code", "name", "discount_type", "value", "min_order_value", "max_uses",
    "max_uses_per_user", "start_date", "end_date", "is_platform", "voucher_type",
    "display_type", "discount_apply_type", "discount_status",
)


class DiscountUpdate(CamelModel):
    # Immutable fields are accepted so clients can send the whole form back unchanged
    code: Optional[str] = None
    name: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    discount_type: Optional[DiscountType] = None
    value: Optional[int] = None
    max_discount_value: Optional[int] = None
    min_order_value: Optional[int] = None
    max_uses: Optional[int] = None
    max_uses_per_user: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_platform: Optional[bool] = None
    shop_id: Optional[uuid.UUID] = None
    voucher_type: Optional[VoucherType] = None
    display_type: Optional[DisplayType] = None
    discount_apply_type: Optional[DiscountApplyType] = None
    discount_status: Optional[DiscountStatus] = None
    products: Optional[List[uuid.UUID]] = None
    categories: Optional[List[uuid.UUID]] = None
    brands: Optional[List[uuid.UUID]] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def naive_dates_are_utc(cls, value):
        return _as_utc(value)

    # Omitting a field keeps the stored value; an explicit null is only valid for nullable columns
    @field_validator(*NOT_NULLABLE_FIELDS)
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("This field cannot be null")
        return value


class DiscountResponse(CamelModel):
    id: uuid.UUID
    code: str
    name: str
    description: Optional[str] = None
    discount_type: DiscountType
    value: int
    max_discount_value: Optional[int] = None
    min_order_value: int
    max_uses: int
    max_uses_per_user: int
    uses_count: int
    start_date: datetime
    end_date: datetime
    is_platform: bool
    shop_id: Optional[uuid.UUID] = None
    voucher_type: VoucherType
    display_type: DisplayType
    discount_apply_type: DiscountApplyType
    discount_status: DiscountStatus
    products: List[uuid.UUID] = []
    categories: List[uuid.UUID] = []
    brands: List[uuid.UUID] = []
    created_by_id: Optional[uuid.UUID] = None
    updated_by_id: Optional[uuid.UUID] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_discount(cls, discount: Discount) -> "DiscountResponse":
        return cls(
            id=discount.uid,
            code=discount.code,
            name=discount.name,
            description=discount.description,
            discount_type=discount.discount_type,
            value=discount.value,
            max_discount_value=discount.max_discount_value,
            min_order_value=discount.min_order_value,
            max_uses=discount.max_uses,
            max_uses_per_user=discount.max_uses_per_user,
            uses_count=discount.uses_count,
            start_date=discount.start_date,
            end_date=discount.end_date,
            is_platform=discount.is_platform,
            shop_id=discount.shop_id,
            voucher_type=discount.voucher_type,
            display_type=discount.display_type,
            discount_apply_type=discount.discount_apply_type,
            discount_status=discount.discount_status,
            products=discount.product_ids,
            categories=discount.category_ids,
            brands=discount.brand_ids,
            created_by_id=discount.created_by_id,
            updated_by_id=discount.updated_by_id,
            created_at=discount.created_at,
            updated_at=discount.updated_at,
        )


class PaginationMetadata(CamelModel):
    total_items: int
    page: int
    limit: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, total_items: int, page: int, limit: int) -> "PaginationMetadata":
        total_pages = (total_items + limit - 1) // limit
        return cls(
            total_items=total_items,
            page=page,
            limit=limit,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1
        )


class DiscountListResponse(CamelModel):
    message: str
    data: List[DiscountResponse]
    metadata: PaginationMetadata


class DiscountDetailResponse(CamelModel):
    message: str
    data: DiscountResponse


class UseCaseProfileResponse(CamelModel):
    voucher_type: VoucherType
    is_platform: bool
    shop_ownership: ShopOwnership
    display_type: Optional[DisplayType] = None
    apply_type: Optional[DiscountApplyType] = None
    relation: Optional[str] = None
    admin_only: bool


class UseCaseData(CamelModel):
    use_case: VoucherUseCase
    profile: UseCaseProfileResponse


class UseCaseResponse(CamelModel):
    message: str
    data: UseCaseData


class MessageResponse(CamelModel):
    message: str
