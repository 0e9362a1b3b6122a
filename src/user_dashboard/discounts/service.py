from typing import List, Optional
import uuid
import logging

from sqlmodel.ext.asyncio.session import AsyncSession

from src.discounts.cart import CartSnapshotResolver
from src.discounts.eligibility import EligibilityFilter, resolve_scope
from src.discounts.redemption import RedemptionValidator
from src.discounts.repository import DiscountRepository
from src.admin_dashboard.discounts.schemas import DiscountResponse
from .schemas import AvailableDiscountsResponse, ValidateCodeResponse, VoucherValidationData

logger = logging.getLogger(__name__)


class VoucherService:
    """Shopper-facing voucher reads: what can I use, and what would this code do."""

    def __init__(self, session: AsyncSession):
        repository = DiscountRepository(session)
        resolver = CartSnapshotResolver(session)
        self.eligibility = EligibilityFilter(repository, resolver)
        self.validator = RedemptionValidator(repository, resolver)

    async def list_available(
        self,
        cart_item_ids: Optional[List[uuid.UUID]],
        limit: int,
        only_shop: bool = False,
        only_platform: bool = False,
        user_uid: Optional[uuid.UUID] = None
    ) -> AvailableDiscountsResponse:
        discounts = await self.eligibility.list_available(
            cart_item_ids=cart_item_ids,
            limit=limit,
            scope=resolve_scope(only_shop, only_platform),
            user_uid=user_uid
        )
        return AvailableDiscountsResponse(
            message="Available discounts retrieved successfully",
            data=[DiscountResponse.from_discount(d) for d in discounts]
        )

    async def validate_code(
        self,
        code: str,
        cart_item_ids: Optional[List[uuid.UUID]],
        user_uid: uuid.UUID
    ) -> ValidateCodeResponse:
        result = await self.validator.validate(code, cart_item_ids, user_uid=user_uid)
        if not result.is_valid:
            logger.info(f"Voucher code {code!r} rejected for user {user_uid}: {result.error_code.value}")
            return ValidateCodeResponse(
                message="Discount code is not valid",
                data=VoucherValidationData(is_valid=False, error=result.error, error_code=result.error_code)
            )

        return ValidateCodeResponse(
            message="Discount code is valid",
            data=VoucherValidationData(
                is_valid=True,
                discount=DiscountResponse.from_discount(result.discount),
                discount_amount=result.discount_amount,
                final_order_total=result.final_order_total
            )
        )
