"""
Voucher redemption check.

``RedemptionValidator.validate`` answers "what would this code do to this cart".
Business invalidity comes back as a ``VoucherValidation`` with ``is_valid=False``;
only storage failures raise. Nothing here writes: the checkout transaction calls
``DiscountRepository.claim_usage`` when the order is actually placed.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, List, Optional
import uuid
import logging

from src.db.models import Discount, utcnow
from src.discounts.cart import CartSnapshotResolver
from src.discounts.constants import DiscountApplyType, DiscountStatus, DiscountType, VoucherErrorCode
from src.discounts.formatting import format_money
from src.discounts.repository import DiscountRepository

logger = logging.getLogger(__name__)


ERROR_MESSAGES = {
    VoucherErrorCode.CODE_NOT_FOUND: "Voucher code does not exist",
    VoucherErrorCode.INACTIVE: "Voucher is no longer active",
    VoucherErrorCode.EXPIRED: "Voucher has expired or has not started yet",
    VoucherErrorCode.EXHAUSTED: "Voucher has been fully redeemed",
    VoucherErrorCode.PER_USER_LIMIT_REACHED: "You have reached the usage limit for this voucher",
    VoucherErrorCode.NOT_APPLICABLE: "Voucher is not applicable to these items",
}


@dataclass
class VoucherValidation:
    is_valid: bool
    discount: Optional[Discount] = None
    discount_amount: Optional[int] = None
    final_order_total: Optional[int] = None
    error: Optional[str] = None
    error_code: Optional[VoucherErrorCode] = None

    @classmethod
    def invalid(cls, error_code: VoucherErrorCode, message: Optional[str] = None) -> "VoucherValidation":
        return cls(is_valid=False, error=message or ERROR_MESSAGES[error_code], error_code=error_code)


def compute_discount_amount(discount: Discount, order_total: int) -> int:
    """Amount the voucher takes off ``order_total``, never more than the total itself."""
    if discount.discount_type == DiscountType.PERCENTAGE:
        amount = (Decimal(order_total) * Decimal(discount.value) / Decimal(100)).quantize(
            Decimal("1"), rounding=ROUND_HALF_UP
        )
        amount = int(amount)
        if discount.max_discount_value is not None and amount > discount.max_discount_value:
            amount = discount.max_discount_value
    else:
        amount = discount.value

    return max(0, min(amount, order_total))


class RedemptionValidator:
    def __init__(
        self,
        repository: DiscountRepository,
        resolver: CartSnapshotResolver,
        clock: Callable[[], datetime] = utcnow
    ):
        self.repository = repository
        self.resolver = resolver
        self.clock = clock

    async def validate(
        self,
        code: str,
        cart_item_ids: Optional[List[uuid.UUID]] = None,
        user_uid: Optional[uuid.UUID] = None
    ) -> VoucherValidation:
        code = (code or "").strip().upper()

        discount = await self.repository.get_by_code(code)
        if discount is None:
            return VoucherValidation.invalid(VoucherErrorCode.CODE_NOT_FOUND)

        if discount.discount_status != DiscountStatus.ACTIVE:
            return VoucherValidation.invalid(VoucherErrorCode.INACTIVE)

        if not discount.is_running(self.clock()):
            return VoucherValidation.invalid(VoucherErrorCode.EXPIRED)

        if discount.is_exhausted:
            return VoucherValidation.invalid(VoucherErrorCode.EXHAUSTED)

        if user_uid is not None and discount.max_uses_per_user > 0:
            used = await self.repository.count_user_usages(discount.uid, user_uid)
            if used >= discount.max_uses_per_user:
                return VoucherValidation.invalid(VoucherErrorCode.PER_USER_LIMIT_REACHED)

        snapshot = await self.resolver.resolve(cart_item_ids, user_uid)

        if discount.min_order_value > 0 and snapshot.order_total < discount.min_order_value:
            return VoucherValidation.invalid(
                VoucherErrorCode.BELOW_MINIMUM_ORDER,
                f"Minimum order value is {format_money(discount.min_order_value)}"
            )

        if discount.discount_apply_type == DiscountApplyType.SPECIFIC and not snapshot.intersects(discount):
            return VoucherValidation.invalid(VoucherErrorCode.NOT_APPLICABLE)

        amount = compute_discount_amount(discount, snapshot.order_total)
        logger.debug(f"Voucher {code} takes {amount} off {snapshot.order_total}")
        return VoucherValidation(
            is_valid=True,
            discount=discount,
            discount_amount=amount,
            final_order_total=snapshot.order_total - amount,
        )
