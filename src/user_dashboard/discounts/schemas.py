from typing import List, Optional
import uuid
from pydantic import Field

from src.admin_dashboard.discounts.schemas import CamelModel, DiscountResponse
from src.discounts.constants import VoucherErrorCode


class ValidateCodeRequest(CamelModel):
    code: str = Field(min_length=1, max_length=20)
    cart_item_ids: Optional[List[uuid.UUID]] = None


class VoucherValidationData(CamelModel):
    is_valid: bool
    discount: Optional[DiscountResponse] = None
    discount_amount: Optional[int] = None
    final_order_total: Optional[int] = None
    error: Optional[str] = None
    error_code: Optional[VoucherErrorCode] = None


class ValidateCodeResponse(CamelModel):
    message: str
    data: VoucherValidationData


class AvailableDiscountsResponse(CamelModel):
    message: str
    data: List[DiscountResponse]
