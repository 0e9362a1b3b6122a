import re
from typing import Any, Dict, List, Mapping, Optional

from pydantic.alias_generators import to_camel

from src.discounts.constants import CODE_PATTERN, DiscountApplyType, DiscountType, VoucherType
from src.errors import DiscountRuleViolation, FieldError

# Fixed once the voucher exists; maxUses, status and the time window stay editable
IMMUTABLE_FIELDS = (
    "code",
    "discount_type",
    "value",
    "max_discount_value",
    "min_order_value",
    "max_uses_per_user",
)

_code_re = re.compile(CODE_PATTERN)


def _error(field: str, message: str) -> FieldError:
    return FieldError(to_camel(field), message)


def validate_discount_rules(data: Mapping[str, Any]) -> List[FieldError]:
    """Check a complete voucher state (snake_case keys) against the data model rules.

    Relations are expected as id lists under ``products``, ``categories`` and
    ``brands``. Returns every violation instead of stopping at the first one.
    """
    errors = []

    start_date, end_date = data.get("start_date"), data.get("end_date")
    if start_date is not None and end_date is not None and start_date >= end_date:
        errors.append(_error("end_date", "End date must be after start date"))

    code = data.get("code")
    if not code or not _code_re.match(code):
        errors.append(_error("code", "Code must be 1 to 5 uppercase letters or digits"))

    value = data.get("value")
    if value is None:
        errors.append(_error("value", "Value is required"))
    elif data.get("discount_type") == DiscountType.PERCENTAGE:
        if not 0 < value <= 100:
            errors.append(_error("value", "Percentage must be between 1 and 100"))
    elif value <= 0:
        errors.append(_error("value", "Value must be greater than 0"))

    max_discount_value = data.get("max_discount_value")
    if max_discount_value is not None and max_discount_value <= 0:
        errors.append(_error("max_discount_value", "Maximum discount must be greater than 0"))

    if (data.get("min_order_value") or 0) < 0:
        errors.append(_error("min_order_value", "Minimum order value cannot be negative"))

    max_uses = data.get("max_uses") or 0
    max_uses_per_user = data.get("max_uses_per_user") or 0
    if max_uses < 0:
        errors.append(_error("max_uses", "Maximum uses cannot be negative"))
    if max_uses_per_user < 0:
        errors.append(_error("max_uses_per_user", "Maximum uses per user cannot be negative"))
    if max_uses > 0 and max_uses_per_user > max_uses:
        errors.append(_error("max_uses_per_user", "Maximum uses per user cannot exceed maximum uses"))

    if data.get("discount_apply_type") == DiscountApplyType.SPECIFIC:
        if not any(data.get(relation) for relation in ("products", "categories", "brands")):
            errors.append(_error("discount_apply_type", "Select at least one product, category or brand"))

    if data.get("is_platform"):
        if data.get("shop_id") is not None:
            errors.append(_error("shop_id", "Platform vouchers cannot belong to a shop"))
        if data.get("voucher_type") != VoucherType.PLATFORM:
            errors.append(_error("voucher_type", "Platform vouchers must use the PLATFORM voucher type"))

    return errors


def check_immutable_fields(current: Any, changes: Mapping[str, Any]) -> List[FieldError]:
    """Echoing an immutable field unchanged is fine, changing it is not."""
    errors = []
    for field in IMMUTABLE_FIELDS:
        if field in changes and changes[field] != getattr(current, field):
            errors.append(_error(field, "This field cannot be changed after creation"))
    return errors


def ensure_valid(data: Dict[str, Any], errors: Optional[List[FieldError]] = None) -> None:
    errors = list(errors or []) + validate_discount_rules(data)
    if errors:
        raise DiscountRuleViolation(errors)


STATE_FIELDS = (
    "code", "name", "description", "discount_type", "value", "max_discount_value",
    "min_order_value", "max_uses", "max_uses_per_user", "start_date", "end_date",
    "is_platform", "shop_id", "voucher_type", "display_type", "discount_apply_type",
    "discount_status",
)


def discount_state(discount: Any) -> Dict[str, Any]:
    """Stored voucher as the flat dict ``validate_discount_rules`` expects."""
    state = {field: getattr(discount, field) for field in STATE_FIELDS}
    state["products"] = list(discount.product_ids)
    state["categories"] = list(discount.category_ids)
    state["brands"] = list(discount.brand_ids)
    return state
