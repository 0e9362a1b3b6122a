"""
Voucher use-case classification.

A use case is never stored. It is recomputed from the voucher's attributes and the
role of whoever is looking at it, both when a creation form is prepared and when a
stored voucher is re-opened for editing.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple
import uuid

from src.discounts.constants import (
    DiscountApplyType,
    DisplayType,
    RoleName,
    VoucherType,
    VoucherUseCase,
)
from src.errors import DiscountRuleViolation, FieldError, InsufficientPermission


def _role(acting_role) -> str:
    return acting_role.value if isinstance(acting_role, Enum) else str(acting_role)


def _ids(voucher: Any, name: str) -> list:
    return list(getattr(voucher, name, None) or [])


def _is_admin(role: str) -> bool:
    return role == RoleName.ADMIN.value


# First match wins. Several predicates overlap, so the order is part of the contract.
USE_CASE_RULES: List[Tuple[Callable[[Any, str], bool], VoucherUseCase]] = [
    (lambda v, role: bool(v.is_platform) and v.voucher_type == VoucherType.PLATFORM,
     VoucherUseCase.PLATFORM),
    (lambda v, role: v.voucher_type == VoucherType.CATEGORY or bool(_ids(v, "category_ids")),
     VoucherUseCase.CATEGORIES),
    (lambda v, role: v.voucher_type == VoucherType.BRAND or bool(_ids(v, "brand_ids")),
     VoucherUseCase.BRAND),
    (lambda v, role: _is_admin(role) and v.shop_id is not None and v.voucher_type == VoucherType.SHOP,
     VoucherUseCase.SHOP_ADMIN),
    (lambda v, role: _is_admin(role) and v.voucher_type == VoucherType.PRODUCT,
     VoucherUseCase.PRODUCT_ADMIN),
    (lambda v, role: _is_admin(role) and v.display_type == DisplayType.PRIVATE and v.shop_id is None,
     VoucherUseCase.PRIVATE_ADMIN),
    (lambda v, role: v.voucher_type == VoucherType.PRODUCT and bool(_ids(v, "product_ids")),
     VoucherUseCase.PRODUCT),
    (lambda v, role: v.display_type == DisplayType.PRIVATE,
     VoucherUseCase.PRIVATE),
]


def classify(voucher: Any, acting_role) -> VoucherUseCase:
    """Derive the use case of a voucher as seen by ``acting_role``.

    ``voucher`` is anything exposing ``is_platform``, ``voucher_type``, ``shop_id``,
    ``display_type`` and the ``product_ids`` / ``category_ids`` / ``brand_ids``
    lists: a stored ``Discount`` or a create payload.
    """
    role = _role(acting_role)
    for predicate, use_case in USE_CASE_RULES:
        if predicate(voucher, role):
            return use_case
    return VoucherUseCase.SHOP


class ShopOwnership(str, Enum):
    NONE = "NONE"           # shop_id is always null
    OWNER = "OWNER"         # shop_id is the acting seller
    SELECTED = "SELECTED"   # an admin picks the shop


@dataclass(frozen=True)
class UseCaseProfile:
    voucher_type: VoucherType
    is_platform: bool
    shop_ownership: ShopOwnership
    # None keeps whatever display type the payload asked for
    display_type: Optional[DisplayType]
    # None: SPECIFIC when the editable relation has ids, ALL otherwise
    apply_type: Optional[DiscountApplyType]
    # products / categories / brands, or None when no relation is editable
    relation: Optional[str]
    admin_only: bool


USE_CASE_PROFILES = {
    VoucherUseCase.SHOP: UseCaseProfile(
        VoucherType.SHOP, False, ShopOwnership.OWNER, DisplayType.PUBLIC, DiscountApplyType.ALL, None, False),
    VoucherUseCase.PRODUCT: UseCaseProfile(
        VoucherType.PRODUCT, False, ShopOwnership.OWNER, None, DiscountApplyType.SPECIFIC, "products", False),
    VoucherUseCase.PRIVATE: UseCaseProfile(
        VoucherType.SHOP, False, ShopOwnership.OWNER, DisplayType.PRIVATE, DiscountApplyType.ALL, None, False),
    VoucherUseCase.PLATFORM: UseCaseProfile(
        VoucherType.PLATFORM, True, ShopOwnership.NONE, None, DiscountApplyType.ALL, None, True),
    VoucherUseCase.CATEGORIES: UseCaseProfile(
        VoucherType.CATEGORY, False, ShopOwnership.NONE, None, DiscountApplyType.SPECIFIC, "categories", True),
    VoucherUseCase.BRAND: UseCaseProfile(
        VoucherType.BRAND, False, ShopOwnership.NONE, None, DiscountApplyType.SPECIFIC, "brands", True),
    VoucherUseCase.SHOP_ADMIN: UseCaseProfile(
        VoucherType.SHOP, False, ShopOwnership.SELECTED, None, DiscountApplyType.ALL, None, True),
    VoucherUseCase.PRODUCT_ADMIN: UseCaseProfile(
        VoucherType.PRODUCT, False, ShopOwnership.NONE, None, None, "products", True),
    VoucherUseCase.PRIVATE_ADMIN: UseCaseProfile(
        VoucherType.SHOP, False, ShopOwnership.NONE, DisplayType.PRIVATE, None, "products", True),
}

RELATIONS = ("products", "categories", "brands")


def use_case_profile(use_case: VoucherUseCase) -> UseCaseProfile:
    return USE_CASE_PROFILES[VoucherUseCase(use_case)]


def apply_use_case(payload: Any, use_case: VoucherUseCase, acting_user_id: uuid.UUID, acting_role):
    """Return a copy of a create payload with the fields the use case decides.

    Relations the use case does not edit are cleared. Admin-only use cases are
    refused for everybody else.
    """
    profile = use_case_profile(use_case)
    if profile.admin_only and not _is_admin(_role(acting_role)):
        raise InsufficientPermission(f"Only administrators can create {VoucherUseCase(use_case).value} vouchers")

    update = {
        "voucher_type": profile.voucher_type,
        "is_platform": profile.is_platform,
    }

    if profile.shop_ownership == ShopOwnership.NONE:
        update["shop_id"] = None
    elif profile.shop_ownership == ShopOwnership.OWNER:
        update["shop_id"] = acting_user_id
    elif getattr(payload, "shop_id", None) is None:
        # Without a selected shop the voucher would read back as a plain SHOP voucher
        raise DiscountRuleViolation([FieldError("shopId", "Select the shop this voucher belongs to")])

    if profile.display_type is not None:
        update["display_type"] = profile.display_type

    for relation in RELATIONS:
        if relation != profile.relation:
            update[relation] = []

    if profile.apply_type is not None:
        update["discount_apply_type"] = profile.apply_type
    else:
        targets = getattr(payload, profile.relation, None) or []
        update["discount_apply_type"] = DiscountApplyType.SPECIFIC if targets else DiscountApplyType.ALL

    return payload.model_copy(update=update)
