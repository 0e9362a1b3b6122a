"""Ownership rules for vouchers: admins may do anything, sellers only touch their own."""

from enum import Enum
from typing import Optional
import uuid
import logging

from src.discounts.constants import RoleName
from src.errors import InsufficientPermission

logger = logging.getLogger(__name__)


def _is_admin(acting_role) -> bool:
    role = acting_role.value if isinstance(acting_role, Enum) else acting_role
    return role == RoleName.ADMIN.value


def _same(a, b) -> bool:
    if a is None or b is None:
        return False
    return str(a) == str(b)


def can_access(acting_user_id: uuid.UUID, acting_role, resource_owner_id: Optional[uuid.UUID]) -> bool:
    return _same(acting_user_id, resource_owner_id) or _is_admin(acting_role)


def can_set_ownership(acting_user_id: uuid.UUID, acting_role, requested_shop_id: Optional[uuid.UUID]) -> bool:
    if _is_admin(acting_role):
        return True
    return requested_shop_id is None or _same(requested_shop_id, acting_user_id)


def can_list(acting_user_id: uuid.UUID, acting_role, created_by_id: Optional[uuid.UUID]) -> bool:
    # Sellers must name themselves explicitly; admins may list anyone or everyone.
    return _is_admin(acting_role) or _same(acting_user_id, created_by_id)


def ensure_access(acting_user_id, acting_role, resource_owner_id) -> None:
    if not can_access(acting_user_id, acting_role, resource_owner_id):
        logger.info(f"User {acting_user_id} denied access to voucher owned by {resource_owner_id}")
        raise InsufficientPermission()


def ensure_ownership(acting_user_id, acting_role, requested_shop_id) -> None:
    if not can_set_ownership(acting_user_id, acting_role, requested_shop_id):
        logger.info(f"User {acting_user_id} tried to assign a voucher to shop {requested_shop_id}")
        raise InsufficientPermission("You can only manage vouchers for your own shop")


def ensure_list(acting_user_id, acting_role, created_by_id) -> None:
    if not can_list(acting_user_id, acting_role, created_by_id):
        raise InsufficientPermission("createdById must be your own user id")


def ensure_admin(acting_role) -> None:
    if not _is_admin(acting_role):
        raise InsufficientPermission()
