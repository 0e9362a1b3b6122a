from typing import Callable, Iterable, List, Optional
from datetime import datetime
import uuid
import logging

from src.db.models import Discount, utcnow
from src.discounts.cart import CartSnapshot, CartSnapshotResolver
from src.discounts.constants import DiscountApplyType, DiscountScope
from src.discounts.repository import DiscountRepository

logger = logging.getLogger(__name__)


def resolve_scope(only_shop: bool = False, only_platform: bool = False) -> DiscountScope:
    # Shop scope wins when a caller sets both flags
    if only_shop:
        return DiscountScope.SHOP
    if only_platform:
        return DiscountScope.PLATFORM
    return DiscountScope.ALL


def refine_candidates(candidates: Iterable[Discount], snapshot: CartSnapshot, has_cart: bool) -> List[Discount]:
    """In-process pass over the storage candidates.

    Exhausted vouchers are always dropped. SPECIFIC vouchers must share at least
    one product, category or brand with the cart, but only when a cart was given:
    browsing without a cart lists them all.
    """
    available = []
    for discount in candidates:
        if discount.is_exhausted:
            continue
        if has_cart and discount.discount_apply_type == DiscountApplyType.SPECIFIC and not snapshot.intersects(discount):
            continue
        available.append(discount)
    return available


class EligibilityFilter:
    def __init__(
        self,
        repository: DiscountRepository,
        resolver: CartSnapshotResolver,
        clock: Callable[[], datetime] = utcnow
    ):
        self.repository = repository
        self.resolver = resolver
        self.clock = clock

    async def list_available(
        self,
        cart_item_ids: Optional[List[uuid.UUID]] = None,
        limit: int = 20,
        scope: DiscountScope = DiscountScope.ALL,
        user_uid: Optional[uuid.UUID] = None
    ) -> List[Discount]:
        has_cart = bool(cart_item_ids)
        snapshot = await self.resolver.resolve(cart_item_ids, user_uid)

        candidates = await self.repository.list_available_candidates(
            now=self.clock(),
            snapshot=snapshot,
            scope=scope,
            limit=limit
        )
        available = refine_candidates(candidates, snapshot, has_cart)
        logger.debug(f"{len(available)} of {len(candidates)} candidate vouchers available (scope={scope.value})")
        return available
