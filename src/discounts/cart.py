from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional, Sequence
import uuid
import logging

from sqlmodel import select
from sqlalchemy.orm import selectinload
from sqlmodel.ext.asyncio.session import AsyncSession

from src.db.models import Cart, Discount, Product

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CartSnapshot:
    """What the voucher engine needs to know about a set of cart items."""
    order_total: int = 0
    shop_id: Optional[uuid.UUID] = None
    product_ids: FrozenSet[uuid.UUID] = field(default_factory=frozenset)
    category_ids: FrozenSet[uuid.UUID] = field(default_factory=frozenset)
    brand_ids: FrozenSet[uuid.UUID] = field(default_factory=frozenset)

    def intersects(self, discount: Discount) -> bool:
        """True when any product, category or brand of the voucher is in the cart."""
        return (
            any(pid in self.product_ids for pid in discount.product_ids)
            or any(cid in self.category_ids for cid in discount.category_ids)
            or any(bid in self.brand_ids for bid in discount.brand_ids)
        )


EMPTY_SNAPSHOT = CartSnapshot()


def snapshot_from_items(items: Sequence[Cart]) -> CartSnapshot:
    items = [item for item in items if item.product is not None]
    if not items:
        return EMPTY_SNAPSHOT

    # The shop is whoever sells the first item
    shop_id = items[0].product.user_uid
    return CartSnapshot(
        order_total=sum(item.quantity * item.product.price for item in items),
        shop_id=shop_id,
        product_ids=frozenset(item.product.uid for item in items),
        category_ids=frozenset(cat.uid for item in items for cat in item.product.categories or []),
        brand_ids=frozenset(item.product.brand_uid for item in items if item.product.brand_uid is not None),
    )


class CartSnapshotResolver:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def resolve(self, cart_item_ids: Optional[Iterable[uuid.UUID]], user_uid: Optional[uuid.UUID] = None) -> CartSnapshot:
        ids = list(dict.fromkeys(cart_item_ids or []))
        if not ids:
            return EMPTY_SNAPSHOT

        statement = (
            select(Cart)
            .options(selectinload(Cart.product).selectinload(Product.categories))
            .where(Cart.uid.in_(ids))
            .order_by(Cart.added_at)
        )
        if user_uid is not None:
            statement = statement.where(Cart.user_uid == user_uid)

        result = await self.session.exec(statement)
        items = result.all()
        if len(items) != len(ids):
            logger.debug(f"Resolved {len(items)} of {len(ids)} cart items")

        return snapshot_from_items(items)
