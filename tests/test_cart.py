import uuid
from unittest.mock import AsyncMock, MagicMock

from src.discounts.cart import CartSnapshot, CartSnapshotResolver, EMPTY_SNAPSHOT, snapshot_from_items

from tests.factories import make_cart_item, make_discount


class TestSnapshotFromItems:

    def test_totals_and_ids(self):
        shop_id = uuid.uuid4()
        category_id = uuid.uuid4()
        brand_id = uuid.uuid4()
        first = make_cart_item(price=100000, quantity=2, shop_id=shop_id, categories=[category_id])
        second = make_cart_item(price=50000, quantity=1, shop_id=uuid.uuid4(), brand_uid=brand_id)

        snapshot = snapshot_from_items([first, second])

        assert snapshot.order_total == 250000
        assert snapshot.shop_id == shop_id
        assert snapshot.product_ids == {first.product.uid, second.product.uid}
        assert snapshot.category_ids == {category_id}
        assert snapshot.brand_ids == {brand_id}

    def test_no_items(self):
        assert snapshot_from_items([]) == EMPTY_SNAPSHOT

    def test_items_without_product_are_ignored(self):
        orphan = make_cart_item(price=100)
        orphan.product = None
        assert snapshot_from_items([orphan]) == EMPTY_SNAPSHOT


class TestIntersects:

    def test_any_relation_counts(self):
        product_id, category_id, brand_id = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()

        assert CartSnapshot(product_ids=frozenset({product_id})).intersects(make_discount(products=[product_id]))
        assert CartSnapshot(category_ids=frozenset({category_id})).intersects(make_discount(categories=[category_id]))
        assert CartSnapshot(brand_ids=frozenset({brand_id})).intersects(make_discount(brands=[brand_id]))

    def test_ids_only_match_within_the_same_relation(self):
        shared = uuid.uuid4()
        snapshot = CartSnapshot(product_ids=frozenset({shared}))
        assert not snapshot.intersects(make_discount(categories=[shared]))


class TestCartSnapshotResolver:

    async def test_no_ids_skips_the_query(self):
        session = MagicMock()
        session.exec = AsyncMock()

        snapshot = await CartSnapshotResolver(session).resolve(None)

        assert snapshot == EMPTY_SNAPSHOT
        session.exec.assert_not_awaited()

    async def test_resolves_items_for_the_user(self):
        user_uid = uuid.uuid4()
        item = make_cart_item(price=1000, quantity=3, user_uid=user_uid)
        result = MagicMock()
        result.all.return_value = [item]
        session = MagicMock()
        session.exec = AsyncMock(return_value=result)

        snapshot = await CartSnapshotResolver(session).resolve([item.uid, item.uid], user_uid)

        assert snapshot.order_total == 3000
        statement = session.exec.await_args.args[0]
        compiled = str(statement)
        assert "carts.user_uid =" in compiled
        assert "ORDER BY carts.added_at" in compiled
