import uuid
from unittest.mock import AsyncMock, MagicMock

from src.discounts.cart import CartSnapshot, EMPTY_SNAPSHOT
from src.discounts.constants import DiscountApplyType, DiscountScope
from src.discounts.eligibility import EligibilityFilter, refine_candidates, resolve_scope

from tests.factories import NOW, clock, make_discount


def build_filter(candidates, snapshot=EMPTY_SNAPSHOT):
    repository = MagicMock()
    repository.list_available_candidates = AsyncMock(return_value=candidates)
    resolver = MagicMock()
    resolver.resolve = AsyncMock(return_value=snapshot)
    return EligibilityFilter(repository, resolver, clock=clock), repository, resolver


class TestRefineCandidates:

    def test_exhausted_vouchers_are_dropped(self):
        exhausted = make_discount(max_uses=100, uses_count=100)
        unlimited = make_discount(max_uses=0, uses_count=500)
        assert refine_candidates([exhausted, unlimited], EMPTY_SNAPSHOT, has_cart=False) == [unlimited]

    def test_specific_vouchers_need_an_overlap(self):
        brand_id = uuid.uuid4()
        matching = make_discount(discount_apply_type=DiscountApplyType.SPECIFIC, brands=[brand_id])
        other = make_discount(discount_apply_type=DiscountApplyType.SPECIFIC, products=[uuid.uuid4()])
        snapshot = CartSnapshot(order_total=1000, brand_ids=frozenset({brand_id}))

        assert refine_candidates([matching, other], snapshot, has_cart=True) == [matching]

    def test_browsing_without_cart_keeps_specific_vouchers(self):
        specific = make_discount(discount_apply_type=DiscountApplyType.SPECIFIC, products=[uuid.uuid4()])
        assert refine_candidates([specific], EMPTY_SNAPSHOT, has_cart=False) == [specific]

    def test_all_vouchers_are_kept_for_any_cart(self):
        everything = make_discount(discount_apply_type=DiscountApplyType.ALL)
        snapshot = CartSnapshot(order_total=1000, product_ids=frozenset({uuid.uuid4()}))
        assert refine_candidates([everything], snapshot, has_cart=True) == [everything]

    def test_order_is_preserved(self):
        vouchers = [make_discount(code=f"C{i}") for i in range(4)]
        assert refine_candidates(vouchers, EMPTY_SNAPSHOT, has_cart=False) == vouchers


def test_resolve_scope():
    assert resolve_scope() == DiscountScope.ALL
    assert resolve_scope(only_shop=True) == DiscountScope.SHOP
    assert resolve_scope(only_platform=True) == DiscountScope.PLATFORM
    assert resolve_scope(only_shop=True, only_platform=True) == DiscountScope.SHOP


class TestListAvailable:

    async def test_passes_snapshot_scope_and_limit_to_storage(self):
        snapshot = CartSnapshot(order_total=300000, shop_id=uuid.uuid4())
        eligibility, repository, resolver = build_filter([], snapshot)
        cart_ids = [uuid.uuid4(), uuid.uuid4()]
        user_uid = uuid.uuid4()

        await eligibility.list_available(cart_ids, limit=5, scope=DiscountScope.SHOP, user_uid=user_uid)

        resolver.resolve.assert_awaited_once_with(cart_ids, user_uid)
        repository.list_available_candidates.assert_awaited_once_with(
            now=NOW, snapshot=snapshot, scope=DiscountScope.SHOP, limit=5
        )

    async def test_exhausted_voucher_is_excluded(self):
        exhausted = make_discount(max_uses=100, uses_count=100)
        fresh = make_discount(code="FRESH")
        eligibility, _, _ = build_filter([exhausted, fresh])

        assert await eligibility.list_available() == [fresh]

    async def test_empty_result_is_not_an_error(self):
        eligibility, _, _ = build_filter([])
        assert await eligibility.list_available([uuid.uuid4()]) == []

    async def test_cart_filters_specific_vouchers(self):
        specific = make_discount(discount_apply_type=DiscountApplyType.SPECIFIC, products=[uuid.uuid4()])
        snapshot = CartSnapshot(order_total=1000, product_ids=frozenset({uuid.uuid4()}))
        eligibility, _, _ = build_filter([specific], snapshot)

        assert await eligibility.list_available([uuid.uuid4()]) == []
        assert await eligibility.list_available() == [specific]
