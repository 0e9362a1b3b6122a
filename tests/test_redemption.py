"""
Tests for the redemption validator.

Verifies that RedemptionValidator:
- Computes percentage and fixed amounts with the documented clamps
- Short-circuits on the first failing check with a stable error code
- Never intersects ALL vouchers with the cart
- Returns identical results for identical inputs
"""

import uuid
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.discounts.cart import CartSnapshot
from src.discounts.constants import (
    DiscountApplyType,
    DiscountStatus,
    DiscountType,
    VoucherErrorCode,
)
from src.discounts.formatting import format_money
from src.discounts.redemption import RedemptionValidator, compute_discount_amount

from tests.factories import NOW, clock, make_discount


def build_validator(discount, snapshot=CartSnapshot(), user_usages=0):
    repository = MagicMock()
    repository.get_by_code = AsyncMock(return_value=discount)
    repository.count_user_usages = AsyncMock(return_value=user_usages)
    resolver = MagicMock()
    resolver.resolve = AsyncMock(return_value=snapshot)
    return RedemptionValidator(repository, resolver, clock=clock), repository, resolver


class TestComputeDiscountAmount:

    def test_percentage_clamped_to_max_discount(self):
        discount = make_discount(discount_type=DiscountType.PERCENTAGE, value=20, max_discount_value=50000)
        assert compute_discount_amount(discount, 1_000_000) == 50000

    def test_percentage_without_cap(self):
        discount = make_discount(discount_type=DiscountType.PERCENTAGE, value=20)
        assert compute_discount_amount(discount, 1_000_000) == 200000

    def test_percentage_rounds_half_up(self):
        discount = make_discount(discount_type=DiscountType.PERCENTAGE, value=15)
        # 999 * 15 / 100 = 149.85
        assert compute_discount_amount(discount, 999) == 150

    def test_hundred_percent_never_exceeds_total(self):
        discount = make_discount(discount_type=DiscountType.PERCENTAGE, value=100)
        assert compute_discount_amount(discount, 12345) == 12345

    def test_fixed_amount_clamped_to_total(self):
        discount = make_discount(discount_type=DiscountType.FIX_AMOUNT, value=30000)
        assert compute_discount_amount(discount, 20000) == 20000
        assert compute_discount_amount(discount, 50000) == 30000

    def test_fixed_amount_ignores_max_discount(self):
        discount = make_discount(discount_type=DiscountType.FIX_AMOUNT, value=30000, max_discount_value=1000)
        assert compute_discount_amount(discount, 50000) == 30000

    def test_empty_cart_gets_nothing(self):
        assert compute_discount_amount(make_discount(value=30000), 0) == 0


class TestRedemptionValidator:

    async def test_percentage_voucher_with_cap(self):
        discount = make_discount(
            discount_type=DiscountType.PERCENTAGE, value=20, max_discount_value=50000, min_order_value=100000
        )
        validator, _, _ = build_validator(discount, CartSnapshot(order_total=1_000_000))

        result = await validator.validate("SALE1", [uuid.uuid4()])

        assert result.is_valid
        assert result.discount is discount
        assert result.discount_amount == 50000
        assert result.final_order_total == 950000
        assert result.error is None

    async def test_below_minimum_order_names_the_minimum(self):
        discount = make_discount(
            discount_type=DiscountType.PERCENTAGE, value=20, max_discount_value=50000, min_order_value=100000
        )
        validator, _, _ = build_validator(discount, CartSnapshot(order_total=50000))

        result = await validator.validate("SALE1", [uuid.uuid4()])

        assert not result.is_valid
        assert result.error_code == VoucherErrorCode.BELOW_MINIMUM_ORDER
        assert "100.000" in result.error
        assert result.discount is None
        assert result.discount_amount is None
        assert result.final_order_total is None

    async def test_fixed_amount_larger_than_cart(self):
        discount = make_discount(discount_type=DiscountType.FIX_AMOUNT, value=30000)
        validator, _, _ = build_validator(discount, CartSnapshot(order_total=20000))

        result = await validator.validate("SALE1", [uuid.uuid4()])

        assert result.is_valid
        assert result.discount_amount == 20000
        assert result.final_order_total == 0

    async def test_exhausted(self):
        discount = make_discount(max_uses=100, uses_count=100)
        validator, _, resolver = build_validator(discount, CartSnapshot(order_total=500000))

        result = await validator.validate("SALE1", [uuid.uuid4()])

        assert not result.is_valid
        assert result.error_code == VoucherErrorCode.EXHAUSTED
        resolver.resolve.assert_not_awaited()

    async def test_unlimited_uses(self):
        discount = make_discount(max_uses=0, uses_count=100000)
        validator, _, _ = build_validator(discount, CartSnapshot(order_total=500000))

        assert (await validator.validate("SALE1", [uuid.uuid4()])).is_valid

    async def test_specific_voucher_not_in_cart(self):
        discount = make_discount(discount_apply_type=DiscountApplyType.SPECIFIC, products=[uuid.uuid4()])
        snapshot = CartSnapshot(order_total=500000, product_ids=frozenset({uuid.uuid4()}))
        validator, _, _ = build_validator(discount, snapshot)

        result = await validator.validate("SALE1", [uuid.uuid4()])

        assert not result.is_valid
        assert result.error_code == VoucherErrorCode.NOT_APPLICABLE

    async def test_specific_voucher_matching_category(self):
        category_id = uuid.uuid4()
        discount = make_discount(
            discount_apply_type=DiscountApplyType.SPECIFIC,
            products=[uuid.uuid4()],
            categories=[category_id],
        )
        snapshot = CartSnapshot(order_total=500000, category_ids=frozenset({category_id}))
        validator, _, _ = build_validator(discount, snapshot)

        assert (await validator.validate("SALE1", [uuid.uuid4()])).is_valid

    async def test_all_voucher_is_never_intersected(self):
        # Targets left on an ALL voucher are ignored
        discount = make_discount(discount_apply_type=DiscountApplyType.ALL, products=[uuid.uuid4()])
        snapshot = CartSnapshot(order_total=500000, product_ids=frozenset({uuid.uuid4()}))
        validator, _, _ = build_validator(discount, snapshot)

        assert (await validator.validate("SALE1", [uuid.uuid4()])).is_valid

    async def test_unknown_code(self):
        validator, repository, _ = build_validator(None)

        result = await validator.validate("nope")

        assert not result.is_valid
        assert result.error_code == VoucherErrorCode.CODE_NOT_FOUND
        repository.get_by_code.assert_awaited_once_with("NOPE")

    async def test_inactive(self):
        validator, _, _ = build_validator(make_discount(discount_status=DiscountStatus.INACTIVE))
        result = await validator.validate("SALE1")
        assert result.error_code == VoucherErrorCode.INACTIVE

    @pytest.mark.parametrize("window", [
        dict(start_date=NOW + timedelta(hours=1), end_date=NOW + timedelta(days=1)),
        dict(start_date=NOW - timedelta(days=2), end_date=NOW - timedelta(seconds=1)),
    ])
    async def test_outside_window(self, window):
        validator, _, _ = build_validator(make_discount(**window))
        result = await validator.validate("SALE1")
        assert result.error_code == VoucherErrorCode.EXPIRED

    async def test_window_bounds_are_inclusive(self):
        validator, _, _ = build_validator(make_discount(start_date=NOW, end_date=NOW + timedelta(days=1)))
        assert (await validator.validate("SALE1")).is_valid

    async def test_inactive_is_reported_before_expiry(self):
        discount = make_discount(discount_status=DiscountStatus.INACTIVE, end_date=NOW - timedelta(days=1),
                                 start_date=NOW - timedelta(days=3))
        validator, _, _ = build_validator(discount)
        assert (await validator.validate("SALE1")).error_code == VoucherErrorCode.INACTIVE

    async def test_per_user_limit(self):
        user_uid = uuid.uuid4()
        discount = make_discount(max_uses=10, max_uses_per_user=1)
        validator, repository, _ = build_validator(discount, CartSnapshot(order_total=50000), user_usages=1)

        result = await validator.validate("SALE1", [uuid.uuid4()], user_uid=user_uid)

        assert result.error_code == VoucherErrorCode.PER_USER_LIMIT_REACHED
        repository.count_user_usages.assert_awaited_once_with(discount.uid, user_uid)

    async def test_per_user_limit_skipped_for_anonymous_checks(self):
        discount = make_discount(max_uses_per_user=1)
        validator, repository, _ = build_validator(discount, CartSnapshot(order_total=50000), user_usages=5)

        assert (await validator.validate("SALE1", [uuid.uuid4()])).is_valid
        repository.count_user_usages.assert_not_awaited()

    async def test_cart_is_scoped_to_the_user(self):
        user_uid = uuid.uuid4()
        cart_ids = [uuid.uuid4()]
        validator, _, resolver = build_validator(make_discount(), CartSnapshot(order_total=50000))

        await validator.validate("SALE1", cart_ids, user_uid=user_uid)

        resolver.resolve.assert_awaited_once_with(cart_ids, user_uid)

    async def test_validation_is_idempotent(self):
        discount = make_discount(discount_type=DiscountType.PERCENTAGE, value=10)
        validator, _, _ = build_validator(discount, CartSnapshot(order_total=123456))

        cart_ids = [uuid.uuid4()]
        first = await validator.validate("SALE1", cart_ids)
        second = await validator.validate("SALE1", cart_ids)

        assert first == second
        assert discount.uses_count == 0


def test_format_money():
    assert format_money(100000) == "100.000đ"
    assert format_money(0) == "0đ"
    assert format_money(1234567) == "1.234.567đ"
