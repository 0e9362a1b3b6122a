from datetime import datetime, timedelta, timezone
import uuid

from src.db.models import Brand, Cart, Category, Discount, Product, User
from src.discounts.constants import (
    DiscountApplyType,
    DiscountStatus,
    DiscountType,
    DisplayType,
    VoucherType,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def clock():
    return NOW


def make_user(role="CLIENT", **overrides) -> User:
    fields = dict(uid=uuid.uuid4(), username="someone", email=f"{uuid.uuid4().hex}@example.com", role=role)
    fields.update(overrides)
    return User(**fields)


def make_discount(products=(), categories=(), brands=(), **overrides) -> Discount:
    fields = dict(
        uid=uuid.uuid4(),
        code="SALE1",
        name="Spring sale",
        discount_type=DiscountType.FIX_AMOUNT,
        value=10000,
        max_discount_value=None,
        min_order_value=0,
        max_uses=0,
        max_uses_per_user=0,
        uses_count=0,
        start_date=NOW - timedelta(days=1),
        end_date=NOW + timedelta(days=7),
        is_platform=False,
        shop_id=None,
        voucher_type=VoucherType.SHOP,
        display_type=DisplayType.PUBLIC,
        discount_apply_type=DiscountApplyType.ALL,
        discount_status=DiscountStatus.ACTIVE,
        created_at=NOW - timedelta(days=2),
        updated_at=NOW - timedelta(days=2),
    )
    fields.update(overrides)
    discount = Discount(**fields)
    discount.products = [Product(uid=uid, title="product", price=1) for uid in products]
    discount.categories = [Category(uid=uid, name="category") for uid in categories]
    discount.brands = [Brand(uid=uid, name="brand") for uid in brands]
    return discount


def make_cart_item(price, quantity=1, shop_id=None, categories=(), brand_uid=None, **overrides) -> Cart:
    product = Product(uid=uuid.uuid4(), title="product", price=price, user_uid=shop_id, brand_uid=brand_uid)
    product.categories = [Category(uid=uid, name="category") for uid in categories]
    fields = dict(uid=uuid.uuid4(), user_uid=uuid.uuid4(), product_uid=product.uid, quantity=quantity)
    fields.update(overrides)
    item = Cart(**fields)
    item.product = product
    return item
