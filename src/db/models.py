from sqlmodel import Relationship, SQLModel, Field
import sqlalchemy.dialects.postgresql as pg
from datetime import datetime, timezone
from typing import List, Optional
import uuid
from sqlalchemy import Column, String, Text, BigInteger, Integer, Boolean, Index, CheckConstraint, ForeignKey

from src.discounts.constants import (
    DiscountType,
    DiscountApplyType,
    DiscountStatus,
    VoucherType,
    DisplayType,
    RoleName,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


"""
___________________________________________________

1.  User Table (shop owners are users with the SELLER role)
___________________________________________________

"""
class User(SQLModel, table = True):
    __tablename__ = 'users'
    uid : uuid.UUID = Field(
        default_factory = uuid.uuid4,
        sa_column = Column(
            pg.UUID(as_uuid=True),
            nullable = False,
            primary_key = True
        )
    )
    username : str
    email : str = Field(sa_column=Column(String, unique=True, index=True))
    role : str = Field(default=RoleName.CLIENT.value, sa_column=Column(
        pg.VARCHAR, nullable=False, server_default=RoleName.CLIENT.value
    ))
    is_verified : bool = Field(default = False)
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(pg.TIMESTAMP(timezone=True), default=utcnow))

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN.value

    def __repr__(self):
        return f'<User {self.username}>'


"""
___________________________________________________

2.  Catalog link tables
___________________________________________________

"""
class ProductCategoryLink(SQLModel, table=True):
    __tablename__ = "product_categories"

    product_uid: uuid.UUID = Field(foreign_key="products.uid", primary_key=True)
    category_uid: uuid.UUID = Field(foreign_key="categories.uid", primary_key=True)


class DiscountProductLink(SQLModel, table=True):
    __tablename__ = "discount_products"

    discount_uid: uuid.UUID = Field(foreign_key="discounts.uid", primary_key=True)
    product_uid: uuid.UUID = Field(foreign_key="products.uid", primary_key=True)


class DiscountCategoryLink(SQLModel, table=True):
    __tablename__ = "discount_categories"

    discount_uid: uuid.UUID = Field(foreign_key="discounts.uid", primary_key=True)
    category_uid: uuid.UUID = Field(foreign_key="categories.uid", primary_key=True)


class DiscountBrandLink(SQLModel, table=True):
    __tablename__ = "discount_brands"

    discount_uid: uuid.UUID = Field(foreign_key="discounts.uid", primary_key=True)
    brand_uid: uuid.UUID = Field(foreign_key="brands.uid", primary_key=True)


"""
___________________________________________________

3.  Catalog Tables (read-only for the voucher engine)
___________________________________________________

"""
class Category(SQLModel, table=True):
    __tablename__ = "categories"

    uid: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(pg.UUID(as_uuid=True), nullable=False, primary_key=True)
    )
    name: str

    def __repr__(self):
        return f"<Category {self.name}>"


class Brand(SQLModel, table=True):
    __tablename__ = "brands"

    uid: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(pg.UUID(as_uuid=True), nullable=False, primary_key=True)
    )
    name: str

    def __repr__(self):
        return f"<Brand {self.name}>"


class Product(SQLModel, table=True):
    __tablename__ = "products"

    uid: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(pg.UUID(as_uuid=True), nullable=False, primary_key=True)
    )
    title: str
    # Smallest currency unit
    price: int = Field(sa_column=Column(BigInteger, nullable=False))
    is_active: bool = Field(nullable=False, default=True)
    # The shop that sells the product
    user_uid: Optional[uuid.UUID] = Field(default=None, foreign_key="users.uid")
    brand_uid: Optional[uuid.UUID] = Field(default=None, foreign_key="brands.uid")
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(pg.TIMESTAMP(timezone=True), default=utcnow))

    brand: Optional[Brand] = Relationship(sa_relationship_kwargs={'lazy': 'selectin'})
    categories: List[Category] = Relationship(link_model=ProductCategoryLink, sa_relationship_kwargs={'lazy': 'selectin'})

    def __repr__(self):
        return f"<Product {self.title}>"


"""
___________________________________________________

4.  Cart Table
___________________________________________________

"""
class Cart(SQLModel, table=True):
    __tablename__ = "carts"

    uid: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(pg.UUID(as_uuid=True), nullable=False, primary_key=True)
    )
    user_uid: uuid.UUID = Field(default=None, foreign_key="users.uid")
    product_uid: uuid.UUID = Field(default=None, foreign_key="products.uid", nullable=False)
    quantity: int = Field(default=1, gt=0)
    added_at: datetime = Field(default_factory=utcnow)

    product: Optional[Product] = Relationship(sa_relationship_kwargs={'lazy': 'selectin'})

    @property
    def line_total(self) -> int:
        return self.quantity * self.product.price if self.product else 0


"""
___________________________________________________

5.  Discount Tables
___________________________________________________

"""
class Discount(SQLModel, table=True):
    __tablename__ = "discounts"
    __table_args__ = (
        CheckConstraint("value > 0", name="ck_discounts_positive_value"),
        CheckConstraint("uses_count >= 0", name="ck_discounts_uses_count"),
        CheckConstraint("start_date < end_date", name="ck_discounts_window"),
        Index("idx_discounts_available", "discount_status", "start_date", "end_date"),
    )

    uid: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(pg.UUID(as_uuid=True), nullable=False, primary_key=True)
    )
    code: str = Field(sa_column=Column(String(5), unique=True, index=True, nullable=False))
    name: str = Field(sa_column=Column(String(500), nullable=False))
    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))

    discount_type: DiscountType = Field(default=DiscountType.FIX_AMOUNT)
    # Percent for PERCENTAGE, smallest currency unit for FIX_AMOUNT
    value: int = Field(sa_column=Column(BigInteger, nullable=False))
    max_discount_value: Optional[int] = Field(default=None, sa_column=Column(BigInteger, nullable=True))
    min_order_value: int = Field(default=0, sa_column=Column(BigInteger, nullable=False, server_default="0"))

    # 0 means unlimited
    max_uses: int = Field(default=0, sa_column=Column(Integer, nullable=False, server_default="0"))
    max_uses_per_user: int = Field(default=0, sa_column=Column(Integer, nullable=False, server_default="0"))
    uses_count: int = Field(default=0, sa_column=Column(Integer, nullable=False, server_default="0"))

    start_date: datetime = Field(sa_column=Column(pg.TIMESTAMP(timezone=True), nullable=False))
    end_date: datetime = Field(sa_column=Column(pg.TIMESTAMP(timezone=True), nullable=False))

    is_platform: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, server_default="false"))
    shop_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.uid", index=True)
    voucher_type: VoucherType = Field(default=VoucherType.SHOP)
    display_type: DisplayType = Field(default=DisplayType.PUBLIC)
    discount_apply_type: DiscountApplyType = Field(default=DiscountApplyType.ALL)
    discount_status: DiscountStatus = Field(default=DiscountStatus.ACTIVE)

    created_by_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.uid", index=True)
    updated_by_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.uid")
    deleted_by_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.uid")
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(pg.TIMESTAMP(timezone=True), default=utcnow, index=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_column=Column(pg.TIMESTAMP(timezone=True), default=utcnow, onupdate=utcnow))
    deleted_at: Optional[datetime] = Field(default=None, sa_column=Column(pg.TIMESTAMP(timezone=True), nullable=True, index=True))

    products: List[Product] = Relationship(link_model=DiscountProductLink, sa_relationship_kwargs={'lazy': 'selectin'})
    categories: List[Category] = Relationship(link_model=DiscountCategoryLink, sa_relationship_kwargs={'lazy': 'selectin'})
    brands: List[Brand] = Relationship(link_model=DiscountBrandLink, sa_relationship_kwargs={'lazy': 'selectin'})

    def __repr__(self):
        return f"<Discount {self.code}>"

    @property
    def product_ids(self) -> List[uuid.UUID]:
        return [p.uid for p in self.products or []]

    @property
    def category_ids(self) -> List[uuid.UUID]:
        return [c.uid for c in self.categories or []]

    @property
    def brand_ids(self) -> List[uuid.UUID]:
        return [b.uid for b in self.brands or []]

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def is_exhausted(self) -> bool:
        return self.max_uses > 0 and self.uses_count >= self.max_uses

    def is_running(self, now: datetime) -> bool:
        return self.start_date <= now <= self.end_date


class DiscountUsage(SQLModel, table=True):
    """One row per redemption, written by the checkout transaction."""
    __tablename__ = "discount_usages"
    __table_args__ = (
        Index("idx_discount_usages_discount_user", "discount_uid", "user_uid"),
    )

    uid: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        sa_column=Column(pg.UUID(as_uuid=True), nullable=False, primary_key=True)
    )
    discount_uid: uuid.UUID = Field(
        sa_column=Column(pg.UUID(as_uuid=True), ForeignKey("discounts.uid", ondelete="CASCADE"), nullable=False)
    )
    user_uid: uuid.UUID = Field(foreign_key="users.uid", nullable=False)
    order_reference: Optional[str] = None
    used_at: datetime = Field(default_factory=utcnow, sa_column=Column(pg.TIMESTAMP(timezone=True), default=utcnow))
