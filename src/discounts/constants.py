from enum import Enum


class DiscountType(str, Enum):
    PERCENTAGE = "PERCENTAGE"
    FIX_AMOUNT = "FIX_AMOUNT"


class DiscountApplyType(str, Enum):
    ALL = "ALL"
    SPECIFIC = "SPECIFIC"


class DiscountStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class VoucherType(str, Enum):
    PLATFORM = "PLATFORM"
    SHOP = "SHOP"
    PRODUCT = "PRODUCT"
    CATEGORY = "CATEGORY"
    BRAND = "BRAND"


class DisplayType(str, Enum):
    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"


class VoucherUseCase(str, Enum):
    SHOP = "SHOP"
    PRODUCT = "PRODUCT"
    PRIVATE = "PRIVATE"
    PLATFORM = "PLATFORM"
    CATEGORIES = "CATEGORIES"
    BRAND = "BRAND"
    SHOP_ADMIN = "SHOP_ADMIN"
    PRODUCT_ADMIN = "PRODUCT_ADMIN"
    PRIVATE_ADMIN = "PRIVATE_ADMIN"


class RoleName(str, Enum):
    ADMIN = "ADMIN"
    SELLER = "SELLER"
    CLIENT = "CLIENT"


class DiscountScope(str, Enum):
    """Which vouchers the shopper listing should return."""
    ALL = "ALL"
    SHOP = "SHOP"
    PLATFORM = "PLATFORM"


class VoucherErrorCode(str, Enum):
    CODE_NOT_FOUND = "code_not_found"
    INACTIVE = "inactive"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"
    PER_USER_LIMIT_REACHED = "per_user_limit_reached"
    BELOW_MINIMUM_ORDER = "below_minimum_order"
    NOT_APPLICABLE = "not_applicable"


class SortBy(str, Enum):
    CREATED_AT = "createdAt"
    VALUE = "value"
    USES_COUNT = "usesCount"


class OrderBy(str, Enum):
    ASC = "asc"
    DESC = "desc"


CODE_PATTERN = r"^[A-Z0-9]{1,5}$"
