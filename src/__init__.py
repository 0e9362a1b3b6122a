from fastapi import FastAPI

from src.admin_dashboard.discounts.routes import manage_discount_router
from src.user_dashboard.discounts.routes import user_discount_router

from .errors import register_all_errors
from .middleware import register_middleware

version = "v1"

app = FastAPI(
    title = "Marketplace Vouchers",
    description = "A REST API for marketplace discount vouchers",
    version = version,
)


register_all_errors(app)
register_middleware(app)


app.include_router(user_discount_router, prefix=f"/discounts", tags=['discounts'])
app.include_router(manage_discount_router, prefix=f"/manage-discount", tags=['manage discounts'])
