from fastapi import APIRouter
from app.api.v1.endpoints import (
    auth,
    sale_programs,
    discounts,
    categories,
    products,
    carts,
    invoices,
)

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(sale_programs.router, prefix="/sale-programs", tags=["sale-programs"])
api_router.include_router(discounts.router, prefix="/discounts", tags=["discounts"])
api_router.include_router(categories.router, prefix="/categories", tags=["categories"])
api_router.include_router(products.router, prefix="/products", tags=["products"])
api_router.include_router(carts.router, prefix="/cart", tags=["cart"])
api_router.include_router(invoices.router, prefix="/invoices", tags=["invoices"])
