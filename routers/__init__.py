from .products import router as products_router
from .interactions import router as interactions_router
from .admin import router as admin_router

__all__ = [
    "products_router",
    "interactions_router",
    "admin_router",
]
