"""
Bagel Shop API

Ordering backend for the bagel shop: signed cart tokens, membership and
promo code pricing, and checkout through a payment gateway.
"""

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables
load_dotenv()

from .core.config import settings  # noqa: E402
from .core.errors import register_error_handlers  # noqa: E402
from .routes import (  # noqa: E402
    admin_router,
    cart_router,
    checkout_router,
    items_router,
    memberships_router,
)
from .security.cart_tokens import revoked_tokens  # noqa: E402

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info(f"{settings.app_name} starting up...")
    if settings.using_dev_secret:
        logger.warning("Using the development signing secret; run scripts/generate_secret.py")
    logger.info(f"Promo usage accounting: {settings.promo_usage_accounting}")
    revoked_tokens.start()
    yield
    await revoked_tokens.stop()
    logger.info(f"{settings.app_name} shutting down...")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Cart pricing, promo codes and checkout for the bagel shop",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.storefront_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Include API routers
app.include_router(items_router)
app.include_router(cart_router)
app.include_router(checkout_router)
app.include_router(memberships_router)
app.include_router(admin_router)


@app.get("/")
async def root():
    return {
        "message": settings.app_name,
        "docs": "/docs",
        "endpoints": {
            "items": "/api/items",
            "cart": "/api/cart",
            "checkout": "/api/checkout",
            "memberships": "/api/memberships",
            "admin": "/api/admin",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "bagel-shop-api"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "bagelshop.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
