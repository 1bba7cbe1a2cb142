"""
Storefront API
FastAPI application entry point

- Rate limiting with SlowAPI
- Structured StorefrontError responses
- Error sanitization middleware
- Health endpoint with DB ping
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

from storefront import __version__
from storefront.api.routes import (
    addresses,
    admin,
    admin_orders,
    auth,
    cart,
    checkout,
    loyalty,
    orders,
    products,
    reviews,
    users,
    vendor,
    webhooks,
    wishlist,
)
from storefront.core.config import settings
from storefront.core.database import AsyncSessionLocal
from storefront.core.exceptions import StorefrontError
from storefront.core.rate_limit import limiter, rate_limit_exceeded_handler
from storefront.core.error_handler import (
    ErrorSanitizationMiddleware,
    storefront_error_handler,
    validation_error_handler,
)
from storefront.services.email_service import get_email_service

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup; close outbound HTTP clients on shutdown."""
    logger.info(f"{settings.APP_NAME} starting (environment={settings.ENVIRONMENT})")
    if not settings.STRIPE_WEBHOOK_SECRET:
        logger.warning("STRIPE_WEBHOOK_SECRET not set; Stripe webhooks will be rejected")

    yield

    provider = get_email_service().provider
    close = getattr(provider, "close", None)
    if close:
        await close()
        logger.info("Email HTTP client closed")


app = FastAPI(
    lifespan=lifespan,
    title=f"{settings.APP_NAME} API",
    description="""
## Storefront E-Commerce API

Catalog, cart, Stripe Checkout, order lifecycle and loyalty points.

### Authentication
Most endpoints require a Bearer token from `/api/auth/login`.
""",
    version=__version__,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_exception_handler(StorefrontError, storefront_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)

# Catches unhandled exceptions
app.add_middleware(ErrorSanitizationMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(products.router, prefix="/api/products", tags=["Products"])
app.include_router(reviews.router, prefix="/api/reviews", tags=["Reviews"])
app.include_router(cart.router, prefix="/api/cart", tags=["Cart"])
app.include_router(addresses.router, prefix="/api/addresses", tags=["Addresses"])
app.include_router(wishlist.router, prefix="/api/wishlist", tags=["Wishlist"])
app.include_router(checkout.router, prefix="/api/checkout", tags=["Checkout"])
app.include_router(webhooks.router, prefix="/api/webhooks", tags=["Webhooks"])
app.include_router(orders.router, prefix="/api/orders", tags=["Orders"])
app.include_router(loyalty.router, prefix="/api/loyalty", tags=["Loyalty"])
app.include_router(users.router, prefix="/api/user", tags=["Users"])
app.include_router(vendor.router, prefix="/api/vendor", tags=["Vendor"])
app.include_router(admin_orders.router, prefix="/api/admin/orders", tags=["Admin - Orders"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])


@app.get("/", tags=["Health"])
async def root():
    return {
        "message": f"{settings.APP_NAME} API",
        "version": __version__,
        "docs": "/docs",
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check with a DB ping. Returns 503 if the database is unreachable."""
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    try:
        async with AsyncSessionLocal() as db:
            await db.execute(text("SELECT 1"))
        health_status["database"] = "connected"
    except Exception as e:
        logger.error(f"Health check database ping failed: {e}")
        health_status["database"] = f"error: {type(e).__name__}"
        health_status["status"] = "unhealthy"
        return JSONResponse(status_code=503, content=health_status)

    return health_status
