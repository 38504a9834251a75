# storefront/main.py
from contextlib import asynccontextmanager
import logging

from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi import FastAPI, Request, status

from storefront.core.config import get_settings
from storefront.database import create_db_and_tables

# Import models so SQLModel metadata is populated before create_all()
from storefront.models import user as _user_models  # noqa: F401
from storefront.models import product as _product_models  # noqa: F401
from storefront.models import cart as _cart_models  # noqa: F401
from storefront.models import order as _order_models  # noqa: F401
from storefront.models import address as _address_models  # noqa: F401
from storefront.models import wishlist as _wishlist_models  # noqa: F401
from storefront.models import coupon as _coupon_models  # noqa: F401
from storefront.models import support as _support_models  # noqa: F401
from storefront.models import audit as _audit_models  # noqa: F401

# Routers
from storefront.routers.auth import router as auth_router
from storefront.routers.users import router as users_router
from storefront.routers.products import router as products_router
from storefront.routers.search import router as search_router
from storefront.routers.recommendations import router as recommendations_router
from storefront.routers.cart import router as cart_router
from storefront.routers.wishlist import router as wishlist_router
from storefront.routers.addresses import router as addresses_router
from storefront.routers.orders import router as orders_router
from storefront.routers.promotions import router as promotions_router
from storefront.routers.support import router as support_router
from storefront.routers.admin_products import router as admin_products_router
from storefront.routers.admin_orders import router as admin_orders_router
from storefront.routers.admin_promotions import router as admin_promotions_router
from storefront.routers.admin_support import router as admin_support_router
from storefront.routers.admin_analytics import router as admin_analytics_router
from storefront.routers.admin_exports import router as admin_exports_router
from storefront.routers.admin_audit_logs import router as admin_audit_logs_router

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Verify DB connectivity and create tables.

    Shutdown:
      - No special cleanup needed for sync engine.
    """
    logger.info("Startup: connecting to database...")
    try:
        create_db_and_tables()
        logger.info("Startup: DB connection OK, tables verified.")
    except Exception as e:
        logger.error(f"Startup: DB connection FAILED: {e}")
        raise
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


# --- CORS configuration ---
# allow_credentials so the guest cart cookie reaches the API
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Error handling ---


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed input is reported as 400 with the field errors."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# Versioned API prefix, e.g. /api/v1
for router in (
    auth_router,
    users_router,
    products_router,
    search_router,
    recommendations_router,
    cart_router,
    wishlist_router,
    addresses_router,
    orders_router,
    promotions_router,
    support_router,
    admin_products_router,
    admin_orders_router,
    admin_promotions_router,
    admin_support_router,
    admin_analytics_router,
    admin_exports_router,
    admin_audit_logs_router,
):
    app.include_router(router, prefix=settings.API_V1_STR)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "perfume-storefront"}
