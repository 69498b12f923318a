"""
Order Ledger: FastAPI ASGI entry point
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from order_ledger.api.v1.router import api_router
from order_ledger.config import get_settings
from order_ledger.core.auth_middleware import JWTAuthMiddleware
from order_ledger.core.cache import close_redis
from order_ledger.core.responses import install_exception_handlers
from order_ledger.db.session import engine

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: dispose DB pool and Redis client on shutdown."""
    logger.info("Order Ledger starting (%s)", settings.ENVIRONMENT)
    yield
    await close_redis()
    await engine.dispose()


app = FastAPI(
    title="Order Ledger",
    description="Received orders, placed orders and the fulfillment links between them",
    version="0.1.0",
    docs_url="/api/v1/docs",
    redoc_url="/api/v1/redoc",
    openapi_url="/api/v1/openapi.json",
    lifespan=lifespan,
)
app.add_middleware(JWTAuthMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
install_exception_handlers(app)

app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health():
    """Health check for load balancers and Docker."""
    return {"status": "ok", "service": "order-ledger"}
