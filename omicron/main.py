from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
import logging

# Import database components
from omicron.database.database import engine, Base

# Import routers
from omicron.modules.catalog.router import products_router
from omicron.modules.cart.router import carts_router
from omicron.modules.pos.routers import tickets_router
from omicron.modules.reports.routers import cash_cut_router, analytics_router

# Import models for table creation
import omicron.modules.catalog.models
import omicron.modules.pos.models
import omicron.modules.reports.models

from omicron.core.config import settings

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.ENVIRONMENT == "production" else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Omicron POS API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Timezone: {settings.TIMEZONE}")
    yield
    logger.info("Omicron POS API shutting down...")


# FastAPI app
app = FastAPI(
    title="Omicron POS API",
    description="Punto de venta: carrito, cobro con control de stock, cancelaciones, cortes de caja y estadísticas",
    version="1.0.0",
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None,
    lifespan=lifespan
)

app.add_middleware(GZipMiddleware, minimum_size=1000)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Error-Code"],
)

# Include routers
app.include_router(products_router, prefix="/api/v1")
app.include_router(carts_router, prefix="/api/v1")
app.include_router(tickets_router, prefix="/api/v1")
app.include_router(cash_cut_router, prefix="/api/v1")
app.include_router(analytics_router, prefix="/api/v1")

# Create database tables (only for development)
if settings.ENVIRONMENT == "development":
    Base.metadata.create_all(bind=engine)


@app.get("/")
def read_root():
    return {
        "message": "Omicron POS API is running",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT
    }


@app.get("/health")
def health_check():
    return {"status": "healthy", "environment": settings.ENVIRONMENT}
