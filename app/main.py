# app/main.py

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.catalog.registry import station_registry
from app.core.config import settings
from app.utils.logger import setup_app_logging, get_logger
# Local application imports - Routes
from app.users.router import router as user_routes
from app.catalog.router import router as catalog_routes
from app.closures.router import router as closure_routes
from app.invoicing.router import router as invoicing_routes
from app.positions.router import router as position_routes
from app.tanks.router import router as tank_routes
from app.reports.router import router as report_routes

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Load the station and register name maps before serving requests.
    The API still starts when the vendor is unreachable, names are then
    loaded on first use.
    """
    try:
        await station_registry.load()
    except Exception as e:
        logger.warning("Could not load station and register names at startup", error=str(e))
    yield


# Create the FastAPI app
estaciones_app = FastAPI(
    title=f"Estaciones Reporting - {settings.environment}",
    description="Fuel station back-office reporting API",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Plain text on the console outside production, JSON lines in production
is_production = settings.environment.lower() == "production"
setup_app_logging(
    estaciones_app,
    log_level=settings.log_level,
    use_json=is_production,
    log_file=settings.log_file or (None if is_production else "app.log"),
    environment=settings.environment,
)

# Add CORS middleware
estaciones_app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
for router in (
    user_routes,
    catalog_routes,
    closure_routes,
    invoicing_routes,
    position_routes,
    tank_routes,
    report_routes,
):
    estaciones_app.include_router(router, prefix=settings.api_prefix)


# Health check
@estaciones_app.get("/", tags=["Base"])
async def health_check():
    """Liveness check, no database access"""
    return {"status": "ok", "environment": settings.environment}
