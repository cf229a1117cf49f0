"""
Main FastAPI application entry point.
Configures the application, middleware, and includes routers.
"""
from dotenv import load_dotenv

# Load environment variables from .env file first
load_dotenv()

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from . import __version__
from .accounts.router import router as accounts_router
from .auth.router import router as auth_router
from .billing.router import router as billing_router
from .config import settings
from .core.bootstrap import seed_demo_data_if_needed
from .core.middleware import setup_middlewares
from .database import SessionLocal, engine, get_db
from .exceptions import register_exception_handlers
from .models import Base  # Import all models here for creating tables
from .patients.router import router as patients_router

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and, when enabled, seed demo data before serving."""
    logger.info("Starting Unified Patient Manager API...")
    Base.metadata.create_all(bind=engine)

    if settings.seed_demo_data:
        db = SessionLocal()
        try:
            seed_demo_data_if_needed(db)
        except Exception as e:
            logger.error(f"Demo seed failed: {str(e)}")
        finally:
            db.close()
    yield


# Create FastAPI application
app = FastAPI(
    title="Unified Patient Manager API",
    description="Patient records, billing and account administration for providers, patients and staff",
    version=__version__,
    lifespan=lifespan,
)

# Register exception handlers
register_exception_handlers(app)

# Configure CORS middleware
origins = [settings.frontend_url, *settings.cors_origins]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup custom middleware
setup_middlewares(app)

# Include routers
app.include_router(auth_router)
app.include_router(patients_router)
app.include_router(billing_router)
app.include_router(accounts_router)


# Root endpoint
@app.get("/")
def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API version
    """
    return {"message": "Welcome to Unified Patient Manager API", "version": __version__}


# Health check endpoint
@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """
    Health check endpoint for monitoring.

    Returns:
        dict: Health status information (503 when the database is unreachable)
    """
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Health check database probe failed: {str(e)}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unhealthy", "database": "unavailable"},
        )
    return {"status": "healthy", "database": "connected"}
