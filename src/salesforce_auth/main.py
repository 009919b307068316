"""Salesforce SSO Bridge

Main FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from salesforce_auth.api.routes import salesforce
from salesforce_auth.config.settings import get_settings
from salesforce_auth.core.auth import SalesforceAuthError
from salesforce_auth.infrastructure.database import close_db, init_db

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    logger.info(f"Starting {settings.service_name} v{settings.service_version}")
    logger.info(f"Environment: {settings.environment}")

    if not settings.salesforce_client_id or not settings.salesforce_client_secret:
        logger.warning("SALESFORCE_CLIENT_ID / SALESFORCE_CLIENT_SECRET not set; sign-in will fail")

    if settings.environment == "development":
        await init_db()
        logger.info("Database tables ensured")

    yield

    # Shutdown
    logger.info("Shutting down Salesforce SSO bridge")
    await close_db()


app = FastAPI(
    title="Salesforce SSO Bridge",
    version=settings.service_version,
    description="Signs members in with their Salesforce account",
    lifespan=lifespan
)


@app.get("/health")
async def root_health_check():
    """Root health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.service_name,
        "version": settings.service_version,
        "environment": settings.environment
    }


@app.get("/")
async def root():
    """Root endpoint with service information"""
    return {
        "service": settings.service_name,
        "version": settings.service_version,
        "description": "Salesforce SSO Bridge",
        "login": "/salesforce-auth/login",
        "health": "/health"
    }


app.include_router(salesforce.router)


@app.exception_handler(SalesforceAuthError)
async def salesforce_auth_exception_handler(request: Request, exc: SalesforceAuthError):
    """Report failed Salesforce sign-ins"""
    logger.warning(f"Salesforce sign-in failed: {exc.error}: {exc.message}")
    return JSONResponse(
        status_code=401,
        content={
            "error": exc.error,
            "message": exc.message
        }
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please try again later."
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "salesforce_auth.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
