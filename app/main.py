"""Main FastAPI application for the DocVault API."""
from fastapi import FastAPI
import logging

from app.middleware.cors import add_cors_middleware
from app.db.init import init_db
from app.routers import documents_router, notifications_router, realtime_router
from app.utils.logger import configure_logging
from app.utils.metrics import metrics_collector

configure_logging()
logger = logging.getLogger(__name__)

# Create FastAPI application
app = FastAPI(
    title="DocVault API",
    description="Document organization with AI-extracted metadata and smart due-date reminders",
    version="1.0.0",
)

# Add CORS middleware
add_cors_middleware(app)


@app.on_event("startup")
async def startup_event():
    """Initialize database tables on startup."""
    try:
        init_db()
        logger.info("[SUCCESS] Database tables initialized successfully.")
    except Exception as e:
        logger.error(f"[WARNING] Database initialization failed: {str(e)}")
        logger.error("[WARNING] Server will continue but database operations may fail.")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "1.0.0"}


@app.get("/metrics")
async def get_metrics():
    """Counters and timers of the notification engine."""
    return metrics_collector.get_metrics()


@app.get("/")
async def root():
    """Root endpoint - API welcome message."""
    return {
        "title": "DocVault API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }


app.include_router(documents_router, prefix="/api")  # /api/{user_id}/documents, /api/{user_id}/subscription
app.include_router(notifications_router, prefix="/api")  # /api/{user_id}/notifications
app.include_router(realtime_router)  # /ws/notifications


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
