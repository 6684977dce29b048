"""
Realty CRM Backend - FastAPI Application
Main entry point with all routes configured.
"""
import logging
from pathlib import Path
from urllib.parse import urlparse

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager

from realty_crm.config import settings
from realty_crm.database import init_db
from realty_crm.schemas.common import HealthResponse

# Import all API routers
from realty_crm.api import (
    auth, users, leads, reports, catalog, notifications, tasks, chat, system_settings, dashboard
)

# Import models to ensure they are registered with SQLModel
from realty_crm.models import (
    User, UserRole, RefreshToken,
    Lead, LeadActivity,
    Project, LeadSourceOption,
    Notification, Task,
    ChatGroup, ChatGroupMember, ChatMessage,
    SystemSetting
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup
    await init_db()
    yield
    # Shutdown


app = FastAPI(
    title="Realty CRM API",
    description="Lead pipeline, reporting and team messaging for real-estate sales teams",
    version=APP_VERSION,
    lifespan=lifespan
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL] if not settings.DEV_MODE else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include all routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(leads.router)
app.include_router(reports.router)
app.include_router(catalog.projects_router)
app.include_router(catalog.sources_router)
app.include_router(notifications.router)
app.include_router(notifications.notices_router)
app.include_router(tasks.router)
app.include_router(chat.router)
app.include_router(system_settings.router)
app.include_router(dashboard.router)

# Uploaded files are served back under the path of their public URL
Path(settings.STORAGE_DIR).mkdir(parents=True, exist_ok=True)
app.mount(
    urlparse(settings.STORAGE_PUBLIC_URL).path.rstrip("/") or "/storage",
    StaticFiles(directory=settings.STORAGE_DIR),
    name="storage"
)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "message": "Realty CRM API is running",
        "version": APP_VERSION,
        "docs": "/docs"
    }


@app.get("/health", response_model=HealthResponse)
async def health():
    """Detailed health check."""
    return HealthResponse(version=APP_VERSION)
