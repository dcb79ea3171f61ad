"""
EDC Panorama: FastAPI application entry point.

This module initializes the FastAPI application behind the EDC Panorama
fixed-asset inventory. It configures CORS, connects to MongoDB, seeds the
default administrator and registers all API routes related to
authentication, users, assets, configuration, audit logs, the dashboard
and the AI assistant.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from panorama.db.client import init_mongo
from panorama.routes import (
    assets_routes,
    assistant_routes,
    auth_routes,
    config_routes,
    dashboard_routes,
    logs_routes,
    user_routes,
)
from panorama.services.user_service import ensure_default_admin

# ------------------------------------------------------------------------------
# Application initialization
# ------------------------------------------------------------------------------

app = FastAPI(
    title="EDC Panorama",
    description="API de gestion des immobilisations EDC Panorama",
    version="1.0.0"
)

# ------------------------------------------------------------------------------
# Middleware configuration
# ------------------------------------------------------------------------------

# CORS middleware: allows cross-origin requests from the browser client.
# Adjust 'allow_origins' for production deployment.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ------------------------------------------------------------------------------
# Application startup events
# ------------------------------------------------------------------------------

@app.on_event("startup")
async def startup_db():
    """
    Initialize the MongoDB client on application startup and make sure an
    administrator account exists.
    """
    await init_mongo()
    await ensure_default_admin()

# ------------------------------------------------------------------------------
# API routes registration
# ------------------------------------------------------------------------------

app.include_router(auth_routes.router, prefix="/auth", tags=["Auth"])
app.include_router(user_routes.router, prefix="/users", tags=["Users"])
app.include_router(assets_routes.router, prefix="/assets", tags=["Assets"])
app.include_router(config_routes.router, prefix="/config", tags=["Config"])
app.include_router(logs_routes.router, prefix="/logs", tags=["Logs"])
app.include_router(dashboard_routes.router, prefix="/dashboard", tags=["Dashboard"])
app.include_router(assistant_routes.router, prefix="/assistant", tags=["Assistant"])
