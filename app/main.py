# app/main.py

"""
Main FastAPI application entrypoint for the Aura Assessment API.

This file is responsible for:
  - Creating the FastAPI app instance.
  - Configuring logging.
  - Enabling CORS so the browser frontend can call the API.
  - Rendering domain errors as JSON.
  - Registering all routers (modular endpoint groups).
  - Attaching lifecycle hooks (startup/shutdown).
"""

from dotenv import load_dotenv
load_dotenv()  # will read .env in project root

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Local imports (project-specific)
from app.core.config import settings               # Global settings (env-based, see config.py)
from app.core.errors import AssessmentError
from app.core.logging import configure_logging
from app.core.version import APP_NAME, APP_VERSION
from app.api.routers import (                      # All API routers (organized by feature)
    catalog,
    flows,
    health,
    stt,
)
from app.lifespan import lifespan                  # Startup/shutdown event handler

# ---------------------------------------------------------------------
# 1. Configure logging
# ---------------------------------------------------------------------
# Controlled by settings.LOG_LEVEL (e.g. "INFO", "DEBUG").
configure_logging(settings.LOG_LEVEL)


# ---------------------------------------------------------------------
# 2. Create FastAPI app instance
# ---------------------------------------------------------------------
app = FastAPI(
    title=APP_NAME,
    version=APP_VERSION,
    lifespan=lifespan,
)


# ---------------------------------------------------------------------
# 3. Configure CORS
# ---------------------------------------------------------------------
# Origins come from settings.CORS_ORIGINS. Credentials are only allowed
# when the origins are explicit (browsers reject "*" with credentials).
# --------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials="*" not in settings.CORS_ORIGINS,
    allow_methods=["GET", "POST", "OPTIONS", "DELETE"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------
# 4. Domain errors
# ---------------------------------------------------------------------
# Anything raised as AssessmentError and not handled by a flow becomes
# {"error", "code", "title"} with the error's status code.
# ---------------------------------------------------------------------
@app.exception_handler(AssessmentError)
async def assessment_error_handler(request: Request, exc: AssessmentError):
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


# ---------------------------------------------------------------------
# 5. Register Routers
# ---------------------------------------------------------------------
# Example final paths:
#   - /health                     (health router, no prefix, good for LB checks)
#   - /api/catalog                (topics, books, reading windows)
#   - /api/transcribe             (raw audio -> transcript)
#   - /api/flows/...              (topic and book assessment flows)
# ---------------------------------------------------------------------
app.include_router(health.router)                        # available at /health
app.include_router(catalog.router, prefix=settings.API_PREFIX)
app.include_router(stt.router,     prefix=settings.API_PREFIX)
app.include_router(flows.router,   prefix=settings.API_PREFIX)


@app.get("/", include_in_schema=False)
def root():
    return {
        "ok": True,
        "name": APP_NAME,
        "health": "/health",
        "docs": "/docs",
        "api_prefix": settings.API_PREFIX,
    }
