# =============================================================================
# app/ - FastAPI Application Package
# =============================================================================
# This package contains the web application:
# - factory.py: create_app(), middleware setup, error handlers, lifespan
# - main.py: module-level app for `uvicorn app.main:app`
# - __main__.py: process entry point (`python -m app`)
# - config.py: Environment variable loading and settings
# - telemetry.py: Sentry SDK setup and trace sampler registration
# - logging_config.py: Structured logging
# - routers/, realtime/, auth/: API endpoints
#
# The app layer is thin - the sampling policy lives in core/.
# =============================================================================

__version__ = "1.0.0"
