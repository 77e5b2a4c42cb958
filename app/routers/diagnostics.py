# =============================================================================
# app/routers/diagnostics.py - Diagnostic Endpoints
# =============================================================================
# Lets an operator trigger a server error on purpose to check that it shows
# up in the error tracker. Only served in development and staging.
# =============================================================================

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.config import Settings, get_app_settings
from app.exceptions import DiagnosticError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/diagnostics/error")
async def raise_diagnostic_error(settings: Settings = Depends(get_app_settings)):
    """
    Raise a DiagnosticError.

    Raises:
        404: Outside development and staging
        500: Always, everywhere else
    """
    if not settings.docs_enabled:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")

    logger.warning("Diagnostic error requested")
    raise DiagnosticError()
