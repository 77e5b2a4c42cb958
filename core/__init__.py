# =============================================================================
# core/ - Business Logic Package
# =============================================================================
# This package contains framework-agnostic logic:
# - models/: Pydantic schemas (trace sampling context)
# - services/: Pure decision logic (trace sampling policy)
#
# Code in this package should NOT import from FastAPI or the Sentry SDK.
# This keeps the logic testable and reusable.
# =============================================================================
