"""
API v1 Router
"""

from fastapi import APIRouter

from aroha_shared.schemas.common import ErrorResponse

from . import admin, integrations

ERROR_RESPONSES = {
    status: {"model": ErrorResponse} for status in (400, 401, 403, 404, 422, 500)
}

router = APIRouter()

router.include_router(
    integrations.router,
    prefix="/integrations",
    tags=["Integrations"],
    responses=ERROR_RESPONSES,
)
router.include_router(admin.router, prefix="/admin", tags=["Admin"], responses=ERROR_RESPONSES)


@router.get("/", tags=["API"])
async def api_root():
    """API root — returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/integrations/gmail/disconnect",
            "/integrations/gmail/status",
            "/integrations/google/disconnect",
            "/integrations/google/status",
            "/admin/access",
            "/admin/org-info",
            "/admin/global-controls",
        ],
    }
