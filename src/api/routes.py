from fastapi import APIRouter
from api.webhook_routes import router as webhook_router

router = APIRouter()

# Include Strava webhook and token sync routes
router.include_router(webhook_router)


@router.get("/api/v1/status")
async def api_status():
    """API status endpoint."""
    return {"status": "operational", "version": "v1"}
