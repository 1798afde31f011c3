from fastapi import APIRouter

from storefront.readiness import readiness_manager

router = APIRouter()

@router.get("/health")
async def health_check():
    status = "healthy" if readiness_manager.is_service_available("api") else "degraded"
    return {"status": status, "services": readiness_manager.services}

@router.get("/ready")
async def readiness_check():
    return readiness_manager.get_status()
