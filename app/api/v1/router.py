"""
Router API v1 : agrège les routers des modules MediVault.

    auth            /api/v1/auth
    user            /api/v1/users, /api/v1/doctors, /api/v1/patients
    record          /api/v1/records, /api/v1/patients/{id}/records
    access_request  /api/v1/access-requests
    audit           /api/v1/audit-logs
"""
from fastapi import APIRouter

from app.core.config import settings

from .access_request import router as access_request_router
from .audit import router as audit_router
from .auth import router as auth_router
from .record import router as record_router
from .user import router as user_router


api_router = APIRouter(prefix="/api/v1")

for module_router in (auth_router, user_router, record_router, access_request_router, audit_router):
    api_router.include_router(module_router)


@api_router.get("/health", tags=["System"], summary="Health check")
async def health_check():
    return {
        "status": "healthy",
        "service": "medivault-api",
        "version": settings.APP_VERSION,
        "api_version": "v1",
    }
