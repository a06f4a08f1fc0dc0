from fastapi import APIRouter
from portal.routers.admin import admin_router
from portal.routers.auth import auth_router
from portal.routers.document import document_router
from portal.routers.notification import notification_router
from portal.routers.registration import registration_router
from portal.routers.system import settings_router

# Create API router with prefix
api_router = APIRouter(prefix="/api/v1")

# Include all routers
api_router.include_router(auth_router)
api_router.include_router(registration_router)
api_router.include_router(document_router)
api_router.include_router(notification_router)
api_router.include_router(settings_router)
api_router.include_router(admin_router)
