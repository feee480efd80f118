from fastapi import APIRouter

from app.modules.auth.router import router as auth_router
from app.modules.capacity.admin_router import router as admin_capacity_router
from app.modules.capacity.router import router as capacity_router
from app.modules.enrollment.admin_router import router as admin_enrollment_router
from app.modules.enrollment.router import router as enrollment_router
from app.modules.members.admin_router import router as admin_members_router

# Public endpoints, mounted under /api
api_router = APIRouter()

api_router.include_router(capacity_router, tags=["Capacity"])
api_router.include_router(enrollment_router, tags=["Enrollment"])

# Admin endpoints, mounted under /admin
admin_router = APIRouter()

admin_router.include_router(auth_router, tags=["Admin - Authentication"])
admin_router.include_router(admin_enrollment_router, tags=["Admin - Submissions"])
admin_router.include_router(admin_members_router, tags=["Admin - Members"])
admin_router.include_router(admin_capacity_router, tags=["Admin - Capacity"])
