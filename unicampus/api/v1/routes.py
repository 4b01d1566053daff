from fastapi import APIRouter
from unicampus.api.v1.endpoints import payments, students, notifications, admin

router = APIRouter()

router.include_router(payments.router, prefix="/payments", tags=["payments"])
router.include_router(students.router, prefix="/students", tags=["students"])
router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
