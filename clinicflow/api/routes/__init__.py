from clinicflow.api.routes.admin import router as admin_router
from clinicflow.api.routes.appointments import router as appointments_router
from clinicflow.api.routes.patients import router as patients_router
from clinicflow.api.routes.plans import router as plans_router

__all__ = [
    "admin_router",
    "appointments_router",
    "patients_router",
    "plans_router",
]
