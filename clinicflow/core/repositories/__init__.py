from clinicflow.core.repositories.appointments import AppointmentRepository
from clinicflow.core.repositories.base import TenantRepository
from clinicflow.core.repositories.patients import PatientRepository

__all__ = [
    "TenantRepository",
    "PatientRepository",
    "AppointmentRepository",
]
