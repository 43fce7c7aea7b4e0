from clinicflow.models.appointment import Appointment
from clinicflow.models.base import Base, TenantScopedBase, TimestampedBase
from clinicflow.models.organization import Organization
from clinicflow.models.patient import Patient
from clinicflow.models.plan_config import SubscriptionPlanConfig
from clinicflow.models.staff_user import StaffUser

__all__ = [
    "Base",
    "TimestampedBase",
    "TenantScopedBase",
    "Organization",
    "SubscriptionPlanConfig",
    "Patient",
    "Appointment",
    "StaffUser",
]
