from clinicflow.schemas.clinic import (
    AppointmentCreateRequest,
    AppointmentResponse,
    AppointmentUpdateRequest,
    PatientCreateRequest,
    PatientResponse,
    PatientUpdateRequest,
)
from clinicflow.schemas.plans import (
    EntitlementResponse,
    GateResponse,
    LimitAlertResponse,
    LimitCheckResponse,
    PlanConfigResponse,
    PlanConfigUpsertRequest,
    PlanFeaturesResponse,
    PlanLimitsResponse,
)

__all__ = [
    "PatientCreateRequest",
    "PatientResponse",
    "PatientUpdateRequest",
    "AppointmentCreateRequest",
    "AppointmentResponse",
    "AppointmentUpdateRequest",
    "EntitlementResponse",
    "PlanFeaturesResponse",
    "PlanLimitsResponse",
    "LimitCheckResponse",
    "LimitAlertResponse",
    "GateResponse",
    "PlanConfigUpsertRequest",
    "PlanConfigResponse",
]
