from __future__ import annotations

from datetime import timezone
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from clinicflow.core.auth import TenantRef, require_organization
from clinicflow.core.db import get_db_session
from clinicflow.core.entitlements import LimitKey
from clinicflow.core.limits import LimitCheckResult, enforce_limit
from clinicflow.core.repositories.patients import PatientRepository
from clinicflow.models.patient import Patient
from clinicflow.schemas.clinic import PatientCreateRequest, PatientResponse, PatientUpdateRequest

router = APIRouter(prefix="/patients", tags=["patients"])


def _to_response(patient: Patient) -> PatientResponse:
    return PatientResponse(
        id=str(patient.id),
        name=patient.name,
        phone=patient.phone,
        email=patient.email,
        status=patient.status,
        created_at=patient.created_at.astimezone(timezone.utc).isoformat(),
    )


@router.get("", response_model=list[PatientResponse])
async def list_patients(
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    tenant: TenantRef = Depends(require_organization),
    session: AsyncSession = Depends(get_db_session),
) -> list[PatientResponse]:
    repository = PatientRepository(session, tenant.id)
    patients = await repository.list(limit=limit, offset=offset)
    return [_to_response(patient) for patient in patients]


@router.post("", response_model=PatientResponse, status_code=status.HTTP_201_CREATED)
async def create_patient(
    payload: PatientCreateRequest,
    tenant: TenantRef = Depends(require_organization),
    session: AsyncSession = Depends(get_db_session),
    _: LimitCheckResult = Depends(enforce_limit(LimitKey.MAX_PACIENTES)),
) -> PatientResponse:
    repository = PatientRepository(session, tenant.id)
    if await repository.get_by_phone(payload.phone) is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A patient with this phone number already exists",
        )

    patient = await repository.create(
        name=payload.name,
        phone=payload.phone,
        email=payload.email,
        observations=payload.observations,
        status="novo",
    )
    await session.commit()
    return _to_response(patient)


@router.patch("/{patient_id}", response_model=PatientResponse)
async def update_patient(
    patient_id: UUID,
    payload: PatientUpdateRequest,
    tenant: TenantRef = Depends(require_organization),
    session: AsyncSession = Depends(get_db_session),
) -> PatientResponse:
    patient = await PatientRepository(session, tenant.id).update(
        patient_id, **payload.model_dump(exclude_none=True)
    )
    if patient is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Patient not found",
        )
    await session.commit()
    return _to_response(patient)
