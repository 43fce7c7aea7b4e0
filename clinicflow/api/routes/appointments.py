from __future__ import annotations

from datetime import date, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from clinicflow.core.auth import TenantRef, require_organization
from clinicflow.core.db import get_db_session
from clinicflow.core.entitlements import LimitKey
from clinicflow.core.limits import LimitCheckResult, enforce_limit
from clinicflow.core.repositories.appointments import AppointmentRepository
from clinicflow.core.repositories.patients import PatientRepository
from clinicflow.models.appointment import Appointment
from clinicflow.schemas.clinic import AppointmentCreateRequest, AppointmentResponse, AppointmentUpdateRequest

router = APIRouter(prefix="/appointments", tags=["appointments"])


def _to_response(appointment: Appointment) -> AppointmentResponse:
    return AppointmentResponse(
        id=str(appointment.id),
        patient_id=str(appointment.patient_id) if appointment.patient_id else None,
        patient_name=appointment.patient_name,
        date=appointment.date.isoformat(),
        time=appointment.time.strftime("%H:%M"),
        type=appointment.type,
        status=appointment.status,
        created_at=appointment.created_at.astimezone(timezone.utc).isoformat(),
    )


@router.get("", response_model=list[AppointmentResponse])
async def list_appointments(
    day: date | None = Query(default=None),
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    tenant: TenantRef = Depends(require_organization),
    session: AsyncSession = Depends(get_db_session),
) -> list[AppointmentResponse]:
    repository = AppointmentRepository(session, tenant.id)
    if day is not None:
        appointments = await repository.list_for_day(day)
    elif start is not None or end is not None:
        if start is None or end is None or start > end:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Both start and end are required and start must not be after end",
            )
        appointments = await repository.list_between(start, end)
    else:
        appointments = await repository.list(limit=limit, offset=offset)
    return [_to_response(appointment) for appointment in appointments]


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    payload: AppointmentCreateRequest,
    tenant: TenantRef = Depends(require_organization),
    session: AsyncSession = Depends(get_db_session),
    _: LimitCheckResult = Depends(enforce_limit(LimitKey.MAX_AGENDAMENTOS_MES)),
) -> AppointmentResponse:
    if payload.patient_id is not None:
        patient = await PatientRepository(session, tenant.id).get(payload.patient_id)
        if patient is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Patient not found",
            )

    repository = AppointmentRepository(session, tenant.id)
    appointment = await repository.create(
        patient_id=payload.patient_id,
        patient_name=payload.patient_name,
        date=payload.date,
        time=payload.time,
        type=payload.type,
        observations=payload.observations,
        status="agendado",
    )
    await session.commit()
    return _to_response(appointment)


@router.patch("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(
    appointment_id: UUID,
    payload: AppointmentUpdateRequest,
    tenant: TenantRef = Depends(require_organization),
    session: AsyncSession = Depends(get_db_session),
) -> AppointmentResponse:
    repository = AppointmentRepository(session, tenant.id)
    appointment = await repository.update(appointment_id, **payload.model_dump(exclude_none=True))
    if appointment is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Appointment not found",
        )
    await session.commit()
    return _to_response(appointment)


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_appointment(
    appointment_id: UUID,
    tenant: TenantRef = Depends(require_organization),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    if not await AppointmentRepository(session, tenant.id).delete(appointment_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Appointment not found",
        )
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
