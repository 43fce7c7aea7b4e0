from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from enum import Enum
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from clinicflow.core.config import settings
from clinicflow.core.db import apply_rls_tenant_context
from clinicflow.core.exceptions import CountingFailure
from clinicflow.models.appointment import Appointment
from clinicflow.models.patient import Patient
from clinicflow.models.staff_user import StaffUser

logger = logging.getLogger(__name__)


class QuotaResource(str, Enum):
    PATIENTS = "patients"
    STAFF_USERS = "staff_users"
    MONTHLY_APPOINTMENTS = "monthly_appointments"
    MONTHLY_MESSAGES = "monthly_messages"


# No messages table exists yet, so this quota cannot be measured.
UNTRACKED_RESOURCES = frozenset({QuotaResource.MONTHLY_MESSAGES})


def start_of_current_month(now: datetime | None = None, tz: str | None = None) -> datetime:
    zone = ZoneInfo(tz or settings.clinic_timezone)
    current = now.astimezone(zone) if now is not None else datetime.now(zone)
    return current.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class UsageCounter:
    def __init__(self, session: AsyncSession, timeout_seconds: float | None = None) -> None:
        self.session = session
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.backend_timeout_seconds

    @staticmethod
    def is_tracked(resource: QuotaResource) -> bool:
        return resource not in UNTRACKED_RESOURCES

    async def count_usage(self, organization_id: UUID, resource: QuotaResource | str) -> int:
        resource = QuotaResource(resource)
        if resource is QuotaResource.MONTHLY_MESSAGES:
            logger.debug("Monthly message usage is not tracked; reporting 0 for organization=%s", organization_id)
            return 0

        if resource is QuotaResource.PATIENTS:
            stmt = select(func.count(Patient.id)).where(Patient.organization_id == organization_id)
        elif resource is QuotaResource.STAFF_USERS:
            stmt = select(func.count(StaffUser.id)).where(StaffUser.organization_id == organization_id)
        else:
            stmt = select(func.count(Appointment.id)).where(
                Appointment.organization_id == organization_id,
                Appointment.created_at >= start_of_current_month(),
            )

        async def _scoped_count() -> int | None:
            await apply_rls_tenant_context(self.session, organization_id)
            return await self.session.scalar(stmt)

        try:
            count = await asyncio.wait_for(_scoped_count(), timeout=self.timeout_seconds)
        except (SQLAlchemyError, asyncio.TimeoutError) as exc:
            logger.error(
                "Usage count failed for organization=%s resource=%s",
                organization_id,
                resource.value,
            )
            raise CountingFailure(organization_id, resource.value) from exc

        return int(count or 0)
