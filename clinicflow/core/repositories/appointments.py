from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from clinicflow.core.repositories.base import TenantRepository
from clinicflow.models.appointment import Appointment


class AppointmentRepository(TenantRepository[Appointment]):
    def __init__(self, session: AsyncSession, organization_id: UUID) -> None:
        super().__init__(session=session, model=Appointment, organization_id=organization_id)

    async def list_for_day(self, day: date) -> list[Appointment]:
        await self._apply_rls()
        result = await self.session.execute(
            self._scoped_select()
            .where(Appointment.date == day)
            .order_by(Appointment.time)
        )
        return list(result.scalars().all())

    async def list_between(self, start: date, end: date) -> list[Appointment]:
        await self._apply_rls()
        result = await self.session.execute(
            self._scoped_select()
            .where(Appointment.date >= start, Appointment.date <= end)
            .order_by(Appointment.date, Appointment.time)
        )
        return list(result.scalars().all())
