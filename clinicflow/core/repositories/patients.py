from __future__ import annotations

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from clinicflow.core.repositories.base import TenantRepository
from clinicflow.models.patient import Patient


class PatientRepository(TenantRepository[Patient]):
    def __init__(self, session: AsyncSession, organization_id: UUID) -> None:
        super().__init__(session=session, model=Patient, organization_id=organization_id)

    async def get_by_phone(self, phone: str) -> Patient | None:
        await self._apply_rls()
        result = await self.session.execute(
            self._scoped_select().where(Patient.phone == phone)
        )
        return result.scalars().first()
