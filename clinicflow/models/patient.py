from __future__ import annotations

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from clinicflow.models.base import TenantScopedBase


class Patient(TenantScopedBase):
    __tablename__ = "patients"

    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str] = mapped_column(String(40), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[str | None] = mapped_column(String(40), nullable=True)
    observations: Mapped[str | None] = mapped_column(Text, nullable=True)
