from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from clinicflow.models.base import TimestampedBase


class SubscriptionPlanConfig(TimestampedBase):
    __tablename__ = "subscription_plan_configs"

    plan_id: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    plan_name: Mapped[str] = mapped_column(String(120), nullable=False)
    plan_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price_monthly: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    price_annual: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)

    atendimento_inteligente: Mapped[bool | None] = mapped_column(nullable=True, default=False)
    agendamento_automatico: Mapped[bool | None] = mapped_column(nullable=True, default=False)
    lembretes_automaticos: Mapped[bool | None] = mapped_column(nullable=True, default=False)
    confirmacao_email: Mapped[bool | None] = mapped_column(nullable=True, default=False)
    base_conhecimento: Mapped[bool | None] = mapped_column(nullable=True, default=False)
    relatorios_avancados: Mapped[bool | None] = mapped_column(nullable=True, default=False)
    integracao_whatsapp: Mapped[bool | None] = mapped_column(nullable=True, default=False)
    multi_usuarios: Mapped[bool | None] = mapped_column(nullable=True, default=False)
    personalizacao_agente: Mapped[bool | None] = mapped_column(nullable=True, default=False)
    analytics: Mapped[bool | None] = mapped_column(nullable=True, default=False)

    # null means unlimited
    max_agendamentos_mes: Mapped[int | None] = mapped_column(nullable=True)
    max_mensagens_whatsapp_mes: Mapped[int | None] = mapped_column(nullable=True)
    max_usuarios: Mapped[int | None] = mapped_column(nullable=True)
    max_pacientes: Mapped[int | None] = mapped_column(nullable=True)
