"""Plan entitlement resolution.

A tenant's plan identifier maps to one ``subscription_plan_configs`` row. That
row is reduced to two fixed-field records: :class:`PlanFeatures` (one boolean
per :class:`FeatureKey`) and :class:`PlanLimits` (one nullable maximum per
:class:`LimitKey`, ``None`` meaning unlimited). Both are always total: a
missing column yields ``False`` for features and ``None`` for limits.

A tenant without a plan, or whose plan has no configuration row, gets an
empty snapshot (every feature off). Database failures are raised as
:class:`BackendUnavailable` so callers can tell them apart from "not entitled".
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any, Literal

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from clinicflow.core.cache import EntitlementCache, NullEntitlementCache
from clinicflow.core.config import settings
from clinicflow.core.exceptions import BackendUnavailable, NoPlanAssigned, PlanNotConfigured
from clinicflow.models.plan_config import SubscriptionPlanConfig

logger = logging.getLogger(__name__)

NO_PLAN_NAME = "Sem Plano"

SnapshotStatus = Literal["active", "no_plan", "not_configured"]


class FeatureKey(str, Enum):
    ATENDIMENTO_INTELIGENTE = "atendimento_inteligente"
    AGENDAMENTO_AUTOMATICO = "agendamento_automatico"
    LEMBRETES_AUTOMATICOS = "lembretes_automaticos"
    CONFIRMACAO_EMAIL = "confirmacao_email"
    BASE_CONHECIMENTO = "base_conhecimento"
    RELATORIOS_AVANCADOS = "relatorios_avancados"
    INTEGRACAO_WHATSAPP = "integracao_whatsapp"
    MULTI_USUARIOS = "multi_usuarios"
    PERSONALIZACAO_AGENTE = "personalizacao_agente"
    ANALYTICS = "analytics"


class LimitKey(str, Enum):
    MAX_AGENDAMENTOS_MES = "max_agendamentos_mes"
    MAX_MENSAGENS_WHATSAPP_MES = "max_mensagens_whatsapp_mes"
    MAX_USUARIOS = "max_usuarios"
    MAX_PACIENTES = "max_pacientes"


@dataclass(slots=True, frozen=True)
class PlanFeatures:
    atendimento_inteligente: bool = False
    agendamento_automatico: bool = False
    lembretes_automaticos: bool = False
    confirmacao_email: bool = False
    base_conhecimento: bool = False
    relatorios_avancados: bool = False
    integracao_whatsapp: bool = False
    multi_usuarios: bool = False
    personalizacao_agente: bool = False
    analytics: bool = False

    def as_dict(self) -> dict[str, bool]:
        return asdict(self)


@dataclass(slots=True, frozen=True)
class PlanLimits:
    max_agendamentos_mes: int | None = None
    max_mensagens_whatsapp_mes: int | None = None
    max_usuarios: int | None = None
    max_pacientes: int | None = None

    def as_dict(self) -> dict[str, int | None]:
        return asdict(self)


@dataclass(slots=True, frozen=True)
class EntitlementSnapshot:
    plan_id: str | None
    plan_name: str
    status: SnapshotStatus
    features: PlanFeatures
    limits: PlanLimits

    @classmethod
    def empty(cls, plan_id: str | None, status: SnapshotStatus) -> EntitlementSnapshot:
        return cls(
            plan_id=plan_id,
            plan_name=NO_PLAN_NAME,
            status=status,
            features=PlanFeatures(),
            limits=PlanLimits(),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "plan_id": self.plan_id,
            "plan_name": self.plan_name,
            "status": self.status,
            "features": self.features.as_dict(),
            "limits": self.limits.as_dict(),
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> EntitlementSnapshot:
        return cls(
            plan_id=payload.get("plan_id"),
            plan_name=payload.get("plan_name") or NO_PLAN_NAME,
            status=payload.get("status", "active"),
            features=resolve_features(payload.get("features")),
            limits=resolve_limits(payload.get("limits")),
        )


def _read(config: Any, name: str) -> Any:
    if config is None:
        return None
    if isinstance(config, dict):
        return config.get(name)
    return getattr(config, name, None)


def resolve_features(config: Any) -> PlanFeatures:
    values = {}
    for item in fields(PlanFeatures):
        value = _read(config, item.name)
        values[item.name] = bool(value) if value is not None else False
    return PlanFeatures(**values)


def resolve_limits(config: Any) -> PlanLimits:
    values = {}
    for item in fields(PlanLimits):
        value = _read(config, item.name)
        values[item.name] = int(value) if value is not None else None
    return PlanLimits(**values)


def has_feature(features: PlanFeatures, key: FeatureKey | str) -> bool:
    return getattr(features, FeatureKey(key).value)


def limit_for(limits: PlanLimits, key: LimitKey | str) -> int | None:
    return getattr(limits, LimitKey(key).value)


class EntitlementResolver:
    def __init__(
        self,
        session: AsyncSession,
        cache: EntitlementCache | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.session = session
        self.cache = cache or NullEntitlementCache()
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.backend_timeout_seconds

    async def load_plan_config(self, plan_id: str) -> SubscriptionPlanConfig | None:
        try:
            return await asyncio.wait_for(
                self.session.scalar(
                    select(SubscriptionPlanConfig).where(SubscriptionPlanConfig.plan_id == plan_id)
                ),
                timeout=self.timeout_seconds,
            )
        except (SQLAlchemyError, asyncio.TimeoutError) as exc:
            raise BackendUnavailable(f"Plan lookup failed for plan={plan_id}") from exc

    async def resolve(self, plan_id: str | None) -> EntitlementSnapshot:
        try:
            if not plan_id:
                raise NoPlanAssigned()

            cached = await self.cache.get(plan_id)
            if cached is not None:
                return EntitlementSnapshot.from_payload(cached)

            config = await self.load_plan_config(plan_id)
            if config is None:
                raise PlanNotConfigured(plan_id)
        except NoPlanAssigned:
            return EntitlementSnapshot.empty(None, "no_plan")
        except PlanNotConfigured:
            logger.warning("Plan %s has no configuration row; denying all features", plan_id)
            return EntitlementSnapshot.empty(plan_id, "not_configured")

        snapshot = EntitlementSnapshot(
            plan_id=plan_id,
            plan_name=config.plan_name or plan_id,
            status="active",
            features=resolve_features(config),
            limits=resolve_limits(config),
        )
        await self.cache.set(plan_id, snapshot.to_payload())
        return snapshot

    async def resolve_features(self, plan_id: str | None) -> PlanFeatures:
        return (await self.resolve(plan_id)).features

    async def resolve_limits(self, plan_id: str | None) -> PlanLimits:
        return (await self.resolve(plan_id)).limits

    async def list_plans(self) -> list[SubscriptionPlanConfig]:
        try:
            result = await self.session.scalars(
                select(SubscriptionPlanConfig).order_by(SubscriptionPlanConfig.plan_id)
            )
        except SQLAlchemyError as exc:
            raise BackendUnavailable("Plan listing failed") from exc
        return list(result.all())

    async def upsert_plan(self, plan_id: str, /, **values: Any) -> SubscriptionPlanConfig:
        values = {name: value for name, value in values.items() if name not in {"id", "plan_id"}}
        config = await self.load_plan_config(plan_id)
        if config is None:
            config = SubscriptionPlanConfig(plan_id=plan_id, **values)
            self.session.add(config)
        else:
            for name, value in values.items():
                setattr(config, name, value)

        await self.session.commit()
        await self.cache.invalidate(plan_id)
        logger.info("Plan configuration updated for plan=%s", plan_id)
        return config
