from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field

from clinicflow.core.entitlements import FeatureKey, LimitKey, resolve_features, resolve_limits


class PlanFeaturesResponse(BaseModel):
    atendimento_inteligente: bool
    agendamento_automatico: bool
    lembretes_automaticos: bool
    confirmacao_email: bool
    base_conhecimento: bool
    relatorios_avancados: bool
    integracao_whatsapp: bool
    multi_usuarios: bool
    personalizacao_agente: bool
    analytics: bool


class PlanLimitsResponse(BaseModel):
    max_agendamentos_mes: int | None
    max_mensagens_whatsapp_mes: int | None
    max_usuarios: int | None
    max_pacientes: int | None


class EntitlementResponse(BaseModel):
    organization_id: str
    plan_id: str | None
    plan_name: str
    status: str
    features: PlanFeaturesResponse
    limits: PlanLimitsResponse


class LimitAlertResponse(BaseModel):
    level: str
    title: str
    message: str
    percent_used: float
    upgrade_action: str | None = None


class LimitCheckResponse(BaseModel):
    limit_key: LimitKey
    allowed: bool
    current: int
    max: int | None
    tracked: bool
    failure: str | None = None
    alert: LimitAlertResponse | None = None


class GateResponse(BaseModel):
    feature: FeatureKey
    state: str
    feature_label: str
    plan_name: str | None = None
    message: str | None = None
    upgrade_action: str | None = None


class PlanConfigUpsertRequest(BaseModel):
    plan_name: str = Field(min_length=1, max_length=120)
    plan_description: str | None = None
    price_monthly: Decimal | None = Field(default=None, ge=0)
    price_annual: Decimal | None = Field(default=None, ge=0)

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

    max_agendamentos_mes: int | None = Field(default=None, ge=0)
    max_mensagens_whatsapp_mes: int | None = Field(default=None, ge=0)
    max_usuarios: int | None = Field(default=None, ge=0)
    max_pacientes: int | None = Field(default=None, ge=0)


class PlanConfigResponse(PlanConfigUpsertRequest):
    plan_id: str

    @classmethod
    def from_config(cls, config: object) -> PlanConfigResponse:
        return cls(
            plan_id=config.plan_id,
            plan_name=config.plan_name,
            plan_description=config.plan_description,
            price_monthly=config.price_monthly,
            price_annual=config.price_annual,
            **resolve_features(config).as_dict(),
            **resolve_limits(config).as_dict(),
        )
