from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from clinicflow.core.entitlements import NO_PLAN_NAME, EntitlementSnapshot, FeatureKey, has_feature

# Fixed product thresholds, as a fraction of the plan maximum.
WARNING_THRESHOLD = 0.8
LIMIT_REACHED_THRESHOLD = 1.0

UPGRADE_ACTION = "open-plan-modal"

FEATURE_LABELS: dict[FeatureKey, str] = {
    FeatureKey.ATENDIMENTO_INTELIGENTE: "Atendimento Inteligente",
    FeatureKey.AGENDAMENTO_AUTOMATICO: "Agendamento Automático",
    FeatureKey.LEMBRETES_AUTOMATICOS: "Lembretes Automáticos",
    FeatureKey.CONFIRMACAO_EMAIL: "Confirmação por Email",
    FeatureKey.BASE_CONHECIMENTO: "Base de Conhecimento",
    FeatureKey.RELATORIOS_AVANCADOS: "Relatórios Avançados",
    FeatureKey.INTEGRACAO_WHATSAPP: "Integração WhatsApp",
    FeatureKey.MULTI_USUARIOS: "Multi Usuários",
    FeatureKey.PERSONALIZACAO_AGENTE: "Personalização do Agente",
    FeatureKey.ANALYTICS: "Analytics",
}

GateState = Literal["loading", "blocked", "allowed"]
AlertLevel = Literal["warning", "limit_reached"]


@dataclass(slots=True, frozen=True)
class GateDecision:
    feature: FeatureKey
    state: GateState
    feature_label: str
    plan_name: str | None = None
    message: str | None = None
    upgrade_action: str | None = None


@dataclass(slots=True, frozen=True)
class LimitAlert:
    level: AlertLevel
    title: str
    message: str
    current: int
    max: int
    percent_used: float
    upgrade_action: str | None = None


def evaluate_gate(snapshot: EntitlementSnapshot | None, feature: FeatureKey | str) -> GateDecision:
    feature = FeatureKey(feature)
    label = FEATURE_LABELS[feature]

    if snapshot is None:
        return GateDecision(feature=feature, state="loading", feature_label=label)

    if has_feature(snapshot.features, feature):
        return GateDecision(feature=feature, state="allowed", feature_label=label, plan_name=snapshot.plan_name)

    plan_name = snapshot.plan_name or NO_PLAN_NAME
    return GateDecision(
        feature=feature,
        state="blocked",
        feature_label=label,
        plan_name=plan_name,
        message=(
            f"A funcionalidade {label} não está disponível no seu plano atual ({plan_name}). "
            "Faça upgrade do seu plano para ter acesso a esta e outras funcionalidades premium."
        ),
        upgrade_action=UPGRADE_ACTION,
    )


def evaluate_limit_alert(
    current: int,
    max: int | None,  # noqa: A002
    limit_name: str,
    *,
    offer_upgrade: bool = True,
) -> LimitAlert | None:
    if max is None:
        return None

    ratio = current / max if max > 0 else LIMIT_REACHED_THRESHOLD
    if ratio < WARNING_THRESHOLD:
        return None

    upgrade_action = UPGRADE_ACTION if offer_upgrade else None
    percent_used = round(ratio * 100, 2)
    usage = f"Você está usando {current} de {max} {limit_name}."

    if ratio >= LIMIT_REACHED_THRESHOLD:
        return LimitAlert(
            level="limit_reached",
            title="Limite Atingido!",
            message=f"{usage} Para criar mais, faça upgrade do seu plano.",
            current=current,
            max=max,
            percent_used=percent_used,
            upgrade_action=upgrade_action,
        )

    return LimitAlert(
        level="warning",
        title="Próximo do Limite",
        message=usage,
        current=current,
        max=max,
        percent_used=percent_used,
        upgrade_action=upgrade_action,
    )
