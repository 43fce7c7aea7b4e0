from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from clinicflow.core.auth import AuthContext, TenantRef, require_auth_context, require_organization
from clinicflow.core.cache import EntitlementCache, get_entitlement_cache
from clinicflow.core.db import get_db_session
from clinicflow.core.entitlements import EntitlementResolver, FeatureKey, LimitKey
from clinicflow.core.limits import LIMIT_LABELS, build_limit_evaluator
from clinicflow.core.presentation import evaluate_gate, evaluate_limit_alert
from clinicflow.schemas.plans import (
    EntitlementResponse,
    GateResponse,
    LimitAlertResponse,
    LimitCheckResponse,
    PlanConfigResponse,
    PlanFeaturesResponse,
    PlanLimitsResponse,
)

router = APIRouter(prefix="/plans", tags=["plans"])


@router.get("", response_model=list[PlanConfigResponse])
async def list_available_plans(
    _: AuthContext = Depends(require_auth_context),
    session: AsyncSession = Depends(get_db_session),
) -> list[PlanConfigResponse]:
    plans = await EntitlementResolver(session).list_plans()
    return [PlanConfigResponse.from_config(plan) for plan in plans]


@router.get("/entitlements", response_model=EntitlementResponse)
async def get_entitlements(
    tenant: TenantRef = Depends(require_organization),
    session: AsyncSession = Depends(get_db_session),
    cache: EntitlementCache = Depends(get_entitlement_cache),
) -> EntitlementResponse:
    snapshot = await EntitlementResolver(session, cache=cache).resolve(tenant.subscription_plan_id)
    return EntitlementResponse(
        organization_id=str(tenant.id),
        plan_id=snapshot.plan_id,
        plan_name=snapshot.plan_name,
        status=snapshot.status,
        features=PlanFeaturesResponse(**snapshot.features.as_dict()),
        limits=PlanLimitsResponse(**snapshot.limits.as_dict()),
    )


@router.get("/limits/{limit_key}", response_model=LimitCheckResponse)
async def check_limit(
    limit_key: LimitKey,
    tenant: TenantRef = Depends(require_organization),
    session: AsyncSession = Depends(get_db_session),
    cache: EntitlementCache = Depends(get_entitlement_cache),
) -> LimitCheckResponse:
    result = await build_limit_evaluator(session, cache).check_limit(tenant, limit_key)

    alert = None
    if result.failure is None:
        alert = evaluate_limit_alert(result.current, result.max, LIMIT_LABELS[limit_key])

    return LimitCheckResponse(
        limit_key=result.limit_key,
        allowed=result.allowed,
        current=result.current,
        max=result.max,
        tracked=result.tracked,
        failure=result.failure,
        alert=(
            LimitAlertResponse(
                level=alert.level,
                title=alert.title,
                message=alert.message,
                percent_used=alert.percent_used,
                upgrade_action=alert.upgrade_action,
            )
            if alert
            else None
        ),
    )


@router.get("/features/{feature_key}/gate", response_model=GateResponse)
async def feature_gate(
    feature_key: FeatureKey,
    tenant: TenantRef = Depends(require_organization),
    session: AsyncSession = Depends(get_db_session),
    cache: EntitlementCache = Depends(get_entitlement_cache),
) -> GateResponse:
    snapshot = await EntitlementResolver(session, cache=cache).resolve(tenant.subscription_plan_id)
    decision = evaluate_gate(snapshot, feature_key)
    return GateResponse(
        feature=decision.feature,
        state=decision.state,
        feature_label=decision.feature_label,
        plan_name=decision.plan_name,
        message=decision.message,
        upgrade_action=decision.upgrade_action,
    )
