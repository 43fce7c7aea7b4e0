from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from clinicflow.core.auth import AuthContext, require_super_admin
from clinicflow.core.cache import EntitlementCache, get_entitlement_cache
from clinicflow.core.db import get_db_session
from clinicflow.core.entitlements import EntitlementResolver
from clinicflow.schemas.plans import PlanConfigResponse, PlanConfigUpsertRequest

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/plans", response_model=list[PlanConfigResponse])
async def list_plans(
    _: AuthContext = Depends(require_super_admin),
    session: AsyncSession = Depends(get_db_session),
) -> list[PlanConfigResponse]:
    plans = await EntitlementResolver(session).list_plans()
    return [PlanConfigResponse.from_config(plan) for plan in plans]


@router.put("/plans/{plan_id}", response_model=PlanConfigResponse)
async def upsert_plan(
    plan_id: str,
    payload: PlanConfigUpsertRequest,
    _: AuthContext = Depends(require_super_admin),
    session: AsyncSession = Depends(get_db_session),
    cache: EntitlementCache = Depends(get_entitlement_cache),
) -> PlanConfigResponse:
    resolver = EntitlementResolver(session, cache=cache)
    plan = await resolver.upsert_plan(plan_id, **payload.model_dump())
    return PlanConfigResponse.from_config(plan)
