"""Quota checks against the tenant's plan limits.

``check_limit`` never raises for backend problems: every failure becomes a
denial. The count and the caller's later insert are not atomic, so two
concurrent sessions may both pass a check and exceed a quota by a small
margin. Strict enforcement needs a database-side constraint at insert time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from clinicflow.core.auth import TenantRef, require_organization
from clinicflow.core.cache import EntitlementCache, get_entitlement_cache
from clinicflow.core.config import settings
from clinicflow.core.db import get_db_session
from clinicflow.core.entitlements import EntitlementResolver, LimitKey, limit_for
from clinicflow.core.exceptions import BackendUnavailable, CountingFailure
from clinicflow.core.usage import QuotaResource, UsageCounter

logger = logging.getLogger(__name__)

LimitFailure = Literal["counting_failure", "backend_unavailable"]

LIMIT_RESOURCES: dict[LimitKey, QuotaResource] = {
    LimitKey.MAX_PACIENTES: QuotaResource.PATIENTS,
    LimitKey.MAX_USUARIOS: QuotaResource.STAFF_USERS,
    LimitKey.MAX_AGENDAMENTOS_MES: QuotaResource.MONTHLY_APPOINTMENTS,
    LimitKey.MAX_MENSAGENS_WHATSAPP_MES: QuotaResource.MONTHLY_MESSAGES,
}

LIMIT_LABELS: dict[LimitKey, str] = {
    LimitKey.MAX_PACIENTES: "pacientes",
    LimitKey.MAX_USUARIOS: "usuários",
    LimitKey.MAX_AGENDAMENTOS_MES: "agendamentos neste mês",
    LimitKey.MAX_MENSAGENS_WHATSAPP_MES: "mensagens de WhatsApp neste mês",
}


@dataclass(slots=True, frozen=True)
class LimitCheckResult:
    limit_key: LimitKey
    allowed: bool
    current: int
    max: int | None
    tracked: bool = True
    failure: LimitFailure | None = None


class LimitEvaluator:
    def __init__(
        self,
        resolver: EntitlementResolver,
        counter: UsageCounter,
        deny_without_plan: bool | None = None,
    ) -> None:
        self.resolver = resolver
        self.counter = counter
        self.deny_without_plan = (
            deny_without_plan if deny_without_plan is not None else settings.deny_limits_without_plan
        )

    async def check_limit(self, tenant: TenantRef, limit_key: LimitKey | str) -> LimitCheckResult:
        limit_key = LimitKey(limit_key)
        resource = LIMIT_RESOURCES[limit_key]
        tracked = self.counter.is_tracked(resource)

        try:
            snapshot = await self.resolver.resolve(tenant.subscription_plan_id)
        except BackendUnavailable:
            logger.warning(
                "Denying %s for organization=%s: plan lookup unavailable",
                limit_key.value,
                tenant.id,
            )
            return LimitCheckResult(
                limit_key=limit_key,
                allowed=False,
                current=0,
                max=None,
                tracked=tracked,
                failure="backend_unavailable",
            )

        if snapshot.status != "active" and self.deny_without_plan:
            return LimitCheckResult(limit_key=limit_key, allowed=False, current=0, max=0, tracked=tracked)

        maximum = limit_for(snapshot.limits, limit_key)
        if maximum is None:
            return LimitCheckResult(limit_key=limit_key, allowed=True, current=0, max=None, tracked=tracked)

        try:
            current = await self.counter.count_usage(tenant.id, resource)
        except CountingFailure as exc:
            logger.warning(
                "Denying %s for organization=%s: usage count failed",
                limit_key.value,
                tenant.id,
            )
            return LimitCheckResult(
                limit_key=limit_key,
                allowed=False,
                current=exc.partial_count,
                max=maximum,
                tracked=tracked,
                failure="counting_failure",
            )

        return LimitCheckResult(
            limit_key=limit_key,
            allowed=current < maximum,
            current=current,
            max=maximum,
            tracked=tracked,
        )


def build_limit_evaluator(session: AsyncSession, cache: EntitlementCache | None = None) -> LimitEvaluator:
    return LimitEvaluator(
        resolver=EntitlementResolver(session, cache=cache),
        counter=UsageCounter(session),
    )


def limit_denied_exception(result: LimitCheckResult) -> HTTPException:
    if result.failure is not None:
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Unable to verify plan usage right now. Please try again shortly.",
        )

    label = LIMIT_LABELS[result.limit_key]
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=(
            f"Your plan allows up to {result.max} {label} and {result.current} are in use. "
            "Upgrade your plan to create more."
        ),
    )


def enforce_limit(limit_key: LimitKey):  # noqa: ANN201
    async def _dependency(
        tenant: TenantRef = Depends(require_organization),
        session: AsyncSession = Depends(get_db_session),
        cache: EntitlementCache = Depends(get_entitlement_cache),
    ) -> LimitCheckResult:
        result = await build_limit_evaluator(session, cache).check_limit(tenant, limit_key)
        if not result.allowed:
            raise limit_denied_exception(result)
        return result

    return _dependency
