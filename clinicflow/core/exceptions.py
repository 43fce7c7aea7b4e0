from __future__ import annotations

from uuid import UUID


class EntitlementError(RuntimeError):
    pass


class NoPlanAssigned(EntitlementError):
    def __init__(self, organization_id: UUID | None = None) -> None:
        self.organization_id = organization_id
        super().__init__("Organization has no subscription plan assigned")


class PlanNotConfigured(EntitlementError):
    def __init__(self, plan_id: str) -> None:
        self.plan_id = plan_id
        super().__init__(f"No configuration found for plan={plan_id}")


class BackendUnavailable(EntitlementError):
    """The database could not answer an entitlement lookup in time."""


class CountingFailure(EntitlementError):
    def __init__(self, organization_id: UUID, resource: str, partial_count: int = 0) -> None:
        self.organization_id = organization_id
        self.resource = resource
        self.partial_count = partial_count
        super().__init__(f"Unable to count {resource} for organization={organization_id}")
