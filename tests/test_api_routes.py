from __future__ import annotations

from datetime import date, datetime, time, timezone
from types import SimpleNamespace
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from clinicflow.api.main import app
from clinicflow.core.auth import AuthContext, TenantRef, require_auth_context, require_organization
from clinicflow.core.cache import NullEntitlementCache, get_entitlement_cache
from clinicflow.core.db import get_db_session
from clinicflow.core.entitlements import EntitlementSnapshot, LimitKey, resolve_features, resolve_limits
from clinicflow.core.exceptions import BackendUnavailable
from clinicflow.core.limits import LimitCheckResult


class _FakeSession:
    def __init__(self) -> None:
        self.committed = False

    async def commit(self) -> None:
        self.committed = True


class _FakeEvaluator:
    def __init__(self, result: LimitCheckResult) -> None:
        self.result = result

    async def check_limit(self, tenant, limit_key):  # noqa: ANN001
        return self.result


def _snapshot() -> EntitlementSnapshot:
    return EntitlementSnapshot(
        plan_id="basic",
        plan_name="Básico",
        status="active",
        features=resolve_features({"atendimento_inteligente": True}),
        limits=resolve_limits({"max_pacientes": 5}),
    )


def _resolver_returning(snapshot: EntitlementSnapshot | None = None, error: Exception | None = None):  # noqa: ANN202
    class _Resolver:
        def __init__(self, session, cache=None) -> None:  # noqa: ANN001
            pass

        async def resolve(self, plan_id):  # noqa: ANN001
            if error is not None:
                raise error
            return snapshot

    return _Resolver


@pytest.fixture
def tenant() -> TenantRef:
    return TenantRef(id=uuid4(), subscription_plan_id="basic", name="Clínica Sol")


@pytest.fixture
def auth_context(tenant: TenantRef) -> AuthContext:
    return AuthContext(user_id=uuid4(), subject="user_123", organization_id=tenant.id)


@pytest.fixture
def fake_session() -> _FakeSession:
    return _FakeSession()


@pytest.fixture
def client(auth_context: AuthContext, tenant: TenantRef, fake_session: _FakeSession):
    async def _auth_override() -> AuthContext:
        return auth_context

    async def _tenant_override() -> TenantRef:
        return tenant

    async def _db_override():
        yield fake_session

    app.dependency_overrides[require_auth_context] = _auth_override
    app.dependency_overrides[require_organization] = _tenant_override
    app.dependency_overrides[get_db_session] = _db_override
    app.dependency_overrides[get_entitlement_cache] = NullEntitlementCache
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def test_health_endpoint(client: TestClient) -> None:
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}


def test_entitlements_endpoint_returns_total_maps(
    client: TestClient, monkeypatch: pytest.MonkeyPatch, tenant: TenantRef
) -> None:
    from clinicflow.api.routes import plans

    monkeypatch.setattr(plans, "EntitlementResolver", _resolver_returning(_snapshot()))

    res = client.get("/api/v1/plans/entitlements")
    body = res.json()

    assert res.status_code == 200
    assert body["organization_id"] == str(tenant.id)
    assert body["plan_name"] == "Básico"
    assert body["features"]["atendimento_inteligente"] is True
    assert body["features"]["integracao_whatsapp"] is False
    assert len(body["features"]) == 10
    assert body["limits"] == {
        "max_agendamentos_mes": None,
        "max_mensagens_whatsapp_mes": None,
        "max_usuarios": None,
        "max_pacientes": 5,
    }


def test_entitlements_endpoint_reports_outage_as_503(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    from clinicflow.api.routes import plans

    monkeypatch.setattr(plans, "EntitlementResolver", _resolver_returning(error=BackendUnavailable("down")))

    res = client.get("/api/v1/plans/entitlements")
    assert res.status_code == 503


def test_limit_endpoint_includes_alert(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    from clinicflow.api.routes import plans

    result = LimitCheckResult(limit_key=LimitKey.MAX_PACIENTES, allowed=False, current=5, max=5)
    monkeypatch.setattr(plans, "build_limit_evaluator", lambda session, cache=None: _FakeEvaluator(result))

    res = client.get("/api/v1/plans/limits/max_pacientes")
    body = res.json()

    assert res.status_code == 200
    assert body["allowed"] is False
    assert (body["current"], body["max"]) == (5, 5)
    assert body["alert"]["level"] == "limit_reached"


def test_limit_endpoint_without_alert_for_unlimited(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    from clinicflow.api.routes import plans

    result = LimitCheckResult(limit_key=LimitKey.MAX_USUARIOS, allowed=True, current=0, max=None)
    monkeypatch.setattr(plans, "build_limit_evaluator", lambda session, cache=None: _FakeEvaluator(result))

    res = client.get("/api/v1/plans/limits/max_usuarios")
    assert res.status_code == 200
    assert res.json()["alert"] is None


def test_limit_endpoint_rejects_unknown_key(client: TestClient) -> None:
    res = client.get("/api/v1/plans/limits/max_consultorios")
    assert res.status_code == 422


def test_feature_gate_endpoint(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    from clinicflow.api.routes import plans

    monkeypatch.setattr(plans, "EntitlementResolver", _resolver_returning(_snapshot()))

    blocked = client.get("/api/v1/plans/features/integracao_whatsapp/gate").json()
    allowed = client.get("/api/v1/plans/features/atendimento_inteligente/gate").json()

    assert blocked["state"] == "blocked"
    assert blocked["plan_name"] == "Básico"
    assert blocked["feature_label"] == "Integração WhatsApp"
    assert allowed["state"] == "allowed"


def test_create_patient_within_quota(
    client: TestClient,
    monkeypatch: pytest.MonkeyPatch,
    fake_session: _FakeSession,
    tenant: TenantRef,
) -> None:
    from clinicflow.api.routes import patients
    from clinicflow.core import limits

    allowed = LimitCheckResult(limit_key=LimitKey.MAX_PACIENTES, allowed=True, current=4, max=5)
    monkeypatch.setattr(limits, "build_limit_evaluator", lambda session, cache=None: _FakeEvaluator(allowed))

    class FakeRepo:
        def __init__(self, session, organization_id):  # noqa: ANN001
            assert organization_id == tenant.id

        async def get_by_phone(self, phone):  # noqa: ANN001
            return None

        async def create(self, **values):  # noqa: ANN003
            return SimpleNamespace(id=uuid4(), created_at=datetime.now(timezone.utc), **values)

    monkeypatch.setattr(patients, "PatientRepository", FakeRepo)

    res = client.post("/api/v1/patients", json={"name": "Ana", "phone": "11999990000"})

    assert res.status_code == 201
    assert res.json()["status"] == "novo"
    assert fake_session.committed is True


def test_create_patient_over_quota_is_forbidden(
    client: TestClient, monkeypatch: pytest.MonkeyPatch, fake_session: _FakeSession
) -> None:
    from clinicflow.core import limits

    denied = LimitCheckResult(limit_key=LimitKey.MAX_PACIENTES, allowed=False, current=5, max=5)
    monkeypatch.setattr(limits, "build_limit_evaluator", lambda session, cache=None: _FakeEvaluator(denied))

    res = client.post("/api/v1/patients", json={"name": "Ana", "phone": "11999990000"})

    assert res.status_code == 403
    assert "Upgrade" in res.json()["detail"]
    assert fake_session.committed is False


def test_create_appointment_when_count_fails_is_unavailable(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    from clinicflow.core import limits

    denied = LimitCheckResult(
        limit_key=LimitKey.MAX_AGENDAMENTOS_MES,
        allowed=False,
        current=0,
        max=100,
        failure="counting_failure",
    )
    monkeypatch.setattr(limits, "build_limit_evaluator", lambda session, cache=None: _FakeEvaluator(denied))

    res = client.post(
        "/api/v1/appointments",
        json={"patient_name": "Ana", "date": "2026-10-20", "time": "09:30", "type": "consulta"},
    )
    assert res.status_code == 503


def test_create_appointment_within_quota(
    client: TestClient, monkeypatch: pytest.MonkeyPatch, fake_session: _FakeSession
) -> None:
    from clinicflow.api.routes import appointments
    from clinicflow.core import limits

    allowed = LimitCheckResult(limit_key=LimitKey.MAX_AGENDAMENTOS_MES, allowed=True, current=0, max=None)
    monkeypatch.setattr(limits, "build_limit_evaluator", lambda session, cache=None: _FakeEvaluator(allowed))

    class FakeRepo:
        def __init__(self, session, organization_id):  # noqa: ANN001
            pass

        async def create(self, **values):  # noqa: ANN003
            return SimpleNamespace(id=uuid4(), created_at=datetime.now(timezone.utc), **values)

    monkeypatch.setattr(appointments, "AppointmentRepository", FakeRepo)

    res = client.post(
        "/api/v1/appointments",
        json={"patient_name": "Ana", "date": "2026-10-20", "time": "09:30", "type": "consulta"},
    )

    assert res.status_code == 201
    assert res.json()["time"] == "09:30"
    assert res.json()["date"] == "2026-10-20"
    assert fake_session.committed is True


def test_list_appointments_for_day(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    from clinicflow.api.routes import appointments

    seen = {}

    class FakeRepo:
        def __init__(self, session, organization_id):  # noqa: ANN001
            pass

        async def list_for_day(self, day):  # noqa: ANN001
            seen["day"] = day
            return [
                SimpleNamespace(
                    id=uuid4(),
                    patient_id=None,
                    patient_name="Ana",
                    date=day,
                    time=time(14, 0),
                    type="retorno",
                    status="agendado",
                    created_at=datetime.now(timezone.utc),
                )
            ]

    monkeypatch.setattr(appointments, "AppointmentRepository", FakeRepo)

    res = client.get("/api/v1/appointments", params={"day": "2026-10-20"})

    assert res.status_code == 200
    assert seen["day"] == date(2026, 10, 20)
    assert res.json()[0]["time"] == "14:00"


def test_admin_plan_upsert_requires_super_admin(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    from clinicflow.core import auth

    monkeypatch.setattr(auth.settings, "super_admin_subjects_csv", "")
    res = client.put("/api/v1/admin/plans/basic", json={"plan_name": "Básico"})
    assert res.status_code == 403


def test_admin_plan_upsert(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    from clinicflow.api.routes import admin
    from clinicflow.core import auth

    monkeypatch.setattr(auth.settings, "super_admin_subjects_csv", "user_123")
    captured = {}

    class _Resolver:
        def __init__(self, session, cache=None) -> None:  # noqa: ANN001
            captured["cache"] = cache

        async def upsert_plan(self, plan_id, **values):  # noqa: ANN001, ANN003
            captured["values"] = values
            return SimpleNamespace(plan_id=plan_id, **values)

    monkeypatch.setattr(admin, "EntitlementResolver", _Resolver)

    res = client.put(
        "/api/v1/admin/plans/basic",
        json={"plan_name": "Básico", "max_pacientes": 5, "integracao_whatsapp": False},
    )
    body = res.json()

    assert res.status_code == 200
    assert body["plan_id"] == "basic"
    assert body["max_pacientes"] == 5
    assert body["max_usuarios"] is None
    assert captured["values"]["plan_name"] == "Básico"
    assert isinstance(captured["cache"], NullEntitlementCache)


def test_list_appointments_between_dates(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    from clinicflow.api.routes import appointments

    seen = {}

    class FakeRepo:
        def __init__(self, session, organization_id):  # noqa: ANN001
            pass

        async def list_between(self, start, end):  # noqa: ANN001
            seen["range"] = (start, end)
            return []

    monkeypatch.setattr(appointments, "AppointmentRepository", FakeRepo)

    res = client.get("/api/v1/appointments", params={"start": "2026-10-01", "end": "2026-10-31"})

    assert res.status_code == 200
    assert res.json() == []
    assert seen["range"] == (date(2026, 10, 1), date(2026, 10, 31))


@pytest.mark.parametrize(
    "params",
    [{"start": "2026-10-01"}, {"end": "2026-10-31"}, {"start": "2026-10-31", "end": "2026-10-01"}],
)
def test_list_appointments_rejects_incomplete_range(client: TestClient, params: dict) -> None:
    res = client.get("/api/v1/appointments", params=params)
    assert res.status_code == 400


def test_update_appointment_is_scoped_to_tenant(
    client: TestClient,
    monkeypatch: pytest.MonkeyPatch,
    fake_session: _FakeSession,
    tenant: TenantRef,
) -> None:
    from clinicflow.api.routes import appointments

    appointment_id = uuid4()
    seen = {}

    class FakeRepo:
        def __init__(self, session, organization_id):  # noqa: ANN001
            seen["organization_id"] = organization_id

        async def update(self, entity_id, **values):  # noqa: ANN001, ANN003
            seen["values"] = values
            return SimpleNamespace(
                id=entity_id,
                patient_id=None,
                patient_name="Ana",
                date=values.get("date", date(2026, 10, 20)),
                time=values.get("time", time(9, 30)),
                type="consulta",
                status=values.get("status", "agendado"),
                created_at=datetime.now(timezone.utc),
            )

    monkeypatch.setattr(appointments, "AppointmentRepository", FakeRepo)

    res = client.patch(
        f"/api/v1/appointments/{appointment_id}",
        json={"status": "confirmado", "time": "10:15"},
    )

    assert res.status_code == 200
    assert res.json()["status"] == "confirmado"
    assert res.json()["time"] == "10:15"
    assert seen["organization_id"] == tenant.id
    assert seen["values"] == {"status": "confirmado", "time": time(10, 15)}
    assert fake_session.committed is True


def test_update_appointment_from_other_tenant_is_not_found(
    client: TestClient, monkeypatch: pytest.MonkeyPatch, fake_session: _FakeSession
) -> None:
    from clinicflow.api.routes import appointments

    class FakeRepo:
        def __init__(self, session, organization_id):  # noqa: ANN001
            pass

        async def update(self, entity_id, **values):  # noqa: ANN001, ANN003
            return None

    monkeypatch.setattr(appointments, "AppointmentRepository", FakeRepo)

    res = client.patch(f"/api/v1/appointments/{uuid4()}", json={"status": "cancelado"})

    assert res.status_code == 404
    assert fake_session.committed is False


@pytest.mark.parametrize(("deleted", "status_code"), [(True, 204), (False, 404)])
def test_delete_appointment(
    client: TestClient,
    monkeypatch: pytest.MonkeyPatch,
    fake_session: _FakeSession,
    deleted: bool,
    status_code: int,
) -> None:
    from clinicflow.api.routes import appointments

    appointment_id = uuid4()
    seen = {}

    class FakeRepo:
        def __init__(self, session, organization_id):  # noqa: ANN001
            pass

        async def delete(self, entity_id):  # noqa: ANN001
            seen["id"] = entity_id
            return deleted

    monkeypatch.setattr(appointments, "AppointmentRepository", FakeRepo)

    res = client.delete(f"/api/v1/appointments/{appointment_id}")

    assert res.status_code == status_code
    assert seen["id"] == appointment_id
    assert fake_session.committed is deleted


def test_update_patient_status(
    client: TestClient,
    monkeypatch: pytest.MonkeyPatch,
    fake_session: _FakeSession,
    tenant: TenantRef,
) -> None:
    from clinicflow.api.routes import patients

    seen = {}

    class FakeRepo:
        def __init__(self, session, organization_id):  # noqa: ANN001
            seen["organization_id"] = organization_id

        async def update(self, entity_id, **values):  # noqa: ANN001, ANN003
            seen["values"] = values
            return SimpleNamespace(
                id=entity_id,
                name="Ana",
                phone="11999990000",
                email=None,
                status=values["status"],
                created_at=datetime.now(timezone.utc),
            )

    monkeypatch.setattr(patients, "PatientRepository", FakeRepo)

    res = client.patch(f"/api/v1/patients/{uuid4()}", json={"status": "em_atendimento"})

    assert res.status_code == 200
    assert res.json()["status"] == "em_atendimento"
    assert seen == {"organization_id": tenant.id, "values": {"status": "em_atendimento"}}
    assert fake_session.committed is True


def test_update_unknown_patient_is_not_found(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    from clinicflow.api.routes import patients

    class FakeRepo:
        def __init__(self, session, organization_id):  # noqa: ANN001
            pass

        async def update(self, entity_id, **values):  # noqa: ANN001, ANN003
            return None

    monkeypatch.setattr(patients, "PatientRepository", FakeRepo)

    res = client.patch(f"/api/v1/patients/{uuid4()}", json={"name": "Ana Maria"})
    assert res.status_code == 404


def test_lifespan_configures_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    from clinicflow.api import main

    calls = []
    monkeypatch.setattr(main.logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    monkeypatch.setattr(main.settings, "log_level", "debug")

    with TestClient(main.app):
        pass

    assert calls == [{"level": "DEBUG"}]
