from __future__ import annotations

from types import SimpleNamespace

from fastapi.testclient import TestClient

from app.api import deps
from app.core.roles import RoleCode
from app.main import app


def _override_current_user():
    user = SimpleNamespace(id=1, tenant_id=1, full_name="Smoke Tester")
    return deps.AuthenticatedUser(user=user, roles={RoleCode.SUPER_ADMIN.value}, token_jti="dummy")


def run_smoke() -> None:
    app.dependency_overrides[deps.get_current_user] = _override_current_user
    client = TestClient(app)
    client.get("/health/ping").raise_for_status()
    resp = client.get("/daily-summary/scheduler")
    resp.raise_for_status()
    print("Smoke test completed. scheduler=", resp.json())


if __name__ == "__main__":
    run_smoke()
