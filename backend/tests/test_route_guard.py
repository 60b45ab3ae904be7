import pytest
from fastapi.testclient import TestClient

from middleware.route_guard import GuardAction, guard_request


@pytest.mark.parametrize("path,credential,expected", [
    ("/dashboard", None, "/auth/login"),
    ("/perfil/settings", None, "/auth/login"),
    ("/pedidos", None, "/auth/login"),
    ("/auth/login", "sess_1", "/dashboard"),
    ("/auth/register", "sess_1", "/dashboard"),
    ("/auth/forgot-password", "sess_1", "/dashboard"),
])
def test_redirects(path, credential, expected):
    decision = guard_request(path, credential)
    assert decision.action == GuardAction.REDIRECT
    assert decision.location == expected


@pytest.mark.parametrize("path,credential", [
    ("/dashboard", "sess_1"),
    ("/pedidos/ord_1", "sess_1"),
    ("/auth/login", None),
    ("/auth/register", None),
    ("/api/orders", None),
    ("/dashboards", None),
])
def test_pass_through(path, credential):
    assert guard_request(path, credential).action == GuardAction.PASS


@pytest.fixture
def plain_client(db):
    from server import app

    # No context manager: the lifespan (indexes, scheduler) is not needed here
    return TestClient(app, follow_redirects=False)


def test_middleware_redirects_signed_out_visitor(plain_client):
    response = plain_client.get("/dashboard")
    assert response.status_code == 307
    assert response.headers["location"].endswith("/auth/login")


def test_middleware_redirects_signed_in_visitor_away_from_login(plain_client):
    plain_client.cookies.set("auth", "sess_1")
    response = plain_client.get("/auth/login")
    assert response.status_code == 307
    assert response.headers["location"].endswith("/dashboard")


def test_middleware_leaves_api_alone(plain_client):
    response = plain_client.get("/api/")
    assert response.status_code == 200
