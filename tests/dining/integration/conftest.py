import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from protean import current_domain

from dining.api import ROUTERS
from dining.api.errors import register_error_handlers
from dining.api.middleware import add_domain_context
from dining.domain import dining
from dining.identity.profile import ChangeRole


@pytest.fixture()
def client():
    app = FastAPI()
    for router in ROUTERS:
        app.include_router(router)
    register_error_handlers(app)
    add_domain_context(app, dining)
    return TestClient(app, follow_redirects=False)


@pytest.fixture()
def sign_up(client):
    """Sign up a user with a role and return their auth headers."""

    def _sign_up(email, role="customer", display_name="Test User"):
        response = client.post(
            "/auth/sign-up",
            json={"email": email, "password": "secret-pass", "display_name": display_name},
        )
        assert response.status_code == 201
        body = response.json()
        if role != "customer":
            current_domain.process(ChangeRole(profile_id=body["user_id"], role=role), asynchronous=False)
        return {"Authorization": f"Bearer {body['token']}"}

    return _sign_up


@pytest.fixture()
def staff_headers(sign_up):
    return sign_up("staff@example.com", role="staff", display_name="Kitchen Staff")


@pytest.fixture()
def admin_headers(sign_up):
    return sign_up("admin@example.com", role="admin", display_name="Admin")


@pytest.fixture()
def customer_headers(sign_up):
    return sign_up("customer@example.com", display_name="Casey Customer")
