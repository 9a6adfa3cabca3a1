"""Tests for staff sign-in, sessions and the system routes."""

from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from trainingdesk_backend.api.auth import limiter
from trainingdesk_backend.server import create_app

from conftest import FakeOAuthClient

STAFF_USERINFO = {
    "sub": "1001",
    "email": "ann.lee@grastontechnique.com",
    "email_verified": True,
    "name": "Ann Lee",
}


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield
    limiter.reset()


def make_client(settings, backend, **oauth_kwargs) -> tuple[TestClient, FakeOAuthClient]:
    oauth = FakeOAuthClient(**oauth_kwargs)
    app = create_app(settings=settings, backend=backend, oauth_client=oauth)
    return TestClient(app), oauth


def start_login(client: TestClient) -> str:
    response = client.get("/auth/google/login", follow_redirects=False)
    assert response.status_code == 302
    return parse_qs(urlparse(response.headers["location"]).query)["state"][0]


@pytest.mark.unit
class TestProviders:

    def test_google_enabled(self, anonymous_client):
        response = anonymous_client.get("/auth/providers")

        assert response.status_code == 200
        assert response.json() == [
            {"id": "google", "name": "Google", "enabled": True, "login_url": "/auth/google/login"}
        ]


@pytest.mark.unit
class TestLogin:

    def test_redirects_to_google(self, settings, backend):
        client, _ = make_client(settings, backend)

        response = client.get("/auth/google/login", follow_redirects=False)

        location = urlparse(response.headers["location"])
        params = parse_qs(location.query)
        assert location.netloc == "accounts.google.com"
        assert params["client_id"] == ["client-id"]
        assert params["hd"] == ["grastontechnique.com"]
        assert params["redirect_uri"][0].endswith("/auth/google/callback")
        assert "trainingdesk_session" in response.cookies

    def test_login_unconfigured(self, settings, backend):
        app = create_app(settings=settings, backend=backend, oauth_client=FakeOAuthClient())
        app.state.oauth_client.client_secret = None

        response = TestClient(app).get("/auth/google/login", follow_redirects=False)

        assert response.status_code == 503
        assert response.json()["error_code"] == "CFG_001"

    def test_login_is_rate_limited(self, settings, backend):
        client, _ = make_client(settings, backend)

        statuses = [client.get("/auth/google/login", follow_redirects=False).status_code for _ in range(21)]

        assert statuses[:20] == [302] * 20
        assert statuses[20] == 429


@pytest.mark.unit
class TestCallback:

    def test_successful_sign_in(self, settings, backend):
        client, oauth = make_client(settings, backend, userinfo=STAFF_USERINFO)
        state = start_login(client)

        response = client.get(
            "/auth/google/callback", params={"code": "abc", "state": state}, follow_redirects=False
        )

        assert response.status_code == 302
        assert response.headers["location"] == "/"
        assert oauth.calls[0]["code"] == "abc"

        session = client.get("/auth/session")
        assert session.status_code == 200
        assert session.json()["email"] == "ann.lee@grastontechnique.com"

        assert client.get("/events").status_code == 200

    def test_logout_clears_session(self, settings, backend):
        client, _ = make_client(settings, backend, userinfo=STAFF_USERINFO)
        state = start_login(client)
        client.get("/auth/google/callback", params={"code": "abc", "state": state}, follow_redirects=False)

        response = client.post("/auth/logout")

        assert response.json() == {"message": "Signed out"}
        assert client.get("/auth/session").status_code == 401

    def test_state_mismatch(self, settings, backend):
        client, oauth = make_client(settings, backend, userinfo=STAFF_USERINFO)
        start_login(client)

        response = client.get("/auth/google/callback", params={"code": "abc", "state": "forged"})

        assert response.status_code == 400
        assert response.json()["error_code"] == "AUTH_002"
        assert oauth.calls == []

    def test_state_is_single_use(self, settings, backend):
        client, _ = make_client(settings, backend, userinfo=STAFF_USERINFO)
        state = start_login(client)
        client.get("/auth/google/callback", params={"code": "abc", "state": state}, follow_redirects=False)

        response = client.get("/auth/google/callback", params={"code": "abc", "state": state})

        assert response.status_code == 400

    def test_other_domain_is_denied(self, settings, backend):
        client, _ = make_client(
            settings, backend,
            userinfo={**STAFF_USERINFO, "email": "ann@gmail.com"},
        )
        state = start_login(client)

        response = client.get("/auth/google/callback", params={"code": "abc", "state": state})

        assert response.status_code == 403
        body = response.json()
        assert body["error"] == "AccessDenied"
        assert body["error_code"] == "AUTHZ_001"
        assert body["message"] == "Access is restricted to staff accounts of the organization."
        assert client.get("/auth/session").status_code == 401

    def test_lookalike_domain_is_denied(self, settings, backend):
        client, _ = make_client(
            settings, backend,
            userinfo={**STAFF_USERINFO, "email": "ann@evil-grastontechnique.com"},
        )
        state = start_login(client)

        response = client.get("/auth/google/callback", params={"code": "abc", "state": state})

        assert response.status_code == 403

    def test_unverified_email_is_denied(self, settings, backend):
        client, _ = make_client(
            settings, backend,
            userinfo={**STAFF_USERINFO, "email_verified": False},
        )
        state = start_login(client)

        response = client.get("/auth/google/callback", params={"code": "abc", "state": state})

        assert response.status_code == 403

    def test_exchange_failure(self, settings, backend):
        client, _ = make_client(settings, backend, fail=True)
        state = start_login(client)

        response = client.get("/auth/google/callback", params={"code": "abc", "state": state})

        assert response.status_code == 401
        assert response.json()["error_code"] == "AUTH_003"

    def test_provider_error(self, settings, backend):
        client, oauth = make_client(settings, backend, userinfo=STAFF_USERINFO)
        state = start_login(client)

        response = client.get(
            "/auth/google/callback", params={"error": "access_denied", "state": state}
        )

        assert response.status_code == 401
        assert "access_denied" in response.json()["message"]
        assert oauth.calls == []


@pytest.mark.unit
class TestSystem:

    def test_health(self, anonymous_client):
        response = anonymous_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_request_id_is_generated(self, anonymous_client):
        response = anonymous_client.get("/health")

        assert len(response.headers["X-Request-ID"]) == 32

    def test_request_id_is_echoed(self, anonymous_client):
        response = anonymous_client.get("/health", headers={"X-Request-ID": "trace-123"})

        assert response.headers["X-Request-ID"] == "trace-123"
