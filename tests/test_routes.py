"""HTTP-level tests for the funnel API, driven through FastAPI's TestClient."""

import logging

import pytest
from fastapi.testclient import TestClient

from funnel.errors import ConfigurationError, UpstreamError
from main import create_app
from routes import get_analysis_client, get_lead_client, get_paypal_client
from utils.clients.crm import CRMResult

from conftest import FakeAnalysisClient, FakeLeadClient


class FakePayPal:
    currency = "USD"
    configured = True

    def __init__(self, error=None):
        self.orders = []
        self.error = error

    def create_order(self, amount: str) -> str:
        if self.error is not None:
            raise self.error
        self.orders.append(amount)
        return "ORDER-1"

    def capture_order(self, order_id: str):
        return {"id": order_id, "status": "COMPLETED"}


def _complete_funnel(client: TestClient):
    response = client.post("/funnel/url", json={"url": "https://example.com"})
    assert response.status_code == 200
    response = client.post("/funnel/email", json={"email": "user@example.com"})
    assert response.status_code == 200


# ── Service ─────────────────────────────────────────────────────


def test_root_lists_endpoints(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "running"


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_detailed_status_healthy_with_configuration(client):
    data = client.get("/status/detailed").json()

    assert data["overall_status"] == "healthy"
    assert data["session_secret"] == "configured"
    assert data["crm"] == "none"
    assert data["paypal"] == "configured"


def test_detailed_status_degraded_without_secret(settings):
    settings.SESSION_SECRET = "short"
    data = TestClient(create_app(settings)).get("/status/detailed").json()

    assert data["overall_status"] == "degraded"
    assert data["session_secret"].startswith("error:")


# ── Funnel ──────────────────────────────────────────────────────


def test_submit_url_returns_summary_and_sets_cookie(client, settings, analysis_client):
    response = client.post("/funnel/url", json={"url": "https://example.com"})

    assert response.status_code == 200
    body = response.json()
    assert body["step"] == "email"
    assert body["analysis"]["performance_score"] == 42
    assert settings.SESSION_COOKIE_NAME in response.cookies
    assert analysis_client.calls == ["https://example.com"]


def test_submit_invalid_url_is_rejected(client, analysis_client):
    response = client.post("/funnel/url", json={"url": "example.com"})

    assert response.status_code == 422
    assert response.json()["detail"] == "Please enter a valid URL."
    assert analysis_client.calls == []


def test_provider_failure_returns_generic_message(client, analysis_client):
    analysis_client.error = UpstreamError("PageSpeed API returned 500 with key=secret")

    response = client.post("/funnel/url", json={"url": "https://example.com"})

    assert response.status_code == 502
    assert response.json()["detail"] == UpstreamError.user_message
    assert "secret" not in response.text


def test_unexpected_provider_exception_returns_500(client, analysis_client):
    analysis_client.error = RuntimeError("boom")

    response = client.post("/funnel/url", json={"url": "https://example.com"})

    assert response.status_code == 500
    assert "boom" not in response.text


def test_email_without_session_asks_to_restart(client):
    response = client.post("/funnel/email", json={"email": "user@example.com"})

    assert response.status_code == 409
    assert response.json()["detail"]["redirect"] == "/"


def test_invalid_email_is_rejected(client):
    client.post("/funnel/url", json={"url": "https://example.com"})

    response = client.post("/funnel/email", json={"email": "nope"})

    assert response.status_code == 422
    assert client.get("/funnel/session").json()["step"] == "email"


def test_full_funnel_over_http(client):
    assert client.get("/funnel/session").json()["step"] == "url"

    client.post("/funnel/url", json={"url": "https://example.com"})
    assert client.get("/funnel/session").json() == {
        "step": "email",
        "url": "https://example.com",
        "completed": False,
    }

    response = client.post("/funnel/email", json={"email": "user@example.com"})
    assert response.json() == {"step": "results", "redirect": "/analysis-results"}

    results = client.get("/analysis-results").json()
    assert results["url"] == "https://example.com"
    assert results["email"] == "user@example.com"
    assert [issue["id"] for issue in results["issues"]] == ["unused-css-rules", "legacy-javascript"]
    assert results["score_message"]["grade"] == "D"
    assert results["business_impact"]["bounce_rate_increase"] == "25-40%"


def test_results_without_completed_session_redirect_to_start(client):
    response = client.get("/analysis-results", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/"

    client.post("/funnel/url", json={"url": "https://example.com"})
    response = client.get("/analysis-results", follow_redirects=False)
    assert response.status_code == 303


def test_reset_clears_session(client):
    _complete_funnel(client)

    response = client.post("/funnel/reset")

    assert response.json() == {"step": "url", "redirect": "/"}
    assert client.get("/funnel/session").json()["step"] == "url"
    assert client.get("/analysis-results", follow_redirects=False).status_code == 303


def test_short_session_secret_is_a_server_error(settings, analysis_client):
    settings.SESSION_SECRET = "short"
    app = create_app(settings)
    app.dependency_overrides[get_analysis_client] = lambda: analysis_client

    response = TestClient(app).post("/funnel/url", json={"url": "https://example.com"})

    assert response.status_code == 500
    assert analysis_client.calls == []


# ── Progress ────────────────────────────────────────────────────


def test_progress_endpoint(client):
    data = client.get("/analysis/progress", params={"elapsed": 10}).json()
    assert data == {"step": 3, "total_steps": 5, "message": "Measuring Core Web Vitals...", "percent": 60}


def test_progress_rejects_negative_elapsed(client):
    assert client.get("/analysis/progress", params={"elapsed": -1}).status_code == 422


# ── Leads ───────────────────────────────────────────────────────


LEAD_FORM = {
    "name": "Jane Doe",
    "work_email": "jane@example.com",
    "company_website": "https://example.com",
    "service_interest": "speed_optimization",
    "primary_goal": "Faster checkout",
}


def test_lead_submission_includes_analysis_context(client, lead_client):
    _complete_funnel(client)

    response = client.post("/leads", json=LEAD_FORM)

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert response.json()["warning"] is None
    assert lead_client.leads[0].performance_score == 42


def test_lead_submission_survives_crm_failure(settings):
    app = create_app(settings)
    app.dependency_overrides[get_analysis_client] = lambda: FakeAnalysisClient()
    app.dependency_overrides[get_lead_client] = lambda: FakeLeadClient(CRMResult(success=False, error="down"))

    response = TestClient(app).post("/leads", json=LEAD_FORM)

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert response.json()["warning"]


@pytest.mark.parametrize("field,value", [("name", "J"), ("work_email", "nope"), ("company_website", "example")])
def test_lead_form_validation(client, lead_client, field, value):
    response = client.post("/leads", json={**LEAD_FORM, field: value})

    assert response.status_code == 422
    assert lead_client.leads == []


def test_contact_form(client, lead_client):
    response = client.post(
        "/contact",
        json={
            "name": "Jane Doe",
            "email": "jane@example.com",
            "service": "consulting",
            "budget": "5k_10k",
            "message": "Our product pages take ages to load.",
        },
    )

    assert response.status_code == 200
    assert lead_client.leads[0].source == "contact-form"


def test_contact_form_requires_a_real_message(client, lead_client):
    response = client.post(
        "/contact",
        json={"name": "Jane Doe", "email": "jane@example.com", "service": "other", "message": "hi"},
    )

    assert response.status_code == 422
    assert lead_client.leads == []


@pytest.mark.parametrize("secret", ["", "short"])
def test_contact_form_works_without_a_session_secret(settings, lead_client, secret):
    settings.SESSION_SECRET = secret
    app = create_app(settings)
    app.dependency_overrides[get_lead_client] = lambda: lead_client

    response = TestClient(app).post(
        "/contact",
        json={
            "name": "Jane Doe",
            "email": "jane@example.com",
            "service": "consulting",
            "message": "Our product pages take ages to load.",
        },
    )

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert [lead.email for lead in lead_client.leads] == ["jane@example.com"]


# ── Payments ────────────────────────────────────────────────────


@pytest.fixture()
def paypal(app) -> FakePayPal:
    fake = FakePayPal()
    app.dependency_overrides[get_paypal_client] = lambda: fake
    return fake


def test_pricing_lists_three_tiers(client):
    tiers = client.get("/pricing").json()["tiers"]
    assert [(t["name"], t["price"]) for t in tiers] == [
        ("Starter", "499"),
        ("Business", "999"),
        ("Enterprise", "1999"),
    ]


def test_create_order_uses_tier_price(client, paypal):
    response = client.post("/payments/orders", json={"tier": "business"})

    assert response.status_code == 200
    assert response.json() == {"order_id": "ORDER-1", "tier": "Business", "amount": "999", "currency": "USD"}
    assert paypal.orders == ["999"]


def test_create_order_for_unknown_tier(client, paypal):
    response = client.post("/payments/orders", json={"tier": "platinum"})

    assert response.status_code == 404
    assert paypal.orders == []


def test_capture_order(client, paypal):
    response = client.post("/payments/orders/ORDER-1/capture")
    assert response.json()["status"] == "COMPLETED"


def test_create_order_failure_is_logged(app, client, caplog):
    app.dependency_overrides[get_paypal_client] = lambda: FakePayPal(
        error=ConfigurationError("PAYPAL_CLIENT_ID and PAYPAL_CLIENT_SECRET must be set")
    )

    with caplog.at_level(logging.ERROR, logger="routes"):
        response = client.post("/payments/orders", json={"tier": "starter"})

    assert response.status_code == 500
    assert "PAYPAL_CLIENT_ID" not in response.text
    assert "Order creation failed for tier Starter" in caplog.text
