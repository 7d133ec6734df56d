"""Shared test fixtures - settings, fake external clients, app wiring."""

from datetime import datetime, timezone
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app
from models import AnalysisResult, Issue, LeadData, Metrics
from routes import get_analysis_client, get_lead_client
from utils.clients.crm import CRMResult

TEST_SECRET = "test-session-secret-that-is-long-enough-1234"


def make_analysis(score: int = 42, issue_ids=("unused-css-rules", "legacy-javascript")) -> AnalysisResult:
    return AnalysisResult(
        performance_score=score,
        summary="Your website has significant performance issues that are driving visitors away.",
        metrics=Metrics(
            first_contentful_paint=2100,
            largest_contentful_paint=4800,
            cumulative_layout_shift=0.12,
            first_input_delay=180,
            time_to_interactive=7200,
        ),
        issues=[
            Issue(id=issue_id, title=f"Audit {issue_id}", description="", severity="Medium")
            for issue_id in issue_ids
        ],
    )


class FakeAnalysisClient:
    def __init__(self, result: Optional[AnalysisResult] = None, error: Optional[Exception] = None):
        self.result = result or make_analysis()
        self.error = error
        self.calls: List[str] = []

    def analyze(self, url: str) -> AnalysisResult:
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return self.result


class FakeLeadClient:
    def __init__(self, result: Optional[CRMResult] = None):
        self.result = result or CRMResult(success=True)
        self.leads: List[LeadData] = []

    def submit(self, lead: LeadData) -> CRMResult:
        self.leads.append(lead)
        return self.result


class FixedClock:
    def __init__(self, now: Optional[datetime] = None):
        self.now = now or datetime(2025, 7, 29, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        SESSION_SECRET=TEST_SECRET,
        PAGESPEED_API_KEY="test-pagespeed-key",
        CRM_TYPE="none",
        PAYPAL_CLIENT_ID="paypal-id",
        PAYPAL_CLIENT_SECRET="paypal-secret",
        ENVIRONMENT="development",
    )


@pytest.fixture()
def analysis_client() -> FakeAnalysisClient:
    return FakeAnalysisClient()


@pytest.fixture()
def lead_client() -> FakeLeadClient:
    return FakeLeadClient()


@pytest.fixture()
def app(settings, analysis_client, lead_client):
    application = create_app(settings)
    application.dependency_overrides[get_analysis_client] = lambda: analysis_client
    application.dependency_overrides[get_lead_client] = lambda: lead_client
    yield application
    application.dependency_overrides.clear()


@pytest.fixture()
def client(app) -> TestClient:
    return TestClient(app)
