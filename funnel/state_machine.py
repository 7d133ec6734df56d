"""
The visitor funnel: URL -> analysis -> email -> results.

Each operation is one request from one visitor. The session cookie is the
only state, and it is written only after the external call a step depends
on has succeeded.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from pydantic import EmailStr, HttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from funnel.errors import InvalidSessionState, ValidationError
from funnel.translator import (
    get_business_impact_estimate,
    get_performance_score_message,
    translate_and_prioritize,
)
from models import (
    AnalysisResult,
    ContactFormSubmission,
    FunnelSession,
    FunnelStep,
    LeadData,
    LeadFormSubmission,
    ResultsView,
)
from session_store import SessionStore
from utils.clients.crm import CRMResult

logger = logging.getLogger(__name__)

START_PATH = "/"
RESULTS_PATH = "/analysis-results"

LEAD_SUCCESS_MESSAGE = (
    "Your request has been submitted successfully. We'll contact you within "
    "24 hours with your detailed optimization plan."
)
CONTACT_SUCCESS_MESSAGE = "Thanks for reaching out. We'll get back to you shortly."
CRM_FAILURE_WARNING = (
    "Your information was saved! We'll contact you soon even though there "
    "was a technical issue."
)

_url_adapter = TypeAdapter(HttpUrl)
_email_adapter = TypeAdapter(EmailStr)


class AnalysisClient(Protocol):
    def analyze(self, url: str) -> AnalysisResult: ...


class LeadClient(Protocol):
    def submit(self, lead: LeadData) -> CRMResult: ...


@dataclass(frozen=True)
class Transition:
    """Outcome of a funnel operation: where the visitor is, and where to send them."""

    step: FunnelStep
    session: Optional[FunnelSession] = None
    redirect_to: Optional[str] = None
    results: Optional[ResultsView] = None


@dataclass(frozen=True)
class LeadOutcome:
    success: bool
    message: str
    warning: Optional[str] = None


def validate_url(raw: str) -> str:
    url = (raw or "").strip()
    try:
        _url_adapter.validate_python(url)
    except PydanticValidationError:
        raise ValidationError("Please enter a valid URL.")
    return url


def validate_email(raw: str) -> str:
    email = (raw or "").strip()
    try:
        _email_adapter.validate_python(email)
    except PydanticValidationError:
        raise ValidationError("Please enter a valid email address.")
    return email


def build_results_view(session: FunnelSession) -> ResultsView:
    analysis = session.analysis
    score = analysis.performance_score
    return ResultsView(
        url=session.url,
        email=session.email,
        performance_score=score,
        summary=analysis.summary,
        metrics=analysis.metrics,
        issues=translate_and_prioritize(analysis.issues),
        score_message=get_performance_score_message(score),
        business_impact=get_business_impact_estimate(score),
    )


class Funnel:
    """
    Drives one visitor through the funnel steps.

    Legal transitions are url -> email -> results. "url" is never stored;
    it is what the absence of a valid session means.
    """

    def __init__(self, store: SessionStore, analysis_client: AnalysisClient, lead_client: LeadClient):
        self.store = store
        self.analysis_client = analysis_client
        self.lead_client = lead_client

    def current_step(self) -> FunnelStep:
        session = self.store.validate()
        return session.step if session else "url"

    def submit_url(self, raw_url: str) -> Transition:
        """
        Validate the URL, run the analysis and start a session at "email".

        Raises:
            ValidationError: If the URL is not an absolute http(s) URL
            UpstreamError, ConfigurationError: From the analysis client; the
                session is left untouched
            PersistenceError: If the session cannot be written
        """
        url = validate_url(raw_url)
        analysis = self.analysis_client.analyze(url)

        session = self.store.update(
            url=url,
            analysis=analysis,
            email=None,
            step="email",
            completed=False,
        )
        logger.info(f"Session initialized for {url}: score={analysis.performance_score}, step={session.step}")
        return Transition(step="email", session=session)

    def submit_email(self, raw_email: str) -> Transition:
        """
        Record the visitor's email and advance to results.

        Raises:
            ValidationError: If the email is malformed
            InvalidSessionState: If there is no analysed URL in the session
            PersistenceError: If the session cannot be written
        """
        email = validate_email(raw_email)

        session = self.store.get()
        if session is None or not session.url or session.analysis is None:
            logger.error(
                f"Invalid session state for email completion: has_session={session is not None}, "
                f"has_url={bool(session and session.url)}, "
                f"has_analysis={bool(session and session.analysis)}"
            )
            raise InvalidSessionState("Invalid session state for email completion")

        session = self.store.update(email=email, step="results", completed=True)
        logger.info(f"Email step completed for {session.url}")
        return Transition(step="results", session=session, redirect_to=RESULTS_PATH)

    def reset(self) -> Transition:
        self.store.clear()
        return Transition(step="url", redirect_to=START_PATH)

    def view_results(self) -> Transition:
        """Results for a completed funnel, or a redirect back to the start."""
        session = self.store.validate()
        if session is None or session.step != "results":
            return Transition(step="url", redirect_to=START_PATH)

        return Transition(step="results", session=session, results=build_results_view(session))

    def submit_lead(self, form: LeadFormSubmission) -> LeadOutcome:
        """Forward the results-page lead form, enriched with the session's analysis."""
        session = self.store.get()
        lead = LeadData(
            name=form.name,
            email=str(form.work_email),
            website=str(form.company_website),
            service_interest=form.service_interest,
            primary_goal=form.primary_goal or "",
            message=form.message or "",
            source="analysis-results-page",
            performance_score=session.analysis.performance_score if session and session.analysis else None,
            analysis_url=session.url if session and session.url else None,
        )
        return forward_lead(self.lead_client, lead, LEAD_SUCCESS_MESSAGE)


def submit_contact_form(lead_client: LeadClient, form: ContactFormSubmission) -> LeadOutcome:
    """Forward the landing-page contact form. Needs no funnel session."""
    lead = LeadData(
        name=form.name,
        email=str(form.email),
        website=form.company_website,
        service_interest=form.service,
        primary_goal=form.primary_goal,
        budget=form.budget,
        message=form.message,
        source="contact-form",
    )
    return forward_lead(lead_client, lead, CONTACT_SUCCESS_MESSAGE)


def forward_lead(lead_client: LeadClient, lead: LeadData, message: str) -> LeadOutcome:
    result = lead_client.submit(lead)
    if not result.success:
        # The visitor still sees success; the lead is preserved in the log.
        logger.error(f"CRM submission failed: {result.error}")
        return LeadOutcome(success=True, message=message, warning=CRM_FAILURE_WARNING)
    return LeadOutcome(success=True, message=message)
