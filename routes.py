import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import RedirectResponse

from config import Settings
from funnel.errors import (
    ConfigurationError,
    FunnelError,
    InvalidSessionState,
    PersistenceError,
    UpstreamError,
    ValidationError,
)
from funnel.progress import progress_at
from funnel.state_machine import START_PATH, Funnel, submit_contact_form
from models import (
    AnalysisResponse,
    ContactFormSubmission,
    EmailSubmission,
    FunnelRedirect,
    LeadFormSubmission,
    LeadResponse,
    OrderRequest,
    OrderResponse,
    ProgressState,
    ResultsView,
    SessionStatus,
    UrlSubmission,
)
from pricing import PRICING_TIERS, find_tier
from session_store import SessionCipher, SessionStore
from utils.clients.crm import LeadSubmissionClient
from utils.clients.pagespeed import PageSpeedClient
from utils.clients.paypal import PayPalClient

logger = logging.getLogger(__name__)

# Create router
router = APIRouter()

ERROR_STATUS = {
    ValidationError: 422,
    UpstreamError: 502,
    InvalidSessionState: 409,
    ConfigurationError: 500,
    PersistenceError: 503,
}


# ======================
# Dependencies
# ======================

def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_session_store(
    request: Request, response: Response, settings: Settings = Depends(get_settings)
) -> SessionStore:
    try:
        return SessionStore(settings, request.cookies, response)
    except ConfigurationError as e:
        raise funnel_http_error(e)


def get_analysis_client(settings: Settings = Depends(get_settings)) -> PageSpeedClient:
    return PageSpeedClient(settings)


def get_lead_client(settings: Settings = Depends(get_settings)) -> LeadSubmissionClient:
    return LeadSubmissionClient(settings)


def get_paypal_client(settings: Settings = Depends(get_settings)) -> PayPalClient:
    return PayPalClient(settings)


def get_funnel(
    store: SessionStore = Depends(get_session_store),
    analysis_client: PageSpeedClient = Depends(get_analysis_client),
    lead_client: LeadSubmissionClient = Depends(get_lead_client),
) -> Funnel:
    return Funnel(store, analysis_client, lead_client)


def funnel_http_error(error: FunnelError) -> HTTPException:
    """Translate a funnel error into the response the visitor sees."""
    status_code = ERROR_STATUS.get(type(error), 500)
    if status_code >= 500:
        logger.error(f"ERROR: {type(error).__name__}: {str(error)}")

    if isinstance(error, InvalidSessionState):
        return HTTPException(
            status_code=status_code,
            detail={"message": error.user_message, "redirect": START_PATH},
        )
    return HTTPException(status_code=status_code, detail=error.user_message)


def redirect_with_cookies(url: str, sub_response: Response) -> RedirectResponse:
    """Redirect, carrying over any Set-Cookie headers written during the request."""
    redirect = RedirectResponse(url, status_code=303)
    for key, value in sub_response.raw_headers:
        if key == b"set-cookie":
            redirect.raw_headers.append((key, value))
    return redirect


# ======================
# Service endpoints
# ======================

@router.get("/")
async def root():
    return {
        "service": "Speed Funnel",
        "status": "running",
        "endpoints": {
            "submit_url": "/funnel/url (POST)",
            "submit_email": "/funnel/email (POST)",
            "reset": "/funnel/reset (POST)",
            "results": "/analysis-results (GET)",
            "leads": "/leads (POST)",
            "pricing": "/pricing (GET)",
        },
    }


@router.get("/health")
async def health_check():
    return {"status": "healthy"}


@router.get("/status/detailed")
async def detailed_status_check(settings: Settings = Depends(get_settings)):
    """
    Configuration health of the session secret and each external provider.

    Returns degraded when anything the funnel itself needs is missing.
    """
    status_info: Dict[str, Any] = {
        "api": "healthy",
        "session_secret": "configured",
        "pagespeed_api": "configured" if settings.PAGESPEED_API_KEY else "missing",
        "crm": settings.CRM_TYPE,
        "crm_credentials": "configured" if settings.crm_api_key else "missing",
        "paypal": "configured" if PayPalClient(settings).configured else "missing",
    }

    try:
        SessionCipher(settings.SESSION_SECRET)
    except ConfigurationError as e:
        status_info["session_secret"] = f"error: {str(e)}"

    critical_components = [status_info["session_secret"], status_info["pagespeed_api"]]
    if any("error" in c or "missing" in c for c in critical_components):
        status_info["overall_status"] = "degraded"
    else:
        status_info["overall_status"] = "healthy"

    return status_info


# ======================
# Funnel endpoints
# ======================

@router.post("/funnel/url", response_model=AnalysisResponse)
def submit_url(submission: UrlSubmission, funnel: Funnel = Depends(get_funnel)):
    """
    Step 1: analyse a website and open the funnel session.

    Blocks for the duration of the PageSpeed run, typically several seconds.
    """
    try:
        transition = funnel.submit_url(submission.url)
    except FunnelError as e:
        raise funnel_http_error(e)
    except Exception as e:
        logger.exception(f"ERROR: Unexpected failure analysing {submission.url}: {str(e)}")
        raise HTTPException(status_code=500, detail=UpstreamError.user_message)

    return AnalysisResponse(
        message="Analysis successful. See summary below.",
        step=transition.step,
        analysis=transition.session.analysis,
    )


@router.post("/funnel/email", response_model=FunnelRedirect)
async def submit_email(submission: EmailSubmission, funnel: Funnel = Depends(get_funnel)):
    """Step 2: capture the visitor's email and send them to their results."""
    try:
        transition = funnel.submit_email(submission.email)
    except FunnelError as e:
        raise funnel_http_error(e)

    return FunnelRedirect(step=transition.step, redirect=transition.redirect_to)


@router.post("/funnel/reset", response_model=FunnelRedirect)
async def reset_funnel(funnel: Funnel = Depends(get_funnel)):
    transition = funnel.reset()
    return FunnelRedirect(step=transition.step, redirect=transition.redirect_to)


@router.get("/funnel/session", response_model=SessionStatus)
async def session_status(store: SessionStore = Depends(get_session_store)):
    session = store.validate()
    if session is None:
        return SessionStatus(step="url")
    return SessionStatus(step=session.step, url=session.url, completed=session.completed)


@router.get("/analysis/progress", response_model=ProgressState)
async def analysis_progress(elapsed: float = Query(0, ge=0)):
    """Display state for the analysis progress animation after `elapsed` seconds."""
    return progress_at(elapsed)


@router.get("/analysis-results", response_model=ResultsView)
async def analysis_results(response: Response, funnel: Funnel = Depends(get_funnel)):
    """
    Results for a completed funnel.

    Visitors without a completed session are redirected to the start.
    """
    transition = funnel.view_results()
    if transition.results is None:
        return redirect_with_cookies(transition.redirect_to, response)
    return transition.results


# ======================
# Lead endpoints
# ======================

@router.post("/leads", response_model=LeadResponse)
def submit_lead(form: LeadFormSubmission, funnel: Funnel = Depends(get_funnel)):
    """
    Final lead form on the results page.

    Always reports success; a CRM failure only adds a warning.
    """
    outcome = funnel.submit_lead(form)
    return LeadResponse(success=outcome.success, message=outcome.message, warning=outcome.warning)


@router.post("/contact", response_model=LeadResponse)
def submit_contact(
    form: ContactFormSubmission, lead_client: LeadSubmissionClient = Depends(get_lead_client)
):
    """Landing-page contact form. Independent of the funnel session."""
    outcome = submit_contact_form(lead_client, form)
    return LeadResponse(success=outcome.success, message=outcome.message, warning=outcome.warning)


# ======================
# Payment endpoints
# ======================

@router.get("/pricing")
async def pricing():
    return {"tiers": PRICING_TIERS}


@router.post("/payments/orders", response_model=OrderResponse)
def create_order(request: OrderRequest, paypal: PayPalClient = Depends(get_paypal_client)):
    """Create a PayPal order for a pricing tier. The amount comes from the tier, not the client."""
    tier = find_tier(request.tier)
    if tier is None:
        raise HTTPException(status_code=404, detail=f"Unknown pricing tier: {request.tier}")

    try:
        order_id = paypal.create_order(tier.price)
    except FunnelError as e:
        logger.error(f"ERROR: Order creation failed for tier {tier.name}: {str(e)}")
        raise HTTPException(
            status_code=ERROR_STATUS.get(type(e), 500),
            detail="We could not start the checkout. Please try again.",
        )

    return OrderResponse(order_id=order_id, tier=tier.name, amount=tier.price, currency=paypal.currency)


@router.post("/payments/orders/{order_id}/capture")
def capture_order(order_id: str, paypal: PayPalClient = Depends(get_paypal_client)):
    try:
        return paypal.capture_order(order_id)
    except FunnelError as e:
        logger.error(f"ERROR: Capture failed for order {order_id}: {str(e)}")
        raise HTTPException(
            status_code=ERROR_STATUS.get(type(e), 500),
            detail="We could not complete the payment. Please try again.",
        )
