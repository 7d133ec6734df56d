"""
PageSpeed Insights API client for the Speed Funnel.

Runs a mobile performance audit for a URL and maps the Lighthouse response
into an AnalysisResult, with automatic retry for transient connection failures.
"""

import logging
import math
from typing import Any, Dict, List, Optional

import requests
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    retry_if_not_exception_type,
)

from config import Settings
from funnel.errors import ConfigurationError, UpstreamError
from models import AnalysisResult, Issue, Metrics

logger = logging.getLogger(__name__)

# Audits worth reporting, in the order they are scanned
AUDIT_ALLOW_LIST = (
    "unused-css-rules",
    "efficiently-encode-images",
    "unminified-javascript",
    "largest-contentful-paint-element",
    "render-blocking-resources",
    "unminified-css",
    "unused-javascript",
    "legacy-javascript",
    "cumulative-layout-shift",
    "non-composited-animations",
)

# metric field -> Lighthouse audit id
METRIC_AUDITS = {
    "first_contentful_paint": "first-contentful-paint",
    "largest_contentful_paint": "largest-contentful-paint",
    "cumulative_layout_shift": "cumulative-layout-shift",
    "first_input_delay": "max-potential-fid",
    "time_to_interactive": "interactive",
}

PASSING_AUDIT_SCORE = 0.9
MAX_ISSUES = 4


def round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def severity_for_score(score: float) -> str:
    if score < 0.5:
        return "High"
    if score < 0.7:
        return "Medium"
    return "Low"


def summarize_score(score: int) -> str:
    if score >= 90:
        return "Your website performs excellently, with fast load times and a smooth experience for visitors."
    if score >= 70:
        return "Your website performs well, but a few optimizations could make it noticeably faster."
    if score >= 50:
        return "Your website has moderate performance issues that are likely costing you visitors."
    return "Your website has significant performance issues that are driving visitors away."


def _section(value: Any) -> Dict[str, Any]:
    """A JSON object from the response, or an empty one for anything else."""
    return value if isinstance(value, dict) else {}


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def extract_metrics(audits: Dict[str, Any]) -> Metrics:
    values = {}
    for field, audit_id in METRIC_AUDITS.items():
        raw = _number(_section(audits.get(audit_id)).get("numericValue"))
        if raw is None:
            values[field] = 0
        elif field == "cumulative_layout_shift":
            values[field] = round_half_up(raw, 2)
        else:
            values[field] = round_half_up(raw)
    return Metrics(**values)


def extract_issues(audits: Dict[str, Any]) -> List[Issue]:
    issues = []
    for audit_id in AUDIT_ALLOW_LIST:
        audit = _section(audits.get(audit_id))
        if not audit:
            continue

        # Informative audits have no numeric score
        score = _number(audit.get("score"))
        if score is None or score >= PASSING_AUDIT_SCORE:
            continue

        issues.append(
            Issue(
                id=audit_id,
                title=str(audit.get("title") or audit_id),
                description=str(audit.get("description") or ""),
                severity=severity_for_score(score),
            )
        )
    return issues[:MAX_ISSUES]


def parse_analysis(payload: Any) -> AnalysisResult:
    """
    Map a runPagespeed response body into an AnalysisResult.

    Raises:
        UpstreamError: If the body is not a Lighthouse result or the
            performance category score is missing or out of range
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("lighthouseResult"), dict):
        raise UpstreamError("PageSpeed response has no lighthouseResult object")

    lighthouse = payload["lighthouseResult"]
    performance = _section(_section(lighthouse.get("categories")).get("performance"))
    raw_score = _number(performance.get("score"))
    if raw_score is None or not 0 <= raw_score <= 1:
        raise UpstreamError(f"PageSpeed response has no usable performance score: {performance.get('score')!r}")

    score = int(round_half_up(raw_score * 100))
    audits = _section(lighthouse.get("audits"))

    return AnalysisResult(
        performance_score=score,
        summary=summarize_score(score),
        metrics=extract_metrics(audits),
        issues=extract_issues(audits),
    )


class PageSpeedClient:
    """Synchronous client for the PageSpeed Insights run endpoint."""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.api_key = settings.PAGESPEED_API_KEY
        self.api_url = settings.PAGESPEED_API_URL
        self.strategy = settings.PAGESPEED_STRATEGY
        self.timeout = settings.PAGESPEED_TIMEOUT
        self.session = session or requests.Session()

    def analyze(self, url: str) -> AnalysisResult:
        """
        Run a performance analysis for an absolute URL.

        Raises:
            ConfigurationError: If no API key is configured
            UpstreamError: On non-success status, timeout, network failure,
                or a response without a performance score
        """
        if not self.api_key:
            raise ConfigurationError("PAGESPEED_API_KEY is not configured")

        try:
            response = self._fetch(url)
        except requests.Timeout as e:
            raise UpstreamError(f"PageSpeed request timed out: {str(e)}") from e
        except requests.RequestException as e:
            raise UpstreamError(f"PageSpeed request failed: {str(e)}") from e

        if not response.ok:
            logger.error(f"PageSpeed API error for {url}: {response.status_code}")
            raise UpstreamError(f"PageSpeed API returned {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamError("PageSpeed response was not JSON") from e

        result = parse_analysis(payload)
        logger.info(
            f"✅ Analysis complete for {url}: score={result.performance_score}, "
            f"issues={len(result.issues)}"
        )
        return result

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=1, min=1, max=5),
        retry=(
            retry_if_exception_type(requests.ConnectionError)
            & retry_if_not_exception_type(requests.Timeout)
        ),
        reraise=True,
    )
    def _fetch(self, url: str) -> requests.Response:
        """
        GET the run endpoint, retrying once on connection errors.

        Timeouts (connect or read) and HTTP errors are not retried; the visitor is
        already waiting several seconds.
        """
        return self.session.get(
            self.api_url,
            params={
                "url": url,
                "key": self.api_key,
                "category": "performance",
                "strategy": self.strategy,
            },
            timeout=self.timeout,
        )
