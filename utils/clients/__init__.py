# Clients subpackage - External API clients
from .pagespeed import PageSpeedClient, parse_analysis
from .crm import CRMResult, CRMType, LeadSubmissionClient
from .paypal import PayPalClient

__all__ = [
    "PageSpeedClient",
    "parse_analysis",
    "CRMResult",
    "CRMType",
    "LeadSubmissionClient",
    "PayPalClient",
]
