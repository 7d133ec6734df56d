# Utils package - external service clients
from .clients.pagespeed import PageSpeedClient
from .clients.crm import LeadSubmissionClient, CRMResult
from .clients.paypal import PayPalClient

__all__ = [
    "PageSpeedClient",
    "LeadSubmissionClient",
    "CRMResult",
    "PayPalClient",
]
