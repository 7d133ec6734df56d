"""
CRM lead submission for the Speed Funnel.

One LeadSubmissionClient fronts several vendor backends (HubSpot, Salesforce,
Pipedrive, or log-only). The vendor is chosen once from settings. Submission
never raises: callers get a CRMResult and carry on, so a CRM outage cannot
cost us the visitor at the last step.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Type

import requests
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    retry_if_not_exception_type,
)

from config import Settings
from models import LeadData

logger = logging.getLogger(__name__)

HUBSPOT_CONTACTS_URL = "https://api.hubapi.com/crm/v3/objects/contacts"
SALESFORCE_API_VERSION = "v57.0"


class CRMType(str, Enum):
    HUBSPOT = "hubspot"
    SALESFORCE = "salesforce"
    PIPEDRIVE = "pipedrive"
    NONE = "none"


@dataclass(frozen=True)
class CRMResult:
    success: bool
    error: Optional[str] = None


def mask_email(email: str) -> str:
    """Keep the first two characters of the local part: jo***@example.com"""
    return re.sub(r"(.{2}).*(@.*)", r"\1***\2", email)


def split_name(name: str):
    parts = name.strip().split(" ")
    return parts[0], " ".join(parts[1:])


def lead_notes(lead: LeadData, include_website: bool = False) -> str:
    lines = [
        f"Service Interest: {lead.service_interest or 'N/A'}",
        f"Primary Goal: {lead.primary_goal or 'N/A'}",
        f"Performance Score: {lead.performance_score if lead.performance_score is not None else 'N/A'}",
    ]
    if lead.budget:
        lines.append(f"Budget: {lead.budget}")
    if include_website:
        lines.append(f"Website: {lead.website or 'N/A'}")
    lines.append(f"Message: {lead.message or 'None'}")
    return "\n".join(lines)


class CRMBackend:
    """Base class for a vendor backend. Subclasses implement submit()."""

    name = "base"

    def __init__(self, settings: Settings, session: requests.Session):
        self.settings = settings
        self.api_key = settings.crm_api_key
        self.session = session
        self.timeout = settings.CRM_TIMEOUT

    def submit(self, lead: LeadData) -> CRMResult:
        raise NotImplementedError

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=(
            retry_if_exception_type(requests.ConnectionError)
            & retry_if_not_exception_type(requests.Timeout)
        ),
        reraise=True,
    )
    def _post(self, url: str, payload: dict, headers: Optional[dict] = None) -> requests.Response:
        """POST JSON with retry on connection errors."""
        return self.session.post(
            url,
            json=payload,
            headers={"Content-Type": "application/json", **(headers or {})},
            timeout=self.timeout,
        )

    def _failure(self, response: requests.Response, what: str) -> CRMResult:
        logger.error(f"{self.name} {what} error: {response.status_code} {response.text}")
        return CRMResult(success=False, error=f"{self.name} {what} failed with status {response.status_code}")


class LogOnlyBackend(CRMBackend):
    name = "none"

    def submit(self, lead: LeadData) -> CRMResult:
        logger.info("CRM integration disabled - lead logged only")
        return CRMResult(success=True)


class HubSpotBackend(CRMBackend):
    name = "HubSpot"

    def submit(self, lead: LeadData) -> CRMResult:
        if not self.api_key:
            logger.error("HubSpot API key not configured")
            return CRMResult(success=False, error="HubSpot API key not configured")

        first_name, last_name = split_name(lead.name)
        payload = {
            "properties": {
                "email": lead.email,
                "firstname": first_name,
                "lastname": last_name,
                "company": lead.company or "",
                "website": lead.website or "",
                "phone": lead.phone or "",
                "hs_lead_status": "NEW",
                "lifecyclestage": "lead",
                "service_interest": lead.service_interest or "",
                "primary_goal": lead.primary_goal or "",
                "budget": lead.budget or "",
                "lead_source": lead.source or "website_analysis",
                "performance_score": str(lead.performance_score) if lead.performance_score is not None else "",
                "analysis_url": lead.analysis_url or "",
                "message": lead.message or "",
            }
        }

        response = self._post(
            HUBSPOT_CONTACTS_URL,
            payload,
            headers={"Authorization": f"Bearer {self.api_key}"},
        )
        if not response.ok:
            return self._failure(response, "contact")

        logger.info("Successfully submitted lead to HubSpot")
        return CRMResult(success=True)


class SalesforceBackend(CRMBackend):
    name = "Salesforce"

    def submit(self, lead: LeadData) -> CRMResult:
        instance_url = self.settings.SALESFORCE_INSTANCE_URL
        if not self.api_key or not instance_url:
            logger.error("Salesforce configuration incomplete")
            return CRMResult(success=False, error="Salesforce configuration incomplete")

        first_name, last_name = split_name(lead.name)
        payload = {
            "FirstName": first_name,
            "LastName": last_name or "Unknown",
            "Email": lead.email,
            "Company": lead.company or "Unknown",
            "Website": lead.website or "",
            "Phone": lead.phone or "",
            "Status": "Open - Not Contacted",
            "LeadSource": lead.source or "Website Analysis",
            "Description": lead_notes(lead),
        }

        response = self._post(
            f"{instance_url.rstrip('/')}/services/data/{SALESFORCE_API_VERSION}/sobjects/Lead/",
            payload,
            headers={"Authorization": f"Bearer {self.api_key}"},
        )
        if not response.ok:
            return self._failure(response, "lead")

        logger.info("Successfully submitted lead to Salesforce")
        return CRMResult(success=True)


class PipedriveBackend(CRMBackend):
    name = "Pipedrive"

    def submit(self, lead: LeadData) -> CRMResult:
        domain = self.settings.PIPEDRIVE_COMPANY_DOMAIN
        if not self.api_key or not domain:
            logger.error("Pipedrive configuration incomplete")
            return CRMResult(success=False, error="Pipedrive configuration incomplete")

        base_url = f"https://{domain}.pipedrive.com/api/v1"
        person = {
            "name": lead.name,
            "email": [{"value": lead.email, "primary": True}],
            "phone": [{"value": lead.phone, "primary": True}] if lead.phone else [],
        }

        person_response = self._post(f"{base_url}/persons?api_token={self.api_key}", person)
        if not person_response.ok:
            return self._failure(person_response, "person creation")

        person_id = ((person_response.json() or {}).get("data") or {}).get("id")
        if person_id is None:
            return CRMResult(success=False, error="Pipedrive person response had no id")

        deal = {
            "title": f"Website Optimization - {lead.company or lead.name}",
            "person_id": person_id,
            "status": "open",
            "stage_id": 1,
            "value": 0,
            "currency": "USD",
            "notes": lead_notes(lead, include_website=True),
        }

        deal_response = self._post(f"{base_url}/deals?api_token={self.api_key}", deal)
        if not deal_response.ok:
            return self._failure(deal_response, "deal creation")

        logger.info("Successfully submitted lead to Pipedrive")
        return CRMResult(success=True)


BACKENDS: Dict[CRMType, Type[CRMBackend]] = {
    CRMType.NONE: LogOnlyBackend,
    CRMType.HUBSPOT: HubSpotBackend,
    CRMType.SALESFORCE: SalesforceBackend,
    CRMType.PIPEDRIVE: PipedriveBackend,
}


class LeadSubmissionClient:
    """Submits leads to whichever CRM CRM_TYPE selects."""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session or requests.Session()
        self.crm_type = (settings.CRM_TYPE or "none").lower()

    def submit(self, lead: LeadData) -> CRMResult:
        """
        Forward a lead once. Always logs the lead (email masked) first.

        Returns:
            CRMResult; never raises
        """
        logged = lead.model_dump(exclude_none=True)
        logged["email"] = mask_email(lead.email)
        logger.info(f"CRM Lead Submission ({self.crm_type}): {logged}")

        try:
            backend_cls = BACKENDS[CRMType(self.crm_type)]
        except ValueError:
            logger.error(f"Unknown CRM type: {self.crm_type}")
            return CRMResult(success=False, error="Unknown CRM type")

        try:
            return backend_cls(self.settings, self.session).submit(lead)
        except Exception as e:
            logger.exception(f"CRM submission failed: {str(e)}")
            return CRMResult(success=False, error=str(e))
