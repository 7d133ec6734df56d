"""
Centralized configuration for the Speed Funnel service
All environment variables and settings are defined here
"""

from functools import lru_cache
from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field


PAYPAL_LIVE_URL = "https://api-m.paypal.com"
PAYPAL_SANDBOX_URL = "https://api-m.sandbox.paypal.com"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Provides centralized configuration with validation and defaults.
    """

    ENVIRONMENT: str = Field(
        default="development",
        description="Deployment environment (production enables secure cookies and live payments)"
    )

    # ======================
    # Session Configuration
    # ======================
    SESSION_SECRET: str = Field(
        default="",
        description="Secret used to encrypt the funnel session cookie (min 32 chars)"
    )
    SESSION_COOKIE_NAME: str = Field(
        default="velocitylab-funnel-session",
        description="Name of the encrypted session cookie"
    )
    SESSION_MAX_AGE: int = Field(
        default=86400,  # 24 hours
        description="Session lifetime in seconds"
    )

    # ======================
    # PageSpeed Configuration
    # ======================
    PAGESPEED_API_KEY: str = Field(default="", description="PageSpeed Insights API key")
    PAGESPEED_API_URL: str = Field(
        default="https://www.googleapis.com/pagespeedonline/v5/runPagespeed",
        description="PageSpeed Insights run endpoint"
    )
    PAGESPEED_STRATEGY: str = Field(default="mobile", description="Analysis strategy")
    PAGESPEED_TIMEOUT: int = Field(
        default=60,
        description="Timeout for the analysis request in seconds"
    )

    # ======================
    # CRM Configuration
    # ======================
    CRM_TYPE: str = Field(
        default="none",
        description="CRM vendor: hubspot, salesforce, pipedrive or none (log only)"
    )
    HUBSPOT_API_KEY: Optional[str] = Field(default=None, description="HubSpot private app token")
    SALESFORCE_API_KEY: Optional[str] = Field(default=None, description="Salesforce bearer token")
    SALESFORCE_INSTANCE_URL: Optional[str] = Field(
        default=None,
        description="Salesforce instance base URL"
    )
    PIPEDRIVE_API_KEY: Optional[str] = Field(default=None, description="Pipedrive API token")
    PIPEDRIVE_COMPANY_DOMAIN: Optional[str] = Field(
        default=None,
        description="Pipedrive company subdomain"
    )
    CRM_TIMEOUT: int = Field(default=15, description="Timeout for CRM calls in seconds")

    # ======================
    # PayPal Configuration
    # ======================
    PAYPAL_CLIENT_ID: Optional[str] = Field(default=None, description="PayPal REST client ID")
    PAYPAL_CLIENT_SECRET: Optional[str] = Field(
        default=None,
        description="PayPal REST client secret"
    )
    PAYPAL_API_URL: Optional[str] = Field(
        default=None,
        description="PayPal API base URL (defaults by ENVIRONMENT)"
    )
    PAYPAL_CURRENCY: str = Field(default="USD", description="Checkout currency code")
    PAYPAL_TIMEOUT: int = Field(default=30, description="Timeout for PayPal calls in seconds")

    # ======================
    # HTTP Configuration
    # ======================
    CORS_ORIGINS: List[str] = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    # ======================
    # Logging Configuration
    # ======================
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level"
    )

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def crm_api_key(self) -> Optional[str]:
        """First configured CRM key, in HubSpot, Salesforce, Pipedrive order"""
        return self.HUBSPOT_API_KEY or self.SALESFORCE_API_KEY or self.PIPEDRIVE_API_KEY

    @property
    def paypal_api_url(self) -> str:
        """Get PayPal base URL, live in production and sandbox otherwise"""
        if self.PAYPAL_API_URL:
            return self.PAYPAL_API_URL.rstrip("/")
        return PAYPAL_LIVE_URL if self.is_production else PAYPAL_SANDBOX_URL

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"  # Allow extra env vars in .env file


@lru_cache
def get_settings() -> Settings:
    """Get the process-wide settings instance"""
    return Settings()
