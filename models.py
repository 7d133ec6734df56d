from datetime import datetime
from typing import List, Literal, Optional
from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    HttpUrl,
    TypeAdapter,
    field_validator,
)


Severity = Literal["Low", "Medium", "High"]
FunnelStep = Literal["url", "email", "results"]
ServiceInterest = Literal["speed_optimization", "performance_audit", "consulting", "other"]
Budget = Literal["lt_1k", "1k_5k", "5k_10k", "gt_10k", "not_sure"]

_http_url = TypeAdapter(HttpUrl)


# Analysis models
class Issue(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str
    severity: Severity


class Metrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    first_contentful_paint: float = 0  # ms
    largest_contentful_paint: float = 0  # ms
    cumulative_layout_shift: float = 0  # unitless, 2 decimals
    first_input_delay: float = 0  # ms
    time_to_interactive: float = 0  # ms


class AnalysisResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    performance_score: int = Field(ge=0, le=100)
    summary: str
    metrics: Metrics
    issues: List[Issue] = Field(default_factory=list, max_length=4)


# Session model
class FunnelSession(BaseModel):
    url: str = ""
    email: Optional[str] = None
    analysis: Optional[AnalysisResult] = None
    timestamp: datetime
    step: FunnelStep = "url"
    completed: bool = False


# Results view models
class TranslatedIssue(BaseModel):
    id: str
    original_title: str
    business_title: str
    business_impact: str
    severity: Severity
    icon: str
    business_value: int = Field(ge=1, le=10)


class ScoreMessage(BaseModel):
    grade: str
    message: str


class BusinessImpact(BaseModel):
    bounce_rate_increase: str
    conversion_impact: str
    seo_impact: str


class ResultsView(BaseModel):
    url: str
    email: str
    performance_score: int
    summary: str
    metrics: Metrics
    issues: List[TranslatedIssue]
    score_message: ScoreMessage
    business_impact: BusinessImpact


# Lead models
class LeadData(BaseModel):
    name: str
    email: str
    company: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    service_interest: Optional[str] = None
    primary_goal: Optional[str] = None
    budget: Optional[str] = None
    message: Optional[str] = None
    source: Optional[str] = None
    performance_score: Optional[int] = None
    analysis_url: Optional[str] = None


class LeadFormSubmission(BaseModel):
    name: str = Field(min_length=2)
    work_email: EmailStr
    company_website: HttpUrl
    service_interest: ServiceInterest
    primary_goal: Optional[str] = None
    message: Optional[str] = None


class ContactFormSubmission(BaseModel):
    name: str = Field(min_length=2)
    email: EmailStr
    company_website: Optional[str] = None
    service: ServiceInterest
    primary_goal: Optional[str] = None
    budget: Optional[Budget] = None
    message: str = Field(min_length=10)

    @field_validator("company_website")
    @classmethod
    def _website_is_url_or_empty(cls, value: Optional[str]) -> Optional[str]:
        if value:
            _http_url.validate_python(value)
        return value or None

    @field_validator("primary_goal")
    @classmethod
    def _goal_is_descriptive(cls, value: Optional[str]) -> Optional[str]:
        if value and len(value) < 3:
            raise ValueError("Please tell us your primary goal.")
        return value or None


class LeadResponse(BaseModel):
    success: bool
    message: str
    warning: Optional[str] = None


# Funnel request/response models
class UrlSubmission(BaseModel):
    url: str


class EmailSubmission(BaseModel):
    email: str


class AnalysisResponse(BaseModel):
    message: str
    step: FunnelStep
    analysis: AnalysisResult


class FunnelRedirect(BaseModel):
    step: FunnelStep
    redirect: str


class SessionStatus(BaseModel):
    step: FunnelStep
    url: Optional[str] = None
    completed: bool = False


class ProgressState(BaseModel):
    step: int
    total_steps: int
    message: str
    percent: int


# Payment models
class PricingTier(BaseModel):
    name: str
    price: str
    description: str
    features: List[str]


class OrderRequest(BaseModel):
    tier: str


class OrderResponse(BaseModel):
    order_id: str
    tier: str
    amount: str
    currency: str
