from typing import Dict, Optional

from models import PricingTier

# One-time optimization packages
PRICING_TIERS = [
    PricingTier(
        name="Starter",
        price="499",
        description="For small sites or blogs that need a one-time speed boost.",
        features=[
            "Complete Performance Audit",
            "Image & Asset Optimization",
            "Caching Implementation",
            "Core Web Vitals Improvement",
            "Delivery in 5-7 business days",
        ],
    ),
    PricingTier(
        name="Business",
        price="999",
        description="For established businesses and e-commerce stores.",
        features=[
            "Everything in Starter, plus:",
            "Advanced JavaScript/CSS Minification",
            "Database Optimization",
            "CDN Setup & Configuration",
            "Priority Support",
        ],
    ),
    PricingTier(
        name="Enterprise",
        price="1999",
        description="For large-scale applications with custom needs.",
        features=[
            "Everything in Business, plus:",
            "Dedicated Performance Engineer",
            "Ongoing Monitoring & Reporting",
            "Custom Integrations",
            "Quarterly Performance Reviews",
        ],
    ),
]

_TIERS_BY_NAME: Dict[str, PricingTier] = {tier.name.lower(): tier for tier in PRICING_TIERS}


def find_tier(name: str) -> Optional[PricingTier]:
    """Look up a tier by name, case-insensitively"""
    return _TIERS_BY_NAME.get(name.strip().lower())
