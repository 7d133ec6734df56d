"""
Business translation of PageSpeed issues.

Maps technical audit identifiers to copy a site owner understands, with a
1-10 business value used to order the results page.
"""

from typing import Dict, Iterable, List, NamedTuple

from models import BusinessImpact, Issue, ScoreMessage, TranslatedIssue


class IssueTranslation(NamedTuple):
    business_title: str
    business_impact: str
    severity: str
    icon: str
    business_value: int


ISSUE_TRANSLATIONS: Dict[str, IssueTranslation] = {
    "unused-css-rules": IssueTranslation(
        "Fix Render-Blocking Issues",
        "This is forcing users to stare at a blank screen, costing you visitors and potential sales.",
        "High",
        "🚫",
        9,
    ),
    "efficiently-encode-images": IssueTranslation(
        "Optimize Image Loading",
        "Heavy images are slowing down your site and increasing bounce rates, directly impacting conversions.",
        "High",
        "🖼️",
        8,
    ),
    "unminified-javascript": IssueTranslation(
        "Reduce JavaScript Load Times",
        "Bloated code is making your pages load slowly, hurting user experience and search rankings.",
        "Medium",
        "⚡",
        7,
    ),
    "largest-contentful-paint-element": IssueTranslation(
        "Speed Up Main Content Loading",
        "Your main content loads too slowly, causing visitors to leave before seeing your value proposition.",
        "High",
        "🎯",
        9,
    ),
    "render-blocking-resources": IssueTranslation(
        "Eliminate Render Blockers",
        "Critical resources are delaying page display, creating a poor first impression for visitors.",
        "High",
        "🔒",
        8,
    ),
    "unminified-css": IssueTranslation(
        "Streamline Stylesheet Loading",
        "Oversized stylesheets are slowing page rendering and negatively affecting user experience.",
        "Medium",
        "🎨",
        6,
    ),
    "unused-javascript": IssueTranslation(
        "Remove Unnecessary Code",
        "Dead code is wasting bandwidth and slowing down your site, especially on mobile devices.",
        "Medium",
        "🧹",
        6,
    ),
    "legacy-javascript": IssueTranslation(
        "Modernize JavaScript Code",
        "Outdated code is reducing performance and potentially blocking users on older devices.",
        "Low",
        "🔄",
        4,
    ),
    "cumulative-layout-shift": IssueTranslation(
        "Fix Layout Jumping",
        "Content that moves around frustrates users and can cause accidental clicks, harming conversions.",
        "Medium",
        "📱",
        7,
    ),
    "non-composited-animations": IssueTranslation(
        "Optimize Visual Effects",
        "Poorly optimized animations are causing janky scrolling and reducing perceived performance.",
        "Low",
        "✨",
        3,
    ),
}

FALLBACK_TRANSLATION = IssueTranslation(
    "Performance Optimization Needed",
    "This issue is affecting your website's speed and user experience, potentially impacting conversions.",
    "Medium",
    "⚠️",
    5,
)


def translate_issue(issue: Issue) -> TranslatedIssue:
    """Translate one issue; unknown ids get the fallback entry."""
    translation = ISSUE_TRANSLATIONS.get(issue.id, FALLBACK_TRANSLATION)
    return TranslatedIssue(
        id=issue.id,
        original_title=issue.title,
        business_title=translation.business_title,
        business_impact=translation.business_impact,
        severity=translation.severity,
        icon=translation.icon,
        business_value=translation.business_value,
    )


def translate_and_prioritize(issues: Iterable[Issue]) -> List[TranslatedIssue]:
    """Translate every issue and order by business value, highest first.

    sorted() is stable, so equal values keep their input order.
    """
    translated = [translate_issue(issue) for issue in issues]
    return sorted(translated, key=lambda t: t.business_value, reverse=True)


def get_performance_score_message(score: int) -> ScoreMessage:
    if score >= 90:
        return ScoreMessage(
            grade="A",
            message="Excellent! Your website has outstanding performance. You're ahead of most competitors.",
        )
    if score >= 70:
        return ScoreMessage(
            grade="B",
            message="Good performance, but there's room for improvement. Small optimizations could yield big results.",
        )
    if score >= 50:
        return ScoreMessage(
            grade="C",
            message="Average performance detected. Your website needs optimization to stay competitive.",
        )
    if score >= 30:
        return ScoreMessage(
            grade="D",
            message="Poor performance detected. Immediate attention required to prevent visitor loss.",
        )
    return ScoreMessage(
        grade="F",
        message="Critical performance issues detected. Your slow site is likely costing you significant revenue.",
    )


def get_business_impact_estimate(score: int) -> BusinessImpact:
    if score >= 90:
        return BusinessImpact(
            bounce_rate_increase="< 5%",
            conversion_impact="Minimal impact",
            seo_impact="Positive ranking factor",
        )
    if score >= 70:
        return BusinessImpact(
            bounce_rate_increase="5-15%",
            conversion_impact="2-7% conversion loss",
            seo_impact="Neutral to slight negative",
        )
    if score >= 50:
        return BusinessImpact(
            bounce_rate_increase="15-25%",
            conversion_impact="7-15% conversion loss",
            seo_impact="Negative ranking impact",
        )
    return BusinessImpact(
        bounce_rate_increase="25-40%",
        conversion_impact="15-30% conversion loss",
        seo_impact="Severe ranking penalty",
    )
