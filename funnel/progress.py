"""
Perceived-progress display for the analysis step.

This is purely timer driven: it advances on elapsed time and knows nothing
about whether the analysis request has actually finished.
"""

from models import ProgressState

ANALYSIS_STEPS = (
    "Connecting...",
    "Analyzing page load performance...",
    "Measuring Core Web Vitals...",
    "Identifying speed bottlenecks...",
    "Compiling performance report...",
)

STEP_DURATION_SECONDS = 4.5


def progress_at(elapsed_seconds: float) -> ProgressState:
    """Display state after elapsed_seconds; holds on the last step."""
    total = len(ANALYSIS_STEPS)
    index = int(max(elapsed_seconds, 0) // STEP_DURATION_SECONDS)
    index = min(index, total - 1)

    return ProgressState(
        step=index + 1,
        total_steps=total,
        message=ANALYSIS_STEPS[index],
        percent=round((index + 1) / total * 100),
    )
