"""
Recommendation Synthesis

Maps the overall status (plus the failing and warning checks) to a fixed
action, confidence, reason and advice list.
"""

from typing import Optional

from tradecheck.schemas.probability import ProbabilityResult
from tradecheck.schemas.validation import (
    CheckStatus,
    OverallStatus,
    Recommendation,
    RecommendationIssue,
    Severity,
    StrikeKeyMetrics,
    ValidationCheck,
)

RECOMMENDATIONS: dict[OverallStatus, dict] = {
    OverallStatus.REJECTED: {
        "action": "DO NOT ENTER TRADE",
        "confidence": "HIGH",
        "reason": "Critical validation failures detected - trade has extreme risk",
        "advice": [
            "This trade setup has fundamental problems",
            "Do not proceed with this trade",
            "Consider different strikes further OTM",
            "Wait for volatility to decrease",
            "Look for better market conditions",
        ],
    },
    OverallStatus.HIGH_RISK: {
        "action": "AVOID TRADE",
        "confidence": "MEDIUM-HIGH",
        "reason": "Multiple significant risk factors present",
        "advice": [
            "This trade has substantial risks",
            "Consider skipping this opportunity",
            "If proceeding, significantly reduce position size",
            "Set very tight stop losses",
            "Be prepared to exit quickly",
        ],
    },
    OverallStatus.MODERATE_RISK: {
        "action": "PROCEED WITH CAUTION",
        "confidence": "MEDIUM",
        "reason": "Trade has acceptable risk but requires monitoring",
        "advice": [
            "Trade is viable but monitor closely",
            "Set up alerts at strike levels",
            "Consider 50-75% of normal position size",
            "Review position daily",
            "Have exit plan ready",
        ],
    },
    OverallStatus.LOW_RISK: {
        "action": "APPROVED - Minor Cautions",
        "confidence": "MEDIUM-HIGH",
        "reason": "Trade passes validation with minor concerns",
        "advice": [
            "Trade setup looks good",
            "A few minor points to watch",
            "Normal position sizing appropriate",
            "Monitor as usual",
            "Set standard alerts",
        ],
    },
    OverallStatus.APPROVED: {
        "action": "APPROVED - GREEN LIGHT",
        "confidence": "HIGH",
        "reason": "All validation checks passed - trade setup is solid",
        "advice": [
            "Excellent trade setup",
            "All risk metrics within acceptable ranges",
            "Proceed with normal position sizing",
            "Set standard alerts and monitoring",
            "Stick to your plan",
        ],
    },
}

# Statuses whose recommendation carries per-strike key metrics
KEY_METRIC_STATUSES = {OverallStatus.MODERATE_RISK, OverallStatus.LOW_RISK, OverallStatus.APPROVED}


def extract_key_metrics(probabilities: dict[str, ProbabilityResult]) -> dict[str, StrikeKeyMetrics]:
    """Touch probability, ATR distance and expected move per short strike."""
    metrics = {}
    for leg in ("short_call", "short_put"):
        prob = probabilities.get(leg)
        if prob is None:
            continue
        metrics[leg] = StrikeKeyMetrics(
            prob_touch=f"{prob.prob_touch * 100:.1f}%",
            distance_atr=f"{prob.distance_in_atr:.2f} ATR",
            expected_move=f"±${prob.expected_move:.2f}",
        )
    return metrics


def _issues(checks: list[ValidationCheck]) -> list[RecommendationIssue]:
    return [
        RecommendationIssue(check=c.name, message=c.details["message"], value=c.value)
        for c in checks
    ]


def generate_recommendation(
    overall_status: OverallStatus,
    checks: list[ValidationCheck],
    probabilities: dict[str, ProbabilityResult],
) -> Recommendation:
    """Pure function of the verdict and the checks that produced it."""
    failures = [c for c in checks if c.status == CheckStatus.FAIL]
    warnings = [c for c in checks if c.status == CheckStatus.WARNING]

    if overall_status == OverallStatus.REJECTED:
        issues = _issues([c for c in failures if c.severity == Severity.CRITICAL])
    elif overall_status == OverallStatus.HIGH_RISK:
        issues = _issues(failures)
    else:
        issues = _issues(warnings)

    key_metrics: Optional[dict[str, StrikeKeyMetrics]] = None
    if overall_status in KEY_METRIC_STATUSES:
        key_metrics = extract_key_metrics(probabilities)

    template = RECOMMENDATIONS[overall_status]
    return Recommendation(
        action=template["action"],
        confidence=template["confidence"],
        reason=template["reason"],
        issues=issues,
        advice=list(template["advice"]),
        key_metrics=key_metrics,
    )
