import math
from dataclasses import dataclass, asdict
from typing import Optional, Tuple

from triage.lexicons import (
    ABSOLUTE_URGENCY_KEYWORDS,
    CATEGORY_KEYWORDS,
    COMPLICATION_KEYWORDS,
    DEFAULT_CATEGORY,
    ENVIRONMENTAL_KEYWORDS,
    SEVERITY_KEYWORDS,
    URGENCY_KEYWORDS,
    VULNERABILITY_KEYWORDS,
    contains_keyword,
    count_keywords,
)

# ---------------- SCORE WEIGHTS ----------------
# P = 0.35*S + 0.25*T + 0.15*V + 0.15*C + 0.10*E
WEIGHTS = {
    "S": 0.35,
    "T": 0.25,
    "V": 0.15,
    "C": 0.15,
    "E": 0.10,
}

# (lower bound, tag, color), checked top to bottom.
TIERS = [
    (0.80, "Critical", "Red"),
    (0.60, "High", "Orange"),
    (0.40, "Medium", "Yellow"),
    (0.20, "Low", "Green"),
]
FLOOR_TIER = ("Minimal", "Blue")

HUMAN_REVIEW_SCORE = 0.80
HUMAN_REVIEW_MIN_LOCATION_ACCURACY = 0.50
DEFAULT_LOCATION_ACCURACY = 0.5


@dataclass(frozen=True)
class SeverityScores:
    """Five independent sub-scores in [0, 1]."""

    S: float  # Severity
    T: float  # Time criticality
    V: float  # Vulnerability
    C: float  # Complication risk
    E: float  # Environmental danger

    def as_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class PriorityBreakdown:
    P_base: float
    raw_score_before_clamp: float
    # Fixed values. They no longer feed the score and exist so explanations
    # and stored records keep a stable shape.
    loc_factor: float = 1
    resource_add: float = 0
    waiting_boost: float = 0
    fairness_boost: float = 0


@dataclass(frozen=True)
class PriorityResult:
    score: float
    tag: str
    color: str
    breakdown: PriorityBreakdown
    human_review_required: bool

    def as_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class LegacyRoutingParams:
    """
    Routing inputs from the older scoring formula.

    Accepted so existing callers keep working. None of these fields affect
    calculate_priority; they are intentionally unused.
    """

    route_reliability: float = 0.5
    route_blocked: bool = False
    available_resources: float = 1
    waiting_minutes: float = 0
    fairness_boost: float = 0


def _clamp(value, low=0.0, high=1.0):
    return max(low, min(high, value))


def _round(value, places):
    """Round half up at `places` decimals (0.2975 -> 0.298)."""
    factor = 10 ** places
    return math.floor(value * factor + 0.5) / factor


# ---------------- CATEGORY CLASSIFICATION ----------------
def classify_category(description: str) -> str:
    """
    Pick the category whose keyword table has the most hits.

    Ties keep the first category in declaration order. No hits at all
    gives "Others".
    """
    lower = description.lower()
    best_category, max_score = DEFAULT_CATEGORY, 0
    for category, keywords in CATEGORY_KEYWORDS.items():
        if category == DEFAULT_CATEGORY:
            continue
        score = count_keywords(lower, keywords)
        if score > max_score:
            best_category, max_score = category, score
    return best_category


# ---------------- SEVERITY SCORING ----------------
def _severity(lower):
    if contains_keyword(lower, SEVERITY_KEYWORDS["high"]):
        return 0.9
    if contains_keyword(lower, SEVERITY_KEYWORDS["medium"]):
        return 0.6
    if contains_keyword(lower, SEVERITY_KEYWORDS["low"]):
        return 0.2
    return 0.3


def _time_criticality(lower):
    if contains_keyword(lower, ABSOLUTE_URGENCY_KEYWORDS):
        return 1.0
    return min(0.3 + count_keywords(lower, URGENCY_KEYWORDS) * 0.15, 1.0)


def _vulnerability(lower, age):
    # Age brackets: first match wins. Ages outside them keep the base.
    if age < 5:
        v = 0.95
    elif age < 12:
        v = 0.8
    elif age > 70:
        v = 0.85
    elif age > 60:
        v = 0.7
    else:
        v = 0.3

    for group, floor in (("child", 0.85), ("elderly", 0.85), ("pregnant", 0.9), ("disabled", 0.8)):
        if contains_keyword(lower, VULNERABILITY_KEYWORDS[group]):
            v = max(v, floor)
    return v


def calculate_severity_scores(description: str, age: int) -> SeverityScores:
    """Score a free-text description and victim age on S, T, V, C, E."""
    lower = description.lower()
    complication = min(0.2 + count_keywords(lower, COMPLICATION_KEYWORDS) * 0.25, 1.0)
    environment = min(0.1 + count_keywords(lower, ENVIRONMENTAL_KEYWORDS) * 0.3, 1.0)
    return SeverityScores(
        S=_round(_severity(lower), 2),
        T=_round(_time_criticality(lower), 2),
        V=_round(_vulnerability(lower, age), 2),
        C=_round(complication, 2),
        E=_round(environment, 2),
    )


# ---------------- PRIORITY CLASSIFICATION ----------------
def priority_tier(score: float) -> Tuple[str, str]:
    """Map a score in [0, 1] to (tag, color). Lower bounds are inclusive."""
    for lower_bound, tag, color in TIERS:
        if score >= lower_bound:
            return tag, color
    return FLOOR_TIER


def calculate_priority(
    severity: SeverityScores,
    location_accuracy: float = DEFAULT_LOCATION_ACCURACY,
    legacy: Optional[LegacyRoutingParams] = None,
) -> PriorityResult:
    """
    Combine sub-scores into a weighted priority in [0, 1].

    `legacy` is accepted for interface compatibility and ignored.
    Location accuracy only decides whether a human should double-check.
    """
    raw = (
        WEIGHTS["S"] * severity.S
        + WEIGHTS["T"] * severity.T
        + WEIGHTS["V"] * severity.V
        + WEIGHTS["C"] * severity.C
        + WEIGHTS["E"] * severity.E
    )
    # Tier and review flag read the published (rounded) score.
    score = _round(_clamp(raw), 3)
    tag, color = priority_tier(score)
    human_review_required = (
        score >= HUMAN_REVIEW_SCORE
        and location_accuracy < HUMAN_REVIEW_MIN_LOCATION_ACCURACY
    )
    return PriorityResult(
        score=score,
        tag=tag,
        color=color,
        breakdown=PriorityBreakdown(
            P_base=_round(raw, 3),
            raw_score_before_clamp=_round(raw, 3),
        ),
        human_review_required=human_review_required,
    )


def location_accuracy_from_meters(accuracy_m: Optional[float]) -> float:
    """GPS accuracy radius in metres -> LA in [0, 1]. Unknown gives 0.5."""
    if accuracy_m is None:
        return DEFAULT_LOCATION_ACCURACY
    return _clamp(1 - accuracy_m / 1000)


# ---------------- EXPLANATION ----------------
MIN_REASONS = 3
MAX_REASONS = 4


def generate_explanation(
    priority: PriorityResult,
    severity: SeverityScores,
    description: str,
    age: int,
) -> str:
    """Render the reasons behind a priority as a header plus bullet lines."""
    lower = description.lower()
    breakdown = priority.breakdown
    reasons = []

    if contains_keyword(lower, SEVERITY_KEYWORDS["high"]):
        reasons.append("severe symptoms (unconscious, heavy bleeding)")
    elif severity.S >= 0.6:
        reasons.append("moderate injury detected")
    elif severity.S < 0.4:
        reasons.append("no life-threat keywords found")

    if age < 12:
        reasons.append(f"child victim (age {age})")
    elif age > 65:
        reasons.append(f"elderly victim (age {age})")
    if contains_keyword(lower, VULNERABILITY_KEYWORDS["pregnant"]):
        reasons.append("pregnant victim")

    if severity.T >= 0.8:
        reasons.append('urgent language detected ("help now")')
    elif severity.T < 0.4:
        reasons.append("low urgency scores")

    # loc_factor is pinned to 1, so the "far" branch never fires today.
    if breakdown.loc_factor >= 0.9:
        reasons.append(f"rescuer nearby (loc_factor = {breakdown.loc_factor})")
    else:
        reasons.append(f"rescuer far (loc_factor = {breakdown.loc_factor})")

    if severity.E >= 0.5:
        reasons.append("environmental hazards detected")
    if severity.C >= 0.5:
        reasons.append("complication risks present (fire, gas, collapse)")
    if breakdown.waiting_boost > 0:
        reasons.append(f"waiting time boost applied (+{breakdown.waiting_boost})")

    while len(reasons) < MIN_REASONS:
        if not any("loc_factor" in r for r in reasons):
            reasons.append(f"location factor = {breakdown.loc_factor}")
        elif not any("severity" in r for r in reasons):
            reasons.append(f"base severity score = {breakdown.P_base}")
        else:
            reasons.append(f"priority score = {priority.score}")

    bullets = "\n- ".join(reasons[:MAX_REASONS])
    return f"🤖 AI Analysis: {priority.tag} Priority because:\n- {bullets}"
