from typing import Optional

from triage.logger import get_logger
from triage.priority_engine import (
    LegacyRoutingParams,
    calculate_priority,
    calculate_severity_scores,
    classify_category,
    generate_explanation,
    location_accuracy_from_meters,
)
from triage.sos_store import SOSRequest, SOSStore
from triage.validators import SOSForm

logger = get_logger(__name__)

# Route reliability the submission form has always reported. Inert.
SIMULATED_ROUTING = LegacyRoutingParams(route_reliability=0.7)


def submit_sos(store: SOSStore, form: SOSForm, consent_timestamp: Optional[str] = None) -> SOSRequest:
    """Triage a validated SOS form and queue it for rescuers."""
    category = classify_category(form.description)
    severity = calculate_severity_scores(form.description, form.age)
    la = location_accuracy_from_meters(form.accuracy)
    priority = calculate_priority(severity, la, SIMULATED_ROUTING)
    explanation = generate_explanation(priority, severity, form.description, form.age)

    if priority.human_review_required:
        logger.warning(
            "Critical SOS with poor location accuracy (LA=%.2f), flag for human review", la
        )

    return store.add_request(
        name=form.name,
        age=form.age,
        phone=form.phone,
        description=form.description,
        category=category,
        severity=severity,
        priority=priority,
        reason_explanation=explanation,
        location_accuracy=la,
        lat=form.lat,
        lng=form.lng,
        consent_timestamp=consent_timestamp,
    )
