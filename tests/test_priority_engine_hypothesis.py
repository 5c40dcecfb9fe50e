"""
Property-based tests for the priority engine invariants.
"""
import math

from hypothesis import given, settings, strategies as st

from triage.lexicons import CATEGORIES
from triage.priority_engine import (
    SeverityScores,
    calculate_priority,
    calculate_severity_scores,
    classify_category,
    generate_explanation,
    priority_tier,
)

unit = st.floats(min_value=0.0, max_value=1.0, allow_nan=False)
severity_scores = st.builds(SeverityScores, S=unit, T=unit, V=unit, C=unit, E=unit)

# Free text mixed with real trigger words so the interesting paths get hit.
trigger_words = st.sampled_from([
    "help", "now", "bleeding", "unconscious", "trapped", "flood", "fire", "gas",
    "pregnant", "baby", "grandpa", "hungry", "roof", "minor", "dying", "storm",
])
descriptions = st.one_of(
    st.text(max_size=200),
    st.lists(st.one_of(trigger_words, st.text(max_size=10)), max_size=20).map(" ".join),
)
ages = st.integers(min_value=-10, max_value=200)


class TestSeverityProperties:
    @given(description=descriptions, age=ages)
    def test_all_fields_in_unit_interval(self, description, age):
        scores = calculate_severity_scores(description, age)
        for value in scores.as_dict().values():
            assert 0.0 <= value <= 1.0
            assert round(value, 2) == value

    @given(description=descriptions, age=ages)
    def test_idempotent(self, description, age):
        assert calculate_severity_scores(description, age) == calculate_severity_scores(description, age)
        assert classify_category(description) == classify_category(description)

    @given(description=descriptions)
    def test_category_is_closed_set(self, description):
        assert classify_category(description) in CATEGORIES


class TestPriorityProperties:
    @given(severity=severity_scores, la=unit)
    def test_score_is_weighted_sum(self, severity, la):
        result = calculate_priority(severity, la)
        raw = (
            0.35 * severity.S + 0.25 * severity.T + 0.15 * severity.V
            + 0.15 * severity.C + 0.10 * severity.E
        )
        assert 0.0 <= result.score <= 1.0
        # Half-up at the third decimal: floor(x * 1000 + 0.5) / 1000.
        expected = math.floor(max(0.0, min(1.0, raw)) * 1000 + 0.5) / 1000
        assert result.score == expected
        assert result.breakdown.P_base == math.floor(raw * 1000 + 0.5) / 1000

    @given(severity=severity_scores, la=unit)
    def test_tag_and_review_follow_score(self, severity, la):
        result = calculate_priority(severity, la)
        assert (result.tag, result.color) == priority_tier(result.score)
        assert result.human_review_required == (result.score >= 0.8 and la < 0.5)

    @given(severity=severity_scores, la=unit)
    def test_idempotent(self, severity, la):
        assert calculate_priority(severity, la) == calculate_priority(severity, la)

    @given(score=unit)
    def test_tiers_partition_unit_interval(self, score):
        tag, _ = priority_tier(score)
        expected = (
            "Critical" if score >= 0.8 else
            "High" if score >= 0.6 else
            "Medium" if score >= 0.4 else
            "Low" if score >= 0.2 else
            "Minimal"
        )
        assert tag == expected


class TestExplanationProperties:
    @settings(max_examples=200)
    @given(description=descriptions, age=ages, la=unit)
    def test_bullet_count(self, description, age, la):
        severity = calculate_severity_scores(description, age)
        priority = calculate_priority(severity, la)
        text = generate_explanation(priority, severity, description, age)
        header, *bullets = text.split("\n- ")
        assert header == f"🤖 AI Analysis: {priority.tag} Priority because:"
        assert 1 <= len(bullets) <= 4
        assert text == generate_explanation(priority, severity, description, age)
