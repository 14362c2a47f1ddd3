"""Tests for the template risk narrative."""

from __future__ import annotations

from plainweb.audit.buckets import aggregate_buckets
from plainweb.audit.narrative import AUTOMATION_STATEMENTS, NO_ISSUES_TEXT, build_narrative, risk_level
from plainweb.audit.rules import bucket_impact
from plainweb.schemas import Bucket, FailedCheck


def _bucket(name, severity, failures=1, fix="partial"):
    return Bucket(bucket_name=name, related_rules=[name], total_failures=failures,
                  highest_severity=severity, auto_fixable=fix)


def test_risk_levels():
    assert risk_level([_bucket("a", "critical")]) == "high"
    assert risk_level([_bucket("a", "serious"), _bucket("b", "serious"), _bucket("c", "serious")]) == "high"
    assert risk_level([_bucket("a", "serious"), _bucket("b", "serious")]) == "moderate"
    assert risk_level([_bucket("a", "serious"), _bucket("b", "minor")]) == "moderate"
    assert risk_level([_bucket("a", "moderate"), _bucket("b", "minor")]) == "low"
    assert risk_level([]) == "low"


def test_empty_buckets_short_circuit():
    n = build_narrative([])
    assert n.text == NO_ISSUES_TEXT
    assert n.total_issues == 0
    assert n.priorities == []


def test_top_three_priorities_in_order():
    buckets = [
        _bucket("Missing text alternatives", "critical", 5, "yes"),
        _bucket("Color contrast", "serious", 4, "no"),
        _bucket("Unknown bucket", "serious", 3),
        _bucket("Tables and lists", "minor", 2),
    ]
    n = build_narrative(buckets)
    assert n.risk_level == "high"
    assert n.total_issues == 14
    assert n.total_buckets == 4
    assert [p.bucket_name for p in n.priorities] == ["Missing text alternatives", "Color contrast", "Unknown bucket"]
    assert n.priorities[0].automation == AUTOMATION_STATEMENTS["yes"]
    assert n.priorities[1].automation == AUTOMATION_STATEMENTS["no"]
    assert n.priorities[2].human_impact == bucket_impact("Unknown bucket")
    assert "HIGH" in n.text
    assert "Tables and lists" not in n.text


def test_narrative_from_aggregated_buckets():
    buckets = aggregate_buckets([FailedCheck(check_id="heading-order", title="h", fail_count=2)])
    n = build_narrative(buckets)
    assert n.risk_level == "low"
    assert n.priorities[0].affected_elements == 2
