"""Tests for the static rule tables and the rule classifier."""

from __future__ import annotations

import pytest

from plainweb.audit.rules import (
    BUCKET_MAP,
    OTHER_BUCKET,
    RULE_METADATA,
    SEVERITY_RANK,
    bucket_for,
    bucket_impact,
    classify_issue,
    classify_issues,
)
from plainweb.schemas import FailedCheck


def test_unmapped_rule_uses_fallback():
    issue = classify_issue(FailedCheck(check_id="xyz-unknown-rule", title="Brand new", fail_count=2))
    assert issue.guideline_reference == "unmapped"
    assert issue.severity == "moderate"
    assert issue.auto_fix_potential == "medium"
    assert issue.impact
    assert issue.failed_elements == 2
    assert issue.rule == "Brand new"


def test_mapped_rule_lookup():
    issue = classify_issue(FailedCheck(check_id="image-alt", title="Images lack alt", fail_count=7))
    assert issue.guideline_reference.startswith("WCAG")
    assert "1.1.1" in issue.guideline_reference
    assert issue.severity == "critical"
    assert issue.failed_elements == 7


def test_issue_serializes_with_camel_case():
    dumped = classify_issue(FailedCheck(check_id="label", title="t", fail_count=1)).dump()
    assert set(dumped) == {"rule", "guidelineReference", "severity", "failedElements", "impact", "autoFixPotential"}


def test_classify_issues_keeps_order():
    checks = [FailedCheck(check_id=c, title=c, fail_count=1) for c in ("label", "image-alt", "nope")]
    assert [i.rule for i in classify_issues(checks)] == ["label", "image-alt", "nope"]


def test_every_known_rule_has_a_bucket():
    assert set(RULE_METADATA) <= set(BUCKET_MAP)


def test_severity_ranks_are_strictly_ordered():
    assert SEVERITY_RANK["critical"] > SEVERITY_RANK["serious"] > SEVERITY_RANK["moderate"] > SEVERITY_RANK["minor"]


def test_tables_are_read_only():
    with pytest.raises(TypeError):
        RULE_METADATA["image-alt"] = None
    with pytest.raises(TypeError):
        BUCKET_MAP["new"] = "x"


def test_bucket_fallbacks():
    assert bucket_for("xyz-unknown-rule") == OTHER_BUCKET
    assert bucket_impact("Not a bucket")
    assert bucket_impact(bucket_for("color-contrast")) != bucket_impact("Not a bucket")
