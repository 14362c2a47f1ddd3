"""Tests for outgoing tree sanitization and report assembly."""

from __future__ import annotations

import copy
import json
from datetime import datetime, timezone

from plainweb.audit.assembler import assemble_report, light_checks, sanitize_tree
from plainweb.audit.buckets import aggregate_buckets
from plainweb.audit.narrative import build_narrative
from plainweb.audit.reducer import categorize_checks, reduce_failed_checks
from plainweb.audit.rules import classify_issues


def _contains_key(o, key) -> bool:
    if isinstance(o, dict):
        return key in o or any(_contains_key(v, key) for v in o.values())
    if isinstance(o, list):
        return any(_contains_key(v, key) for v in o)
    return False


def test_sanitize_tree_drops_noise(lhr):
    tree = sanitize_tree(lhr)
    audits = tree["audits"]
    assert "document-title" not in audits        # passing
    assert "final-screenshot" not in audits      # excluded
    assert "image-alt" in audits
    for key in ("i18n", "timing", "categoryGroups"):
        assert key not in tree
    assert "performance" not in tree["categories"]
    assert not _contains_key(tree, "description")


def test_sanitize_tree_simplifies_evidence_on_a_copy(lhr):
    before = copy.deepcopy(lhr)
    tree = sanitize_tree(lhr)
    items = tree["audits"]["image-alt"]["details"]["items"]
    assert len(items) == 5
    assert items[0] == {"node": "img 1", "selector": "body > img:nth-child(1)"}
    assert lhr == before
    # reducer still sees the full evidence afterwards
    assert reduce_failed_checks(lhr)[0].fail_count == 7


def test_light_checks_strip_evidence(lhr):
    light = light_checks(categorize_checks(lhr))
    assert set(light) == {"failed", "passed", "manual"}
    assert not _contains_key(light, "items")
    assert light["failed"][0]["failCount"] == 7


def test_assemble_report_is_plain_json(lhr):
    failed = reduce_failed_checks(lhr)
    buckets = aggregate_buckets(failed)
    narrative = build_narrative(buckets)
    report = assemble_report(
        url="https://example.com/",
        lhr=lhr,
        issues=classify_issues(failed),
        buckets=buckets,
        narrative=narrative,
        score=33,
        owner_summary="owner",
        created_at=datetime(2026, 1, 2, tzinfo=timezone.utc),
    )
    assert json.loads(json.dumps(report)) == report
    assert report["narrative"] == narrative.text
    assert report["risk"]["riskLevel"] == "high"
    assert report["buckets"]["buckets"][0]["highestSeverity"] == "critical"
    assert report["issues"][0]["failedElements"] == 7
    assert report["score"] == 33
    assert report["ownerSummary"] == "owner"
    assert "expertGuide" not in report
    assert report["createdAt"] == "2026-01-02T00:00:00+00:00"

    # no live references into the raw tree
    report["prunedTree"]["audits"]["image-alt"]["title"] = "changed"
    assert lhr["audits"]["image-alt"]["title"] != "changed"
