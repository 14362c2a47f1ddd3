# plainweb/audit/narrative.py
"""
Deterministic, template-based risk narrative built from sorted buckets.
"""
from typing import List

from ..schemas import Bucket, Narrative, PriorityBlock
from .rules import bucket_impact

TOP_PRIORITIES = 3
NO_ISSUES_TEXT = "No accessibility issues were detected by the automated checks."

AUTOMATION_STATEMENTS = {
    "yes": "These fixes are mechanical and can largely be automated.",
    "partial": "Some of these fixes can be automated; the rest need a developer's judgment.",
    "no": "These fixes need manual review by a developer or designer.",
}


def risk_level(buckets: List[Bucket]) -> str:
    """
    high     - any critical bucket, or three or more serious buckets
    moderate - at least one serious bucket
    low      - everything else
    """
    severities = [b.highest_severity for b in buckets]
    if "critical" in severities:
        return "high"
    serious = severities.count("serious")
    if serious >= 3:
        return "high"
    if serious >= 1:
        return "moderate"
    return "low"


def _priority(bucket: Bucket) -> PriorityBlock:
    return PriorityBlock(
        bucket_name=bucket.bucket_name,
        affected_elements=bucket.total_failures,
        human_impact=bucket_impact(bucket.bucket_name),
        automation=AUTOMATION_STATEMENTS.get(bucket.auto_fixable, AUTOMATION_STATEMENTS["no"]),
    )


def _render(level: str, total_issues: int, priorities: List[PriorityBlock], total_buckets: int) -> str:
    lines = [
        f"Overall accessibility risk: {level.upper()}",
        f"{total_issues} failing elements found across {total_buckets} problem areas.",
        "",
        "Top priorities:",
    ]
    for i, p in enumerate(priorities, start=1):
        lines += [
            f"{i}. {p.bucket_name} ({p.affected_elements} elements affected)",
            f"   Impact: {p.human_impact}",
            f"   Fix: {p.automation}",
        ]
    return "\n".join(lines)


def build_narrative(buckets: List[Bucket]) -> Narrative:
    """Buckets must already be in priority order (see aggregate_buckets)."""
    if not buckets:
        return Narrative(risk_level="low", total_issues=0, total_buckets=0, priorities=[], text=NO_ISSUES_TEXT)

    level = risk_level(buckets)
    total_issues = sum(b.total_failures for b in buckets)
    priorities = [_priority(b) for b in buckets[:TOP_PRIORITIES]]
    return Narrative(
        risk_level=level,
        total_issues=total_issues,
        total_buckets=len(buckets),
        priorities=priorities,
        text=_render(level, total_issues, priorities, len(buckets)),
    )
