# plainweb/audit/buckets.py
from typing import Dict, Iterable, List

from ..schemas import Bucket, FailedCheck
from .rules import bucket_for, lookup_rule, severity_rank


def _highest(severities: List[str]) -> str:
    best = severities[0]
    for s in severities[1:]:
        if severity_rank(s) > severity_rank(best):
            best = s
    return best


def auto_fixable(potentials: Iterable[str]) -> str:
    """'yes' when every potential is high, 'no' when none is high or medium, else 'partial'."""
    p = list(potentials)
    if p and all(x == "high" for x in p):
        return "yes"
    if not any(x in ("high", "medium") for x in p):
        return "no"
    return "partial"


def aggregate_buckets(checks: Iterable[FailedCheck]) -> List[Bucket]:
    """
    Group failed checks into remediation buckets.

    Buckets are ordered by highest severity, then total failures (both descending);
    ties keep the order in which buckets were first seen.
    """
    acc: Dict[str, Dict[str, list]] = {}
    totals: Dict[str, int] = {}

    for check in checks:
        name = bucket_for(check.check_id)
        meta = lookup_rule(check.check_id)
        entry = acc.setdefault(name, {"rules": [], "severities": [], "fixes": []})
        entry["rules"].append(check.title)
        entry["severities"].append(meta.severity)
        entry["fixes"].append(meta.auto_fix_potential)
        totals[name] = totals.get(name, 0) + check.fail_count

    buckets = [
        Bucket(
            bucket_name=name,
            related_rules=entry["rules"],
            total_failures=totals[name],
            highest_severity=_highest(entry["severities"]),
            auto_fixable=auto_fixable(entry["fixes"]),
        )
        for name, entry in acc.items()
    ]
    # sorted() is stable, so discovery order survives full ties
    return sorted(buckets, key=lambda b: (-severity_rank(b.highest_severity), -b.total_failures))
