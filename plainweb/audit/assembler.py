# plainweb/audit/assembler.py
"""
Report sanitization and assembly.

The outgoing tree is built from a deep copy of the raw Lighthouse result so
the reducer and the sanitizer never share mutable state.
"""
import copy
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..schemas import Bucket, CategorizedChecks, CheckRecord, EnrichedIssue, Narrative
from .prune import prune_empty, strip_key, strip_keys
from .reducer import simplified_details

EXCLUDED_CHECKS = frozenset({
    "screenshot-thumbnails",
    "final-screenshot",
    "full-page-screenshot",
    "errors-in-console",
})
HEAVY_TOP_LEVEL_KEYS = ("i18n", "categoryGroups", "entities", "timing", "fullPageScreenshot", "stackPacks")
DESCRIPTION_KEY = "description"
EVIDENCE_KEYS = frozenset({"items", DESCRIPTION_KEY})


def _sanitize_check(check_id: str, raw: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(raw)
    try:
        record = CheckRecord.model_validate({**raw, "id": check_id, "title": raw.get("title") or check_id})
    except ValidationError:
        return out
    details = simplified_details(record)
    if details is not None:
        out["details"] = details
    return out


def sanitize_tree(lhr: Dict[str, Any]) -> Dict[str, Any]:
    """
    Reduce a raw Lighthouse result to the tree returned to callers.

    Drops screenshot/console checks and passing checks, simplifies evidence,
    removes heavy top-level sections, prunes empty values, removes the
    performance category and strips every description field.
    """
    tree = copy.deepcopy(lhr)

    checks_key = "audits" if isinstance(tree.get("audits"), dict) else "checks"
    checks = tree.get(checks_key)
    if isinstance(checks, dict):
        kept = {}
        for check_id, raw in checks.items():
            if check_id in EXCLUDED_CHECKS or not isinstance(raw, dict):
                continue
            if raw.get("score") == 1:
                continue
            kept[check_id] = _sanitize_check(check_id, raw)
        tree[checks_key] = kept

    for key in HEAVY_TOP_LEVEL_KEYS:
        tree.pop(key, None)

    pruned = prune_empty(tree) or {}
    categories = pruned.get("categories")
    if isinstance(categories, dict):
        categories.pop("performance", None)
        if not categories:
            pruned.pop("categories")
    return strip_key(pruned, DESCRIPTION_KEY)


def light_checks(categorized: CategorizedChecks) -> Dict[str, List[Dict[str, Any]]]:
    """Failed / passed / manual check listings without per-item evidence."""
    return strip_keys(categorized.dump(), EVIDENCE_KEYS)


def assemble_report(
    *,
    url: str,
    lhr: Dict[str, Any],
    issues: List[EnrichedIssue],
    buckets: List[Bucket],
    narrative: Narrative,
    score: Optional[int] = None,
    owner_summary: Optional[str] = None,
    expert_guide: Optional[str] = None,
    checks: Optional[CategorizedChecks] = None,
    created_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Compose the report as plain JSON-compatible values."""
    created_at = created_at or datetime.now(timezone.utc)
    report: Dict[str, Any] = {
        "url": url,
        "prunedTree": sanitize_tree(lhr),
        "issues": [i.dump() for i in issues],
        "buckets": {"buckets": [b.dump() for b in buckets]},
        "narrative": narrative.text,
        "risk": narrative.model_dump(by_alias=True, mode="json", exclude={"text"}),
        "createdAt": created_at.isoformat(),
    }
    if score is not None:
        report["score"] = score
    if owner_summary is not None:
        report["ownerSummary"] = owner_summary
    if expert_guide is not None:
        report["expertGuide"] = expert_guide
    if checks is not None:
        report["checks"] = light_checks(checks)
    return report
