# plainweb/audit/reducer.py
"""
Audit Reducer: turns the raw Lighthouse result ("lhr") into failed checks.

The raw tree is never mutated. Where the evidence list has to be shortened,
a simplified copy is produced instead.
"""
import logging
from typing import Any, Dict, Iterator, List, Optional

from pydantic import ValidationError

from ..schemas import CategorizedChecks, CheckRecord, EvidenceItem, FailedCheck, ReducedCheck

logger = logging.getLogger(__name__)

ACCESSIBILITY_CATEGORY = "accessibility"
MAX_EVIDENCE_ITEMS = 5
SKIPPED_DISPLAY_MODES = frozenset({"notApplicable", "manual", "informative"})


# ============================================================
# Raw tree access
# ============================================================

def _checks_map(lhr: Dict[str, Any]) -> Dict[str, Any]:
    # Lighthouse calls them "audits"; some producers use "checks".
    checks = lhr.get("checks")
    if not isinstance(checks, dict):
        checks = lhr.get("audits")
    return checks if isinstance(checks, dict) else {}


def category_check_ids(lhr: Dict[str, Any], category: str = ACCESSIBILITY_CATEGORY) -> List[str]:
    """Check ids referenced by a category, in raw-tree order."""
    cat = (lhr.get("categories") or {}).get(category)
    if not isinstance(cat, dict):
        return []
    refs = cat.get("auditRefs") or cat.get("checkRefs") or []
    ids: List[str] = []
    for ref in refs:
        if isinstance(ref, str):
            ids.append(ref)
        elif isinstance(ref, dict) and isinstance(ref.get("id"), str):
            ids.append(ref["id"])
    return ids


def iter_category_checks(lhr: Dict[str, Any], category: str = ACCESSIBILITY_CATEGORY) -> Iterator[CheckRecord]:
    """Yield the CheckRecords referenced by ``category``, skipping absent or malformed ones."""
    checks = _checks_map(lhr)
    for check_id in category_check_ids(lhr, category):
        raw = checks.get(check_id)
        if not isinstance(raw, dict):
            continue
        try:
            yield CheckRecord.model_validate({**raw, "id": check_id, "title": raw.get("title") or check_id})
        except ValidationError as e:
            logger.warning("Skipping malformed check %s: %s", check_id, e.errors()[:1])


# ============================================================
# Classification of a single check
# ============================================================

def is_scoreable(check: CheckRecord) -> bool:
    return check.score is not None and check.score_display_mode not in SKIPPED_DISPLAY_MODES


def is_failed(check: CheckRecord) -> bool:
    return is_scoreable(check) and check.score != 1


def simplify_items(items: Any, limit: int = MAX_EVIDENCE_ITEMS) -> List[EvidenceItem]:
    """Keep the first ``limit`` evidence items, reduced to node label, selector and explanation."""
    if not isinstance(items, list):
        return []
    out: List[EvidenceItem] = []
    for item in items[:limit]:
        item = item if isinstance(item, dict) else {}
        node = item.get("node") if isinstance(item.get("node"), dict) else {}
        out.append(
            EvidenceItem(
                node=node.get("nodeLabel") or "unknown",
                selector=node.get("selector") or None,
                explanation=item.get("explanation") or item.get("failureReason") or None,
            )
        )
    return out


def reduce_check(check: CheckRecord) -> ReducedCheck:
    return ReducedCheck(
        id=check.id,
        title=check.title,
        description=check.description,
        score=check.score,
        score_display_mode=check.score_display_mode,
        fail_count=len(check.items),
        items=simplify_items(check.items),
    )


def simplified_details(check: CheckRecord) -> Optional[Dict[str, Any]]:
    """A copy of the check's details with ``items`` replaced by the simplified list."""
    if check.details is None:
        return None
    details = dict(check.details)
    if "items" in details:
        details["items"] = [i.model_dump() for i in simplify_items(check.items)]
    return details


# ============================================================
# Reducer entry points
# ============================================================

def reduce_failed_checks(lhr: Dict[str, Any], category: str = ACCESSIBILITY_CATEGORY) -> List[FailedCheck]:
    """
    Failed checks of ``category`` in raw-tree order.

    Passing (score == 1), unscoreable (score is None) and manual /
    notApplicable / informative checks are skipped.
    """
    failed: List[FailedCheck] = []
    for check in iter_category_checks(lhr, category):
        if not is_failed(check):
            continue
        failed.append(FailedCheck(check_id=check.id, title=check.title, fail_count=len(check.items)))
    return failed


def categorize_checks(lhr: Dict[str, Any], category: str = ACCESSIBILITY_CATEGORY) -> CategorizedChecks:
    """
    Split every check of ``category`` into failed / passed / manual.

    notApplicable checks and unscoreable non-manual checks are left out.
    """
    failed: List[ReducedCheck] = []
    passed: List[ReducedCheck] = []
    manual: List[ReducedCheck] = []
    for check in iter_category_checks(lhr, category):
        if check.score_display_mode == "manual":
            manual.append(reduce_check(check))
        elif not is_scoreable(check):
            continue
        elif check.score == 1:
            passed.append(reduce_check(check))
        else:
            failed.append(reduce_check(check))
    return CategorizedChecks(failed=failed, passed=passed, manual=manual)


def accessibility_score(lhr: Dict[str, Any], category: str = ACCESSIBILITY_CATEGORY) -> int:
    """Pass-rate percentage over scoreable checks; 100 when there are none."""
    total = 0
    failed = 0
    for check in iter_category_checks(lhr, category):
        if not is_scoreable(check):
            continue
        total += 1
        if check.score != 1:
            failed += 1
    return pass_rate(total, failed)


def pass_rate(total_checks: int, failed_checks: int) -> int:
    if total_checks <= 0:
        return 100
    return round(100 * (total_checks - failed_checks) / total_checks)
