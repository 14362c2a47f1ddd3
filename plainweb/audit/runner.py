# plainweb/audit/runner.py
"""
Per-request orchestration of an accessibility audit:

normalize URL -> cache lookup -> audit engine -> reduce -> classify ->
bucket -> narrative -> prose summaries -> assembled report.

Persistence is handed back to the caller (``persist_report``) so it can run
after the response has been sent.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional

from ..errors import AuditRunFailed, StoreFailed
from ..services.ai_summary import TextGenerator, generate_expert_guide, generate_owner_summary
from .assembler import assemble_report
from .buckets import aggregate_buckets
from .narrative import build_narrative
from .reducer import accessibility_score, categorize_checks, reduce_failed_checks
from .rules import classify_issues
from .store import ReportStore, is_fresh
from .urls import audit_target, normalize_url, url_key

logger = logging.getLogger(__name__)

AuditEngine = Callable[[str], Awaitable[Dict[str, Any]]]

AUDIENCE_FIELDS = {
    "owner": ("score", "ownerSummary"),
    "developer": ("expertGuide",),
    "all": ("score", "ownerSummary", "expertGuide"),
}


@dataclass
class AuditOutcome:
    url: str
    key: str
    report: Dict[str, Any]
    cached: bool = False
    cached_at: Optional[datetime] = None


def covers_audience(report: Dict[str, Any], audience: str) -> bool:
    return all(f in report for f in AUDIENCE_FIELDS.get(audience, ()))


async def build_report(
    url: str,
    lhr: Dict[str, Any],
    generator: Optional[TextGenerator],
    audience: str = "all",
) -> Dict[str, Any]:
    """Run the deterministic pipeline on ``lhr`` and add the requested prose."""
    failed = reduce_failed_checks(lhr)
    issues = classify_issues(failed)
    buckets = aggregate_buckets(failed)
    narrative = build_narrative(buckets)

    want_owner = audience in ("owner", "all")
    want_dev = audience in ("developer", "all")
    score = accessibility_score(lhr) if want_owner else None
    categorized = categorize_checks(lhr) if want_dev else None

    # Summaries are independent; each falls back on its own.
    owner_job = asyncio.to_thread(generate_owner_summary, generator, url, narrative, score) if want_owner else None
    dev_job = asyncio.to_thread(generate_expert_guide, generator, url, categorized) if want_dev else None
    jobs = [j for j in (owner_job, dev_job) if j is not None]
    results = iter(await asyncio.gather(*jobs))
    owner_summary = next(results) if want_owner else None
    expert_guide = next(results) if want_dev else None

    return assemble_report(
        url=url,
        lhr=lhr,
        issues=issues,
        buckets=buckets,
        narrative=narrative,
        score=score,
        owner_summary=owner_summary,
        expert_guide=expert_guide,
        checks=categorized,
    )


def persist_report(store: Optional[ReportStore], key: str, url: str, report: Dict[str, Any]) -> bool:
    """Write ``report`` to the store; failures are logged, never raised."""
    if store is None:
        return False
    try:
        store.set(key, url, report)
        return True
    except StoreFailed as e:
        logger.error("Persisting report for %s failed: %s", url, e)
    except Exception:
        logger.exception("Unexpected error persisting report for %s", url)
    return False


class AccessibilityAuditRunner:
    """Wires the audit engine, text generator and report store for one service."""

    def __init__(
        self,
        engine: AuditEngine,
        store: Optional[ReportStore] = None,
        generator: Optional[TextGenerator] = None,
        cache_max_age_days: int = 7,
        audit_timeout: Optional[float] = None,
    ):
        self.engine = engine
        self.store = store
        self.generator = generator
        self.cache_max_age_days = cache_max_age_days
        self.audit_timeout = audit_timeout

    def _cached(self, key: str, audience: str) -> Optional[AuditOutcome]:
        if self.store is None:
            return None
        try:
            hit = self.store.get(key)
        except StoreFailed as e:
            logger.error("Cache lookup failed, auditing fresh: %s", e)
            return None
        if hit is None:
            logger.info("Cache miss %s", key[:12])
            return None
        if not is_fresh(hit.cached_at, self.cache_max_age_days):
            logger.info("Cache stale %s (cached_at=%s)", key[:12], hit.cached_at.isoformat())
            return None
        if not covers_audience(hit.report, audience):
            logger.info("Cached report %s lacks fields for audience=%s", key[:12], audience)
            return None
        return AuditOutcome(url=hit.report.get("url", ""), key=key, report=hit.report,
                            cached=True, cached_at=hit.cached_at)

    async def _run_engine(self, target: str) -> Dict[str, Any]:
        try:
            if self.audit_timeout:
                lhr = await asyncio.wait_for(self.engine(target), timeout=self.audit_timeout)
            else:
                lhr = await self.engine(target)
        except asyncio.TimeoutError as e:
            raise AuditRunFailed(f"Audit timed out after {self.audit_timeout:.0f}s") from e
        if not isinstance(lhr, dict) or not lhr:
            raise AuditRunFailed("No lighthouse report generated")
        return lhr

    async def audit(self, url: str, audience: str = "all", force: bool = False) -> AuditOutcome:
        """
        Audit ``url`` for ``audience`` ('owner', 'developer' or 'all').

        Raises InvalidURL before any work for unusable input and AuditRunFailed
        when the engine produces no report. Prose and cache problems never raise.
        """
        normalized = normalize_url(url)
        key = url_key(normalized)

        if not force:
            hit = self._cached(key, audience)
            if hit is not None:
                logger.info("Cache hit for %s", normalized)
                return hit

        started = time.perf_counter()
        logger.info("Audit started: %s", normalized)
        lhr = await self._run_engine(audit_target(url))
        report = await build_report(normalized, lhr, self.generator, audience)
        logger.info("Audit finished: %s (%d issues, %.1fs)", normalized, len(report["issues"]),
                    time.perf_counter() - started)
        return AuditOutcome(url=normalized, key=key, report=report)

    def persist(self, outcome: AuditOutcome) -> bool:
        if outcome.cached:
            return False
        return persist_report(self.store, outcome.key, outcome.url, outcome.report)
