"""PlainWeb Audit Package

Modules:
- urls: URL canonicalization and store keys.
- prune: generic tree pruning / key stripping.
- reducer: failed-check extraction from the raw Lighthouse result.
- rules: static WCAG rule tables and the rule classifier.
- buckets: remediation bucket aggregation.
- narrative: template risk narrative.
- lighthouse: audit engines (local Chrome + Lighthouse CLI, PageSpeed Insights).
- assembler: outgoing tree sanitization and report assembly.
- store: cached report persistence.
- runner: per-request orchestration.
"""
__all__ = ['AccessibilityAuditRunner']

from .runner import AccessibilityAuditRunner  # noqa: E402
