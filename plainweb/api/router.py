# plainweb/api/router.py
from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi.responses import JSONResponse

from ..audit.lighthouse import build_audit_runner
from ..audit.runner import AccessibilityAuditRunner
from ..audit.store import ReportStore
from ..database import SessionLocal
from ..errors import AuditRunFailed, InvalidURL
from ..schemas import AuditRequest, AuditResponse, HealthOut
from ..services.ai_summary import build_text_generator
from ..settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache()
def get_audit_runner() -> AccessibilityAuditRunner:
    s = get_settings()
    return AccessibilityAuditRunner(
        engine=build_audit_runner(s),
        store=ReportStore(SessionLocal),
        generator=build_text_generator(s),
        cache_max_age_days=s.CACHE_MAX_AGE_DAYS,
        # outer guard; the engine enforces its own timeout first
        audit_timeout=s.AUDIT_TIMEOUT + 30.0,
    )


@router.get("/healthz", response_model=HealthOut)
async def healthz():
    return {"ok": True, "service": "plainweb-audit"}


@router.post("/audit")
async def audit(
    body: AuditRequest,
    background: BackgroundTasks,
    runner: AccessibilityAuditRunner = Depends(get_audit_runner),
):
    try:
        outcome = await runner.audit(body.url, audience=body.audience, force=body.force)
    except InvalidURL as e:
        return JSONResponse(e.to_dict(), status_code=400)
    except AuditRunFailed as e:
        logger.error("Audit failed for %s: %s", body.url, e)
        return JSONResponse(e.to_dict(), status_code=502)

    if not outcome.cached:
        # Written after the response; a failed write is only logged.
        background.add_task(runner.persist, outcome)

    payload = AuditResponse(
        cached=outcome.cached,
        cached_at=outcome.cached_at.isoformat() if outcome.cached_at else None,
        report=outcome.report,
    )
    return payload.model_dump(by_alias=True)
