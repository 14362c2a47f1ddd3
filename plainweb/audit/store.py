# plainweb/audit/store.py
"""
Persistence collaborator: key/value report store on SQLAlchemy.

Staleness is the caller's concern; see ``is_fresh``.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ..errors import StoreFailed
from ..models import AuditCache

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedReport:
    report: Dict[str, Any]
    cached_at: datetime


def _aware(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone=True columns
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def is_fresh(cached_at: datetime, max_age_days: int, now: Optional[datetime] = None) -> bool:
    now = now or datetime.now(timezone.utc)
    return _aware(cached_at) > now - timedelta(days=max_age_days)


class ReportStore:
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def get(self, key: str) -> Optional[CachedReport]:
        try:
            with self.session_factory() as db:
                row = db.get(AuditCache, key)
                if row is None:
                    return None
                return CachedReport(report=dict(row.report or {}), cached_at=_aware(row.cached_at))
        except SQLAlchemyError as e:
            raise StoreFailed(f"Could not read cached report {key[:12]}: {e}") from e

    def set(self, key: str, url: str, report: Dict[str, Any], cached_at: Optional[datetime] = None) -> None:
        """Insert or overwrite the report stored under ``key``."""
        cached_at = cached_at or datetime.now(timezone.utc)
        try:
            with self.session_factory() as db:
                row = db.get(AuditCache, key)
                if row is None:
                    db.add(AuditCache(key=key, url=url, report=report, cached_at=cached_at))
                else:
                    row.url = url
                    row.report = report
                    row.cached_at = cached_at
                db.commit()
        except SQLAlchemyError as e:
            raise StoreFailed(f"Could not store report {key[:12]}: {e}") from e
        logger.info("Stored report for %s", url)
