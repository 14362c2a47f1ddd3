# plainweb/models.py
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, JSON, String

from .database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditCache(Base):
    """One cached report per normalized URL, keyed by its sha256 hash."""

    __tablename__ = "audit_cache"

    key = Column(String(64), primary_key=True)
    url = Column(String(2048), nullable=False, index=True)
    report = Column(JSON, nullable=False, default=dict)
    cached_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)

    def __repr__(self):
        return f"<AuditCache(key='{self.key[:12]}', url='{self.url}', cached_at={self.cached_at})>"
