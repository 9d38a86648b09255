from __future__ import annotations
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from sqlalchemy import delete
from sqlalchemy.orm import Session

from .models import WorkbookRecord
from .settings import settings

logger = logging.getLogger(__name__)


def retention_threshold(now: Optional[datetime] = None) -> datetime:
	# Timestamps are stored naive in UTC
	now = now or datetime.now(timezone.utc).replace(tzinfo=None)
	return now - timedelta(days=settings.session_retention_days)


def purge_stale_sessions(db: Session, *, now: Optional[datetime] = None) -> int:
	threshold = retention_threshold(now)
	res = db.execute(delete(WorkbookRecord).where(WorkbookRecord.updated_at < threshold))
	db.commit()
	removed = res.rowcount or 0
	if removed:
		logger.info("Purged %d workbook sessions idle since before %s", removed, threshold.isoformat())
	return removed
