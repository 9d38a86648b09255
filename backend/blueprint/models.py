from __future__ import annotations
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, Text
from .db import Base


def _utcnow() -> datetime:
	return datetime.now(timezone.utc).replace(tzinfo=None)


class WorkbookRecord(Base):
	__tablename__ = "workbook_sessions"
	session_id = Column(String(64), primary_key=True, index=True)
	topic = Column(String(512), nullable=True)
	title = Column(String(512), nullable=True)
	document_json = Column(Text, nullable=False)  # WorkbookDocument as returned by the model
	progress_json = Column(Text, nullable=False)  # ProgressState snapshot after the latest transition
	created_at = Column(DateTime, default=_utcnow, nullable=False)
	updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)
