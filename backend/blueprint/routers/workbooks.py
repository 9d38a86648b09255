from __future__ import annotations
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..cleanup import retention_threshold
from ..credentials import CredentialSession, get_credentials
from ..db import get_db
from ..errors import AuthInvalid, GenerationFailed, GenerationInProgress, WorkbookNotReady
from ..generation import WorkbookGenerator, generate_workbook
from ..models import WorkbookRecord
from ..progress import ProgressAction, ProgressState, SetDayReflection, ToggleDayHabit
from ..session import AppState, WorkbookSession
from ..views import TABS, render_tab, summary
from ..workbook import WORKBOOK_DAYS, WorkbookDocument


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["workbooks"])


class GenerateRequest(BaseModel):
    topic: str = Field(min_length=1, max_length=512)


class ProgressUpdate(BaseModel):
    action: ProgressAction


_sessions: Dict[str, WorkbookSession] = {}


def get_generator() -> WorkbookGenerator:
    return generate_workbook


def _session_payload(session: WorkbookSession) -> Dict[str, Any]:
    return {
        "session_id": session.session_id,
        "state": session.state.value,
        "topic": session.topic,
        "title": session.document.WorkbookTitle if session.document else None,
        "error": session.error,
    }


def _persist(db: Session, session: WorkbookSession) -> None:
    if session.document is None or session.progress is None:
        return
    row = db.get(WorkbookRecord, session.session_id)
    if not row:
        row = WorkbookRecord(session_id=session.session_id)
        db.add(row)
    row.topic = session.topic
    row.title = session.document.WorkbookTitle
    row.document_json = session.document.model_dump_json()
    row.progress_json = session.progress.model_dump_json(by_alias=True)
    db.commit()


def _forget(db: Session, session_id: str) -> None:
    row = db.get(WorkbookRecord, session_id)
    if row:
        db.delete(row)
        db.commit()


def _load_session(session_id: str, db: Session) -> WorkbookSession:
    session = _sessions.get(session_id)
    if session:
        return session
    row = db.get(WorkbookRecord, session_id)
    if not row:
        raise HTTPException(status_code=404, detail="Session not found")
    # Process restarted since the last transition; resume in VIEWING
    session = WorkbookSession.restore(
        session_id,
        row.topic,
        WorkbookDocument.model_validate_json(row.document_json),
        ProgressState.model_validate_json(row.progress_json),
        updated_at=row.updated_at,
    )
    _sessions[session_id] = session
    logger.info("Restored workbook session %s from storage", session_id)
    return session


def evict_idle_sessions(*, now: Optional[datetime] = None) -> int:
    """Drop registry entries idle past the retention window, mirroring the row purge."""
    threshold = retention_threshold(now)
    stale = [
        session_id
        for session_id, session in _sessions.items()
        if session.updated_at < threshold and session.state is not AppState.GENERATING
    ]
    for session_id in stale:
        del _sessions[session_id]
    if stale:
        logger.info("Evicted %d idle workbook sessions", len(stale))
    return len(stale)


def _require_viewing(session: WorkbookSession) -> None:
    if session.state is not AppState.VIEWING or session.document is None or session.progress is None:
        raise HTTPException(status_code=409, detail=f"No workbook to show (state {session.state.value})")


def _validate_day(day: int) -> None:
    if day < 1 or day > WORKBOOK_DAYS:
        raise HTTPException(status_code=422, detail=f"day must be between 1 and {WORKBOOK_DAYS}")


@router.post("", status_code=201)
async def create_session(credentials: CredentialSession = Depends(get_credentials)):
    session = WorkbookSession()
    session.start(credentials)
    _sessions[session.session_id] = session
    return _session_payload(session)


@router.get("/{session_id}")
async def get_session(session_id: str, db: Session = Depends(get_db)):
    return _session_payload(_load_session(session_id, db))


@router.post("/{session_id}/generate")
async def generate(
    session_id: str,
    req: GenerateRequest,
    credentials: CredentialSession = Depends(get_credentials),
    generator: WorkbookGenerator = Depends(get_generator),
    db: Session = Depends(get_db),
):
    session = _load_session(session_id, db)
    topic = req.topic.strip()
    if not topic:
        raise HTTPException(status_code=400, detail="topic is required")
    if session.state is AppState.AUTH_REQUIRED and credentials.has_credential():
        session.credential_selected()
    try:
        document = await session.generate(topic, credentials, generator)
    except GenerationInProgress:
        raise HTTPException(status_code=409, detail="A workbook is already being generated")
    except AuthInvalid:
        # A rejected key must be selected again before the next attempt
        credentials.clear()
        _forget(db, session_id)
        raise HTTPException(status_code=401, detail="API key missing or invalid; select a key to continue")
    except GenerationFailed:
        # ERROR hides the previous workbook, so its row must not restore it
        _forget(db, session_id)
        raise HTTPException(status_code=502, detail=session.error)
    _persist(db, session)
    return {**_session_payload(session), "workbook": document.model_dump(mode="json")}


@router.post("/{session_id}/reset")
async def reset(session_id: str, db: Session = Depends(get_db)):
    session = _load_session(session_id, db)
    if session.state is AppState.GENERATING:
        raise HTTPException(status_code=409, detail="A workbook is already being generated")
    session.reset()
    _forget(db, session_id)
    return _session_payload(session)


@router.get("/{session_id}/workbook")
async def get_workbook(session_id: str, db: Session = Depends(get_db)):
    session = _load_session(session_id, db)
    _require_viewing(session)
    return session.document.model_dump(mode="json")


@router.get("/{session_id}/progress")
async def get_progress(session_id: str, db: Session = Depends(get_db)):
    session = _load_session(session_id, db)
    _require_viewing(session)
    return session.progress.model_dump(mode="json", by_alias=True)


@router.post("/{session_id}/progress")
async def update_progress(session_id: str, req: ProgressUpdate, db: Session = Depends(get_db)):
    session = _load_session(session_id, db)
    action = req.action
    if isinstance(action, (ToggleDayHabit, SetDayReflection)):
        _validate_day(action.day)
    if isinstance(action, ToggleDayHabit) and action.habit_index < 0:
        raise HTTPException(status_code=422, detail="habit_index must be >= 0")
    try:
        progress = session.apply(action)
    except WorkbookNotReady:
        raise HTTPException(status_code=409, detail=f"No workbook to update (state {session.state.value})")
    _persist(db, session)
    return progress.model_dump(mode="json", by_alias=True)


@router.get("/{session_id}/views/{tab}")
async def get_view(
    session_id: str,
    tab: str,
    day: int = Query(default=1, ge=1, le=WORKBOOK_DAYS),
    db: Session = Depends(get_db),
):
    if tab not in TABS:
        raise HTTPException(status_code=404, detail=f"tab must be one of {list(TABS)}")
    session = _load_session(session_id, db)
    _require_viewing(session)
    return render_tab(tab, session.document, session.progress, day=day)


@router.get("/{session_id}/summary")
async def get_summary(session_id: str, db: Session = Depends(get_db)):
    session = _load_session(session_id, db)
    _require_viewing(session)
    return summary(session.document, session.progress)
