import asyncio
import logging
from datetime import datetime
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .db import SessionLocal, init_db
from .cleanup import purge_stale_sessions
from .credentials import get_credentials
from .settings import settings
from .routers import credentials, workbooks

logger = logging.getLogger(__name__)


def setup_logging() -> None:
	logging.basicConfig(
		level=getattr(logging, settings.log_level.upper(), logging.INFO),
		format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
	)


app = FastAPI(title="Mastery Blueprint API")
app.add_middleware(
	CORSMiddleware,
	allow_origins=["*"],
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)
app.include_router(credentials.router)
app.include_router(workbooks.router)

@app.get("/info")
def root():
	return {"status": "ok", "gemini_configured": get_credentials().has_credential()}


def _purge_once(now: Optional[datetime] = None) -> None:
	db = SessionLocal()
	try:
		purge_stale_sessions(db, now=now)
		workbooks.evict_idle_sessions(now=now)
	except Exception:
		logger.exception("Session cleanup failed")
	finally:
		db.close()


async def _cleanup_watcher():
	# Startup already purged once; repeat daily
	while True:
		await asyncio.sleep(24 * 60 * 60)
		_purge_once()

_cleanup_task = None

@app.on_event("startup")
async def startup_event():
	global _cleanup_task
	setup_logging()
	init_db()
	_purge_once()
	_cleanup_task = asyncio.create_task(_cleanup_watcher())

@app.on_event("shutdown")
async def shutdown_event():
	if _cleanup_task is not None:
		_cleanup_task.cancel()
