from __future__ import annotations
import asyncio
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from .credentials import CredentialSession
from .errors import AuthInvalid, GenerationFailed, GenerationInProgress, WorkbookNotReady
from .generation import WorkbookGenerator
from .progress import ProgressAction, ProgressState, apply_action
from .workbook import WorkbookDocument


GENERATION_ERROR_MESSAGE = "Failed to generate workbook. Please check your connection or try again."


def _utcnow() -> datetime:
	return datetime.now(timezone.utc).replace(tzinfo=None)


class AppState(str, Enum):
	IDLE = "IDLE"
	AUTH_REQUIRED = "AUTH_REQUIRED"
	GENERATING = "GENERATING"
	VIEWING = "VIEWING"
	ERROR = "ERROR"


class WorkbookSession:
	"""One workbook and its progress, replaced together on reset or regeneration."""

	def __init__(self, session_id: Optional[str] = None) -> None:
		self.session_id = session_id or uuid.uuid4().hex
		self.state = AppState.IDLE
		self.topic: Optional[str] = None
		self.document: Optional[WorkbookDocument] = None
		self.progress: Optional[ProgressState] = None
		self.error: Optional[str] = None
		# Last transition, naive UTC like the stored rows
		self.updated_at = _utcnow()

	@classmethod
	def restore(
		cls,
		session_id: str,
		topic: Optional[str],
		document: WorkbookDocument,
		progress: ProgressState,
		updated_at: Optional[datetime] = None,
	) -> "WorkbookSession":
		session = cls(session_id)
		session.topic = topic
		session.document = document
		session.progress = progress
		session.state = AppState.VIEWING
		if updated_at is not None:
			session.updated_at = updated_at
		return session

	def start(self, credentials: CredentialSession) -> AppState:
		if not credentials.has_credential():
			self.state = AppState.AUTH_REQUIRED
		self.updated_at = _utcnow()
		return self.state

	def credential_selected(self) -> AppState:
		self.state = AppState.IDLE
		self.updated_at = _utcnow()
		return self.state

	async def generate(self, topic: str, credentials: CredentialSession, generator: WorkbookGenerator) -> WorkbookDocument:
		if self.state is AppState.GENERATING:
			raise GenerationInProgress("a workbook is already being generated")
		if not topic or not topic.strip():
			raise ValueError("topic must not be empty")
		previous = self.state
		self.state = AppState.GENERATING
		self.error = None
		try:
			document = await generator(topic, credentials)
		except AuthInvalid:
			self.state = AppState.AUTH_REQUIRED
			raise
		except asyncio.CancelledError:
			self.state = previous
			raise
		except GenerationFailed:
			self.state = AppState.ERROR
			self.error = GENERATION_ERROR_MESSAGE
			raise
		except Exception as err:
			self.state = AppState.ERROR
			self.error = GENERATION_ERROR_MESSAGE
			raise GenerationFailed(str(err)) from err
		finally:
			self.updated_at = _utcnow()
		self.topic = topic.strip()
		self.document = document
		self.progress = ProgressState()
		self.state = AppState.VIEWING
		return document

	def reset(self) -> AppState:
		self.state = AppState.IDLE
		self.topic = None
		self.document = None
		self.progress = None
		self.error = None
		self.updated_at = _utcnow()
		return self.state

	def apply(self, action: ProgressAction) -> ProgressState:
		if self.state is not AppState.VIEWING or self.progress is None:
			raise WorkbookNotReady("no workbook is being viewed")
		self.progress = apply_action(self.progress, action)
		self.updated_at = _utcnow()
		return self.progress
