from __future__ import annotations
import logging
from typing import Awaitable, Callable, Optional

from .settings import settings

logger = logging.getLogger(__name__)

KeySelector = Callable[[], Awaitable[Optional[str]]]


class CredentialSession:
	"""Process-wide gate in front of the generation boundary.

	Consulted when a session starts and again whenever Gemini rejects the key.
	"""

	def __init__(self, api_key: Optional[str] = None) -> None:
		self._api_key = (api_key or "").strip() or None

	@property
	def api_key(self) -> Optional[str]:
		return self._api_key

	def has_credential(self) -> bool:
		return self._api_key is not None

	async def request_credential_selection(self, selector: KeySelector) -> None:
		selected = await selector()
		self._api_key = (selected or "").strip() or None
		logger.info("API key selection finished (configured=%s)", self.has_credential())

	def clear(self) -> None:
		self._api_key = None


_credentials: Optional[CredentialSession] = None


def get_credentials() -> CredentialSession:
	global _credentials
	if _credentials is None:
		_credentials = CredentialSession(settings.gemini_api_key)
	return _credentials
