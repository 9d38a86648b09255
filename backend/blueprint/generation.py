from __future__ import annotations
import logging
from typing import Awaitable, Callable, Optional

from .credentials import CredentialSession
from .errors import AuthInvalid, GenerationFailed
from .gemini_client import GeminiAuthError, GeminiClient, GeminiError
from .settings import settings
from .workbook import WORKBOOK_DAYS, WORKBOOK_RESPONSE_SCHEMA, WorkbookDocument, parse_workbook

logger = logging.getLogger(__name__)

WorkbookGenerator = Callable[[str, CredentialSession], Awaitable[WorkbookDocument]]


def build_workbook_prompt(topic: str) -> str:
	return (
		"You are an expert productivity coach.\n"
		f"Create a complete \"Mastery Blueprint Workbook\" for a user who wants to focus on: \"{topic}\".\n"
		f"The workbook should be designed for {WORKBOOK_DAYS} days of consistent action.\n"
		"Make the language motivating, simple, and beginner-friendly.\n"
		f"Ensure specific advice related to \"{topic}\" is included in the milestones and objectives.\n\n"
		"IMPORTANT FORMATTING RULES:\n"
		"- Format ALL lists (Objectives, Milestones, Challenges, Habit Templates, Rewards) using bullet points (starting with \"- \" or \"* \").\n"
		"- Include specific, actionable activities in these lists that the user can physically do and check off.\n\n"
		"Return ONLY the raw JSON object."
	)


async def generate_workbook(
	topic: str,
	credentials: CredentialSession,
	*,
	client: Optional[GeminiClient] = None,
) -> WorkbookDocument:
	"""Produce a workbook for ``topic`` or raise AuthInvalid / GenerationFailed."""
	topic = (topic or "").strip()
	if not topic:
		raise ValueError("topic is required")
	if not credentials.has_credential():
		raise AuthInvalid("no API key selected")
	owns_client = client is None
	if client is None:
		# Built per call so a freshly selected key is always used
		client = GeminiClient(api_key=credentials.api_key)
	try:
		raw = await client.generate_json(
			build_workbook_prompt(topic),
			response_schema=WORKBOOK_RESPONSE_SCHEMA,
			thinking_budget=settings.workbook_thinking_budget,
		)
	except GeminiAuthError as err:
		logger.warning("Gemini rejected the API key for topic %r: %s", topic, err)
		raise AuthInvalid(str(err)) from err
	except GeminiError as err:
		logger.exception("Gemini API error for topic %r", topic)
		raise GenerationFailed(str(err)) from err
	finally:
		if owns_client:
			await client.aclose()
	try:
		document = parse_workbook(raw)
	except GenerationFailed:
		logger.exception("Discarding malformed workbook for topic %r", topic)
		raise
	logger.info("Generated workbook %r for topic %r", document.WorkbookTitle, topic)
	return document
