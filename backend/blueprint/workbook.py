import json
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import GenerationFailed


WORKBOOK_DAYS = 30


class _Section(BaseModel):
	model_config = ConfigDict(frozen=True)


class GoalSettingSection(_Section):
	big_goals: str
	milestones: str
	thirty_day_objectives: str


class MonthlyPlanner(_Section):
	overview_page: str
	habit_list_templates: str


class WeeklyPlanner(_Section):
	week_template: str
	habit_tracker: str
	weekly_reflection: str


class DailyPages(_Section):
	morning_prompt: str
	evening_prompt: str
	habit_checklist: str
	motivation_quotes: List[str] = Field(min_length=1)


class Challenges(_Section):
	seven_day_challenge: str
	twenty_one_day_challenge: str


class ReviewSection(_Section):
	progress_summary: str
	reward_system: str


class WorkbookDocument(BaseModel):
	"""The generated workbook. Replaced wholesale on regeneration, never patched."""

	model_config = ConfigDict(frozen=True)

	WorkbookTitle: str
	Introduction: str
	HowToUse: str
	GoalSettingSection: GoalSettingSection
	MonthlyPlanner: MonthlyPlanner
	WeeklyPlanner: WeeklyPlanner
	DailyPages: DailyPages
	Challenges: Challenges
	ReviewSection: ReviewSection

	def quote_for_day(self, day: int) -> str:
		quotes = self.DailyPages.motivation_quotes
		return quotes[(day - 1) % len(quotes)]


def _string_object(*keys: str) -> Dict[str, Any]:
	return {
		"type": "OBJECT",
		"properties": {k: {"type": "STRING"} for k in keys},
		"required": list(keys),
	}


_daily_pages_schema = _string_object("morning_prompt", "evening_prompt", "habit_checklist")
_daily_pages_schema["properties"]["motivation_quotes"] = {"type": "ARRAY", "items": {"type": "STRING"}}
_daily_pages_schema["required"].append("motivation_quotes")

# Gemini responseSchema mirroring WorkbookDocument
WORKBOOK_RESPONSE_SCHEMA: Dict[str, Any] = {
	"type": "OBJECT",
	"properties": {
		"WorkbookTitle": {"type": "STRING"},
		"Introduction": {"type": "STRING"},
		"HowToUse": {"type": "STRING"},
		"GoalSettingSection": _string_object("big_goals", "milestones", "thirty_day_objectives"),
		"MonthlyPlanner": _string_object("overview_page", "habit_list_templates"),
		"WeeklyPlanner": _string_object("week_template", "habit_tracker", "weekly_reflection"),
		"DailyPages": _daily_pages_schema,
		"Challenges": _string_object("seven_day_challenge", "twenty_one_day_challenge"),
		"ReviewSection": _string_object("progress_summary", "reward_system"),
	},
	"required": [
		"WorkbookTitle",
		"Introduction",
		"HowToUse",
		"GoalSettingSection",
		"MonthlyPlanner",
		"WeeklyPlanner",
		"DailyPages",
		"Challenges",
		"ReviewSection",
	],
}


def parse_workbook(text: str) -> WorkbookDocument:
	"""Decode a model response body, raising GenerationFailed for anything off-schema."""
	if not text or not text.strip():
		raise GenerationFailed("empty response body")
	try:
		data = json.loads(text)
	except json.JSONDecodeError as err:
		raise GenerationFailed(f"response is not valid JSON: {err}") from err
	if not isinstance(data, dict):
		raise GenerationFailed("response is not a JSON object")
	try:
		return WorkbookDocument.model_validate(data)
	except ValidationError as err:
		raise GenerationFailed(f"response does not match the workbook schema: {err}") from err
