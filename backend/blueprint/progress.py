"""User progress layered on top of a workbook.

Every operation returns a new ProgressState and leaves its input untouched, so
callers can keep the previous state around and persist after each transition.
"""
from __future__ import annotations
from datetime import datetime, timezone
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


ReflectionKind = Literal["morning", "evening"]

_REFLECTION_FIELDS = {"morning": "morning_reflection", "evening": "evening_reflection"}


class DailyEntry(BaseModel):
	model_config = ConfigDict(frozen=True, populate_by_name=True)

	date: datetime
	morning_reflection: str = Field(default="", alias="morningReflection")
	evening_reflection: str = Field(default="", alias="eveningReflection")
	habits_checked: List[bool] = Field(default_factory=list, alias="habitsChecked")

	def habit_checked(self, habit_index: int) -> bool:
		if 0 <= habit_index < len(self.habits_checked):
			return self.habits_checked[habit_index]
		return False


class ProgressState(BaseModel):
	model_config = ConfigDict(frozen=True, populate_by_name=True)

	checked_items: Dict[str, bool] = Field(default_factory=dict, alias="checkedItems")
	goal_notes: str = Field(default="", alias="goalNotes")
	entries: Dict[str, DailyEntry] = Field(default_factory=dict)

	def is_checked(self, item_id: str) -> bool:
		return self.checked_items.get(item_id, False)


def day_key(day: int) -> str:
	return f"day-{day}"


def get_entry(state: ProgressState, day: int) -> Optional[DailyEntry]:
	return state.entries.get(day_key(day))


def _now() -> datetime:
	return datetime.now(timezone.utc)


def _entry_for(state: ProgressState, day: int, now: Optional[datetime]) -> DailyEntry:
	existing = get_entry(state, day)
	if existing is not None:
		return existing
	return DailyEntry(date=now or _now())


def _with_entry(state: ProgressState, day: int, entry: DailyEntry) -> ProgressState:
	return state.model_copy(update={"entries": {**state.entries, day_key(day): entry}})


def toggle_item(state: ProgressState, item_id: str) -> ProgressState:
	checked = {**state.checked_items, item_id: not state.checked_items.get(item_id, False)}
	return state.model_copy(update={"checked_items": checked})


def set_goal_notes(state: ProgressState, text: str) -> ProgressState:
	return state.model_copy(update={"goal_notes": text})


def toggle_day_habit(state: ProgressState, day: int, habit_index: int, *, now: Optional[datetime] = None) -> ProgressState:
	entry = _entry_for(state, day, now)
	habits = list(entry.habits_checked)
	# Negative positions address no habit; the entry is still created
	if habit_index >= 0:
		if habit_index >= len(habits):
			habits.extend([False] * (habit_index + 1 - len(habits)))
		habits[habit_index] = not habits[habit_index]
	return _with_entry(state, day, entry.model_copy(update={"habits_checked": habits}))


def set_day_reflection(
	state: ProgressState,
	day: int,
	which: ReflectionKind,
	text: str,
	*,
	now: Optional[datetime] = None,
) -> ProgressState:
	field = _REFLECTION_FIELDS.get(which)
	if field is None:
		raise ValueError(f"reflection must be one of {sorted(_REFLECTION_FIELDS)}")
	entry = _entry_for(state, day, now)
	return _with_entry(state, day, entry.model_copy(update={field: text}))


class ToggleItem(BaseModel):
	type: Literal["toggle_item"] = "toggle_item"
	item_id: str


class SetGoalNotes(BaseModel):
	type: Literal["set_goal_notes"] = "set_goal_notes"
	text: str


class ToggleDayHabit(BaseModel):
	type: Literal["toggle_day_habit"] = "toggle_day_habit"
	day: int
	habit_index: int


class SetDayReflection(BaseModel):
	type: Literal["set_day_reflection"] = "set_day_reflection"
	day: int
	which: ReflectionKind
	text: str


ProgressAction = Annotated[
	Union[ToggleItem, SetGoalNotes, ToggleDayHabit, SetDayReflection],
	Field(discriminator="type"),
]


def apply_action(state: ProgressState, action: ProgressAction, *, now: Optional[datetime] = None) -> ProgressState:
	if isinstance(action, ToggleItem):
		return toggle_item(state, action.item_id)
	if isinstance(action, SetGoalNotes):
		return set_goal_notes(state, action.text)
	if isinstance(action, ToggleDayHabit):
		return toggle_day_habit(state, action.day, action.habit_index, now=now)
	if isinstance(action, SetDayReflection):
		return set_day_reflection(state, action.day, action.which, action.text, now=now)
	raise TypeError(f"unsupported progress action: {type(action).__name__}")
