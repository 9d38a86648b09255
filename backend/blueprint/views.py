"""Tab projections combining a workbook with its progress.

Section ids used here are the keys under which checklist state is stored, so
they must not change for the lifetime of a workbook.
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional

from .content_parser import LineKind, ParsedLine, checklist_ids, parse_content, parse_habits
from .progress import ProgressState, get_entry
from .workbook import WORKBOOK_DAYS, WorkbookDocument


DAYS_PER_WEEK = 7

TABS = ("overview", "goals", "daily", "review")


def weekly_focus_section(day: int) -> str:
	# One checklist per calendar week of the plan; days 29-30 form week 5
	return f"weekly-focus-week-{(day - 1) // DAYS_PER_WEEK + 1}"


def _line_view(line: ParsedLine, progress: ProgressState) -> Dict[str, Any]:
	view: Dict[str, Any] = {"kind": line.kind.value}
	if line.kind is LineKind.BLANK:
		return view
	view["text"] = line.text
	if line.id is not None:
		view["id"] = line.id
		view["checked"] = progress.is_checked(line.id)
	return view


def checklist(text: Optional[str], section_id: str, progress: ProgressState) -> Dict[str, Any]:
	return {
		"section_id": section_id,
		"lines": [_line_view(line, progress) for line in parse_content(text, section_id)],
	}


def overview_view(document: WorkbookDocument, progress: ProgressState) -> Dict[str, Any]:
	return {
		"title": document.WorkbookTitle,
		"introduction": document.Introduction,
		"how_to_use": document.HowToUse,
		"objectives": checklist(document.GoalSettingSection.thirty_day_objectives, "objectives", progress),
		"challenges": {
			"seven_day": checklist(document.Challenges.seven_day_challenge, "challenge-7", progress),
			"twenty_one_day": checklist(document.Challenges.twenty_one_day_challenge, "challenge-21", progress),
		},
	}


def goals_view(document: WorkbookDocument, progress: ProgressState) -> Dict[str, Any]:
	return {
		"big_goals": document.GoalSettingSection.big_goals,
		"goal_notes": progress.goal_notes,
		"milestones": checklist(document.GoalSettingSection.milestones, "milestones", progress),
		"habit_templates": checklist(document.MonthlyPlanner.habit_list_templates, "habit-templates", progress),
	}


def daily_view(document: WorkbookDocument, progress: ProgressState, day: int) -> Dict[str, Any]:
	pages = document.DailyPages
	entry = get_entry(progress, day)
	habits = [
		{"index": idx, "text": text, "checked": entry.habit_checked(idx) if entry else False}
		for idx, text in enumerate(parse_habits(pages.habit_checklist))
	]
	return {
		"day": day,
		"habits": habits,
		"morning_prompt": pages.morning_prompt,
		"evening_prompt": pages.evening_prompt,
		"morning_reflection": entry.morning_reflection if entry else "",
		"evening_reflection": entry.evening_reflection if entry else "",
		"started_at": entry.date.isoformat() if entry else None,
		"quote": document.quote_for_day(day),
		"weekly_focus": checklist(document.WeeklyPlanner.week_template, weekly_focus_section(day), progress),
	}


def review_view(document: WorkbookDocument, progress: ProgressState) -> Dict[str, Any]:
	return {
		"progress_summary": document.ReviewSection.progress_summary,
		"rewards": checklist(document.ReviewSection.reward_system, "rewards", progress),
	}


def render_tab(tab: str, document: WorkbookDocument, progress: ProgressState, *, day: int = 1) -> Dict[str, Any]:
	if tab == "overview":
		return overview_view(document, progress)
	if tab == "goals":
		return goals_view(document, progress)
	if tab == "daily":
		return daily_view(document, progress, day)
	if tab == "review":
		return review_view(document, progress)
	raise ValueError(f"tab must be one of {TABS}")


def _checklist_sections(document: WorkbookDocument) -> List[tuple[str, str]]:
	sections = [
		("objectives", document.GoalSettingSection.thirty_day_objectives),
		("challenge-7", document.Challenges.seven_day_challenge),
		("challenge-21", document.Challenges.twenty_one_day_challenge),
		("milestones", document.GoalSettingSection.milestones),
		("habit-templates", document.MonthlyPlanner.habit_list_templates),
		("rewards", document.ReviewSection.reward_system),
	]
	weeks = sorted({weekly_focus_section(day) for day in range(1, WORKBOOK_DAYS + 1)})
	sections.extend((week, document.WeeklyPlanner.week_template) for week in weeks)
	return sections


def summary(document: WorkbookDocument, progress: ProgressState) -> Dict[str, Any]:
	sections: Dict[str, Dict[str, int]] = {}
	for section_id, text in _checklist_sections(document):
		ids = checklist_ids(text, section_id)
		sections[section_id] = {
			"checked": sum(1 for item in ids if progress.is_checked(item)),
			"total": len(ids),
		}
	habit_count = len(parse_habits(document.DailyPages.habit_checklist))
	habits_done = 0
	for day in range(1, WORKBOOK_DAYS + 1):
		entry = get_entry(progress, day)
		if entry is not None:
			habits_done += sum(1 for idx in range(habit_count) if entry.habit_checked(idx))
	return {
		"sections": sections,
		"checked_items": sum(s["checked"] for s in sections.values()),
		"total_items": sum(s["total"] for s in sections.values()),
		"days_started": sum(1 for day in range(1, WORKBOOK_DAYS + 1) if get_entry(progress, day) is not None),
		"habits_checked": habits_done,
		"habits_total": habit_count * WORKBOOK_DAYS,
	}
