"""Projection of free-form workbook text into checklist lines.

The model returns sections as loose text in which list entries are marked with
``-``, ``*`` or ``•`` bullets. Every physical line becomes one ParsedLine, and
checklist ids are derived from the line position so that re-parsing the same
text always yields the same ids.
"""
from __future__ import annotations
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional


_BULLET_LINE = re.compile(r"^[-*•]\s")
_BULLET_PREFIX = re.compile(r"^[-*•]\s*")


class LineKind(str, Enum):
	BLANK = "blank"
	HEADING = "heading"
	CHECKLIST_ITEM = "checklist_item"


@dataclass(frozen=True)
class ParsedLine:
	kind: LineKind
	text: str = ""
	id: Optional[str] = None

	@property
	def is_interactive(self) -> bool:
		return self.kind is LineKind.CHECKLIST_ITEM


def item_id(section_id: str, line_index: int) -> str:
	return f"{section_id}-{line_index}"


def strip_bullet(line: str) -> str:
	return _BULLET_PREFIX.sub("", line.strip(), count=1)


def classify_line(line: str, section_id: str, line_index: int) -> ParsedLine:
	trimmed = line.strip()
	if not trimmed:
		return ParsedLine(LineKind.BLANK)
	if _BULLET_LINE.match(trimmed):
		return ParsedLine(LineKind.CHECKLIST_ITEM, strip_bullet(trimmed), item_id(section_id, line_index))
	return ParsedLine(LineKind.HEADING, trimmed)


def parse_content(text: Optional[str], section_id: str) -> List[ParsedLine]:
	"""Parse a text block into one ParsedLine per physical line.

	Unexpected formatting degrades to headings; nothing here raises for string input.
	"""
	if not text:
		return []
	return [classify_line(line, section_id, idx) for idx, line in enumerate(text.split("\n"))]


def checklist_ids(text: Optional[str], section_id: str) -> List[str]:
	return [line.id for line in parse_content(text, section_id) if line.id is not None]


def parse_habits(text: Optional[str]) -> List[str]:
	"""Non-blank lines of the daily habit template, bullets stripped.

	Index ``i`` of the result is the habit position tracked in a day entry.
	"""
	if not text:
		return []
	return [strip_bullet(line) for line in text.split("\n") if line.strip()]
