"""Free-text command parsing for Gitick task entry.

Extracts priority, tags, a project reference and a relative due date from a
single input line such as ``"Buy milk !high #errand tomorrow @Life"``.
Safe to call on every keystroke: it never raises, and parsing the returned
clean title again extracts nothing.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from engine.dates import DateLike, add_days, next_monday, resolve_today, to_iso
from engine.models import Priority

PRIORITY_RE = re.compile(r"!(high|medium|low)", re.IGNORECASE)
TAG_RE = re.compile(r"#([^\s#@!]+)")
PROJECT_RE = re.compile(r"@([^\s#@!]+)")

# Checked in order, first rule that matches wins.
DATE_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\b(?:today|tod)\b", re.IGNORECASE), "Today"),
    (re.compile(r"\b(?:tomorrow|tmr|tom)\b", re.IGNORECASE), "Tomorrow"),
    (re.compile(r"\bnext\s+week\b", re.IGNORECASE), "Next Week"),
]
DATE_KEYWORD_RE = re.compile(r"\b(?:today|tod|tomorrow|tmr|tom|next\s+week)\b", re.IGNORECASE)


@dataclass
class ParsedCommand:
    priority: Priority | None = None
    tags: list[str] = field(default_factory=list)
    due_date: str | None = None
    date_label: str = ""
    resolved_project: str | None = None
    clean_title: str = ""

    def title_or(self, raw: str) -> str:
        """Clean title, or the trimmed raw input when nothing is left."""
        return self.clean_title or raw.strip()

    def to_dict(self) -> dict:
        return {
            "priority": self.priority.value if self.priority else None,
            "tags": list(self.tags),
            "dueDate": self.due_date,
            "dateLabel": self.date_label,
            "resolvedProject": self.resolved_project,
            "cleanTitle": self.clean_title,
        }


def _strip(pattern: re.Pattern[str], text: str) -> str:
    # Removing one token can splice a new one together ("!!highhigh").
    while True:
        stripped = pattern.sub("", text)
        if stripped == text:
            return text
        text = stripped


def _unique_tags(raw_tags: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    tags = []
    for tag in raw_tags:
        key = tag.lower()
        if key in seen:
            continue
        seen.add(key)
        tags.append(tag)
    return tags


def _resolve_project(name: str, projects: Iterable[str]) -> str | None:
    wanted = name.lower()
    for project in projects:
        if project.lower() == wanted:
            return project
    return None


def _due_date_for(label: str, today: date) -> str:
    if label == "Today":
        return to_iso(today)
    if label == "Tomorrow":
        return add_days(today, 1)
    return next_monday(today)


def parse_command(
    text: str,
    projects: Iterable[str] = (),
    today: DateLike | None = None,
) -> ParsedCommand:
    """Parse one line of task input into a draft.

    Tokens are pulled out in a fixed order (priority, tags, project, date) and
    each is stripped from the text before the next is looked for. Only the
    first ``@project`` is resolved; the rest are stripped.
    """
    result = ParsedCommand()
    remaining = text or ""

    m = PRIORITY_RE.search(remaining)
    if m:
        result.priority = Priority(m.group(1).lower())
        remaining = _strip(PRIORITY_RE, remaining)

    result.tags = _unique_tags(TAG_RE.findall(remaining))
    remaining = _strip(TAG_RE, remaining)

    m = PROJECT_RE.search(remaining)
    if m:
        result.resolved_project = _resolve_project(m.group(1), projects)
        remaining = _strip(PROJECT_RE, remaining)

    for pattern, label in DATE_RULES:
        if pattern.search(remaining):
            result.date_label = label
            result.due_date = _due_date_for(label, resolve_today(today))
            break
    remaining = _strip(DATE_KEYWORD_RE, remaining)

    result.clean_title = re.sub(r"\s+", " ", remaining).strip()
    return result
