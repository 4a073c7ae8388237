"""Vocabulary shared by the document, diff and command layers."""

from __future__ import annotations

ISSUE_TYPES = ("bug", "feature", "task", "epic", "chore")

# Statuses a record can actually carry.
STORED_STATUSES = ("open", "in_progress", "blocked", "closed")

# Pseudo-states only meaningful when listing/filtering.
QUERY_STATUSES = ("ready", "stale", "all")

STATUSES = STORED_STATUSES + QUERY_STATUSES

PLURAL_MAP = {
    "bugs": "bug",
    "features": "feature",
    "tasks": "task",
    "epics": "epic",
    "chores": "chore",
}

DEFAULT_PRIORITY = 2
MIN_PRIORITY = 0
MAX_PRIORITY = 4

NEW_ISSUE_ID = "(new)"

FRONTMATTER_DELIMITER = "---"

# Field name -> document heading, in rendering order.
SECTION_HEADINGS: dict[str, str] = {
    "description": "Description",
    "acceptance_criteria": "Acceptance Criteria",
    "design": "Design",
    "notes": "Notes",
}

SECTION_FIELDS = tuple(SECTION_HEADINGS)

# Sections rendered with a heading even when empty; notes only appears with content.
ALWAYS_RENDERED_SECTIONS = ("description", "acceptance_criteria", "design")

METADATA_FIELDS = ("title", "priority", "assignee")

DEP_TYPE_BLOCKS = "blocks"
DEP_TYPE_PARENT_CHILD = "parent-child"

__all__ = [
    "ISSUE_TYPES",
    "STORED_STATUSES",
    "QUERY_STATUSES",
    "STATUSES",
    "PLURAL_MAP",
    "DEFAULT_PRIORITY",
    "MIN_PRIORITY",
    "MAX_PRIORITY",
    "NEW_ISSUE_ID",
    "FRONTMATTER_DELIMITER",
    "SECTION_HEADINGS",
    "SECTION_FIELDS",
    "ALWAYS_RENDERED_SECTIONS",
    "METADATA_FIELDS",
    "DEP_TYPE_BLOCKS",
    "DEP_TYPE_PARENT_CHILD",
]
