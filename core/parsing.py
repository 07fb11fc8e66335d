# =============================================================================
# core/parsing.py - Manager string parsing and title classification
# =============================================================================

import re
from typing import NamedTuple, Optional


class ManagerRef(NamedTuple):
    """Name and employee id pulled out of a "Name (id)" string"""
    name: str
    employee_id: str

    @property
    def is_valid(self) -> bool:
        return self != INVALID_MANAGER


INVALID_MANAGER = ManagerRef("Invalid Format", "N/A")
NO_MANAGER = ManagerRef("No Manager Assigned", "N/A")

DELEGATION_KEYWORDS = {"supervisor", "manager", "director"}
ACTION_DELEGATE = "Suspend with Delegation"
ACTION_NO_DELEGATE = "Suspend with no Delegate"

# "<name>[ (<qualifier>)] (<digits>)"; a qualifier made only of digits is not a qualifier
_MANAGER_PATTERN = re.compile(
    r"^(?P<name>.*?)\s*(?:\((?!\s*\d+\s*\))[^()]*\)\s*)?\(\s*(?P<id>\d+)\s*\)\s*$"
)
_TRAILING_QUALIFIER = re.compile(r"\s*\([^()]*\)\s*$")


def parse_manager_string(raw: Optional[str]) -> ManagerRef:
    """
    Extract the manager name and employee id from an HR export value.

    "Jane Doe (555)" -> ("Jane Doe", "555")
    "Jane Doe (SUG) (555)" -> ("Jane Doe", "555")

    Anything without a trailing "(<digits>)" group, or with nothing in front
    of it, returns INVALID_MANAGER rather than raising.
    """
    if not raw:
        return INVALID_MANAGER

    match = _MANAGER_PATTERN.match(raw.strip())
    if not match:
        return INVALID_MANAGER

    name = match.group("name").strip()
    if not name:
        return INVALID_MANAGER

    return ManagerRef(name, match.group("id"))


def strip_qualifier(name: Optional[str]) -> str:
    """Drop one trailing parenthetical such as "(SUG)" from a display name"""
    if not name:
        return ""
    return _TRAILING_QUALIFIER.sub("", name).strip()


def classify_suspension_action(title: Optional[str]) -> str:
    """Map a job title to the mailbox suspension action for a departing employee"""
    if not title:
        return ACTION_NO_DELEGATE

    # Only the part before the first comma describes the role
    role = title.split(",")[0]
    words = {word.lower() for word in role.split()}

    if words & DELEGATION_KEYWORDS:
        return ACTION_DELEGATE
    return ACTION_NO_DELEGATE
