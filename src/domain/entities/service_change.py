"""Service change history entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class ChangeAction(str, Enum):
    """Kind of catalog mutation recorded in the history."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass
class ServiceFieldChange:
    """A single field that differs between two revisions."""

    field: str
    old_value: Any
    new_value: Any


@dataclass
class ServiceChange:
    """One entry of the change history (e.g., a git commit)."""

    commit: str
    author: str
    email: str
    timestamp: datetime
    message: str
    changes: list[ServiceFieldChange] = field(default_factory=list)


@dataclass
class ServiceHistory:
    """Change history of one service, newest first."""

    service_name: str
    history: list[ServiceChange] = field(default_factory=list)
