"""Data models shared by the report builders.

Contains:
    - SEVERITIES   ordered SonarQube severity levels, lowest first
    - Status       overall pass/fail signal of an analysis
    - Issue        one SonarQube issue, as returned by /api/issues/search
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

#: Severity levels in ascending order. Index order is the failure ordering.
SEVERITIES: tuple[str, ...] = ("INFO", "MINOR", "MAJOR", "CRITICAL", "BLOCKER")


class Status(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"

    @property
    def github_state(self) -> str:
        """Commit status state used on GitHub for this outcome."""
        return "success" if self is Status.SUCCESS else "error"


@dataclass(frozen=True)
class Issue:
    key: str
    severity: str
    message: str
    rule: str
    component: str
    line: int | None = None

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> "Issue":
        """Build an Issue from a raw SonarQube issue dict."""
        return cls(
            key=raw.get("key", ""),
            severity=raw.get("severity", ""),
            message=raw.get("message", ""),
            rule=raw.get("rule", ""),
            component=raw.get("component", ""),
            line=raw.get("line"),
        )

    @property
    def path(self) -> str:
        """File path relative to the project, e.g. ``src/Foo.java``.

        SonarQube component keys look like ``<project key>:<path>``.
        """
        _, sep, path = self.component.partition(":")
        return path if sep else self.component
