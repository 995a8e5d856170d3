"""Global pull request report.

Accumulates the new issues of an analysis and renders:
    - status_description()   one-line commit status text
    - format_for_markdown()  body of the global PR comment
    - status()               SUCCESS / FAILURE against the failure severity

Issues on diff lines are only counted here; the caller posts them as inline
comments. Issues outside the diff are listed in the global comment, up to
``max_global_issues`` entries.
"""

from sonar_pr_report.config import MAX_GLOBAL_ISSUES, check_severity
from sonar_pr_report.markdown import MarkdownUtils
from sonar_pr_report.models import SEVERITIES, Issue, Status

_EXTRA_ISSUES_NOTE = (
    "\nNote: The following issues were found on lines that were not modified "
    "in the pull request. Because these issues can't be reported as line "
    "comments, they are summarized here:\n"
)


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count > 1 else ''}"


class GlobalReport:
    """Per-severity counts and the out-of-diff summary of one analysis."""

    def __init__(
        self,
        markdown: MarkdownUtils,
        inline_enabled: bool,
        severity: str,
        max_global_issues: int = MAX_GLOBAL_ISSUES,
    ) -> None:
        index = check_severity(severity)
        self.failing_severities: tuple[str, ...] = SEVERITIES[index:]
        self._markdown = markdown
        self._inline_enabled = inline_enabled
        self._max_global_issues = max_global_issues
        self._counts: dict[str, int] = {s: 0 for s in SEVERITIES}
        self._not_on_diff: list[str] = []
        self._extra_issue_count = 0

    # ------------------------------------------------------------------
    # Accumulation
    # ------------------------------------------------------------------

    def process(self, issue: Issue, url: str | None, in_diff: bool) -> None:
        self._counts[issue.severity] += 1
        if in_diff:
            return
        if self._extra_issue_count < self._max_global_issues:
            entry = self._markdown.global_issue(
                issue.severity, issue.message, issue.rule, url, issue.component
            )
            self._not_on_diff.append(f"1. {entry}\n")
        self._extra_issue_count += 1

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def new_issues(self, severity: str) -> int:
        return self._counts[severity]

    @property
    def total_issues(self) -> int:
        return sum(self._counts.values())

    @property
    def extra_issue_count(self) -> int:
        """Number of issues found outside the diff, listed or not."""
        return self._extra_issue_count

    @property
    def reported_entries(self) -> list[str]:
        return list(self._not_on_diff)

    def has_new_issues(self) -> bool:
        return self.total_issues > 0

    def status(self) -> Status:
        if any(self._counts[s] > 0 for s in self.failing_severities):
            return Status.FAILURE
        return Status.SUCCESS

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def status_description(self) -> str:
        """One-line summary, e.g. ``SonarQube reported 3 issues, with 1 critical``."""
        total = self.total_issues
        if total == 0:
            return "SonarQube reported no issues"

        text = f"SonarQube reported {_plural(total, 'issue')},"
        clauses = [
            f"{self._counts[s]} {s.lower()}"
            for s in self.failing_severities
            if self._counts[s] > 0
        ]
        if clauses:
            return text + " with " + " and ".join(clauses)

        # Names the second failing level, not the threshold itself.
        # Only BLOCKER has no second level; fall back to it.
        level = self.failing_severities[min(1, len(self.failing_severities) - 1)]
        return text + f" none above {level} level."

    def format_for_markdown(self) -> str:
        """Body of the global pull request comment."""
        total = self.total_issues
        if total == 0:
            return "SonarQube analysis reported no issues."

        extra = self._extra_issue_count
        cap = self._max_global_issues
        has_inline_issues = total > extra
        truncated = extra > cap

        parts = [f"SonarQube analysis reported {_plural(total, 'issue')}\n"]
        if has_inline_issues or truncated:
            parts.extend(self._summary_by_severity())
        if self._inline_enabled and has_inline_issues:
            parts.append("\nWatch the comments in this conversation to review them.\n")

        if extra > 0:
            if self._inline_enabled:
                if has_inline_issues or truncated:
                    prefix = "Top " if truncated else ""
                    parts.append(f"\n#### {prefix}{_plural(min(extra, cap), 'extra issue')}\n")
                parts.append(_EXTRA_ISSUES_NOTE)
            elif truncated:
                parts.append(f"\n#### Top {cap} issues\n")
            # Ordered list needs a blank line before it
            parts.append("\n")
            parts.extend(self._not_on_diff)
        return "".join(parts)

    def _summary_by_severity(self) -> list[str]:
        lines = []
        for severity in reversed(SEVERITIES):
            count = self._counts[severity]
            if count > 0:
                image = self._markdown.severity_image(severity)
                lines.append(f"* {image} {count} {severity.lower()}\n")
        return lines
