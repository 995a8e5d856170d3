"""Pull request issue report.

Functions:
    fetch_pr_issues(client, project_key, pr_id)      -> list[Issue]
    build_global_report(issues, positions, markdown) -> GlobalReport
    render_pr_report(report)                         -> dict
"""

from datetime import datetime, timezone
from typing import Iterable

from sonar_pr_report.client import SonarClient
from sonar_pr_report.config import DEFAULT_FAILURE_SEVERITY, MAX_GLOBAL_ISSUES
from sonar_pr_report.diff import DiffPositions
from sonar_pr_report.markdown import MarkdownUtils
from sonar_pr_report.models import SEVERITIES, Issue
from sonar_pr_report.reports.global_report import GlobalReport


def fetch_pr_issues(client: SonarClient, project_key: str, pr_id: str) -> list[Issue]:
    """Return the unresolved issues of a pull request as Issue objects.

    Issues without a known severity are skipped, they cannot be ranked.
    """
    raw_issues = client.search_issues({
        "componentKeys": project_key,
        "pullRequest":   pr_id,
        "resolved":      "false",
    })
    return [Issue.from_api(raw) for raw in raw_issues if raw.get("severity") in SEVERITIES]


def github_link(base_url: str | None, issue: Issue) -> str | None:
    """Link to the issue location in the GitHub file view, if a base is known."""
    if not base_url:
        return None
    link = f"{base_url.rstrip('/')}/{issue.path}"
    if issue.line is not None:
        link += f"#L{issue.line}"
    return link


def build_global_report(
    issues: Iterable[Issue],
    positions: DiffPositions,
    markdown: MarkdownUtils,
    *,
    inline: bool = True,
    severity: str = DEFAULT_FAILURE_SEVERITY,
    max_global_issues: int = MAX_GLOBAL_ISSUES,
    link_base: str | None = None,
) -> GlobalReport:
    """Feed *issues* in order into a new GlobalReport.

    With inline comments disabled every issue goes to the global summary.

    Raises:
        InvalidConfigurationError: if *severity* is not an issue level.
    """
    report = GlobalReport(markdown, inline, severity, max_global_issues)
    for issue in issues:
        in_diff = inline and positions.contains_issue(issue)
        report.process(issue, github_link(link_base, issue), in_diff)
    return report


def render_pr_report(report: GlobalReport) -> dict:
    """JSON payload with the commit status and the global comment body."""
    status = report.status()
    return {
        "report_type":    "pr_report",
        "generated_at":   datetime.now(timezone.utc).isoformat(),
        "status":         status.value,
        "github_state":   status.github_state,
        "description":    report.status_description(),
        "has_new_issues": report.has_new_issues(),
        "summary": {
            "total":       report.total_issues,
            "by_severity": {s: report.new_issues(s) for s in reversed(SEVERITIES)},
            "out_of_diff": report.extra_issue_count,
        },
        "markdown": report.format_for_markdown(),
    }
