"""Command line interface (Click).

Commands:
    init       Write a template sonar-config.yaml
    pr-report  Commit status line and global comment for a pull request
"""

import functools
import json
import sys

import click

from sonar_pr_report import __version__
from sonar_pr_report.client import (
    AuthenticationError,
    NetworkError,
    NotFoundError,
    SonarClient,
    SonarClientError,
)
from sonar_pr_report.config import (
    Config,
    ConfigError,
    InvalidConfigurationError,
    ProjectNotFoundError,
)
from sonar_pr_report.models import SEVERITIES, Status

#: Exit code of `pr-report --fail-on-error` when the analysis fails
EXIT_ANALYSIS_FAILED = 2

# Most specific first: the first matching class picks the message prefix
_ERROR_LABELS: tuple[tuple[type[Exception], str], ...] = (
    (ProjectNotFoundError, "Project error"),
    (InvalidConfigurationError, "Invalid configuration"),
    (ConfigError, "Configuration error"),
    (AuthenticationError, "Authentication error"),
    (NotFoundError, "Not found"),
    (NetworkError, "Network error"),
    (SonarClientError, "SonarQube error"),
)


def _exit_on_errors(func):
    """Report config and SonarQube failures on stderr and exit with status 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (ConfigError, SonarClientError) as exc:
            label = next(text for cls, text in _ERROR_LABELS if isinstance(exc, cls))
            click.echo(f"{label}: {exc}", err=True)
            sys.exit(1)

    return wrapper


def _verbose(ctx: click.Context, message: str) -> None:
    if ctx.obj["verbose"]:
        click.echo(f"[verbose] {message}", err=True)


def _make_client(ctx: click.Context) -> tuple[Config, SonarClient]:
    """Load the config file and return it with a client for its server."""
    from sonar_pr_report.config import load

    config = load(ctx.obj["config_path"])
    _verbose(ctx, f"Connecting to {config.url}")
    return config, SonarClient.from_config(config)


def _write(text: str, ctx: click.Context) -> None:
    output_path: str | None = ctx.obj["output_path"]
    if not output_path:
        click.echo(text)
        return
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(text)
    click.echo(f"Report written to '{output_path}'", err=True)


@click.group()
@click.option("--config", "config_path", default="sonar-config.yaml", show_default=True,
              help="Path to the configuration file.")
@click.option("--output", "output_path", default=None,
              help="Write the report to a file instead of stdout.")
@click.option("--pretty", is_flag=True, default=False,
              help="Indent JSON output.")
@click.option("--verbose", is_flag=True, default=False,
              help="Print progress on stderr.")
@click.version_option(__version__, prog_name="sonar-pr-report")
@click.pass_context
def cli(ctx: click.Context, config_path: str, output_path: str | None,
        pretty: bool, verbose: bool) -> None:
    """Turn SonarQube pull request issues into a commit status and a PR comment."""
    ctx.ensure_object(dict)
    ctx.obj.update(config_path=config_path, output_path=output_path,
                   pretty=pretty, verbose=verbose)


@cli.command("init")
@click.option("--output", "output_path", default="sonar-config.yaml", show_default=True,
              help="Where to write the template.")
@_exit_on_errors
def init_command(output_path: str) -> None:
    """Write a template configuration file."""
    from sonar_pr_report.config import generate_template

    generate_template(output_path)
    click.echo(f"Template written to '{output_path}'. Fill in the server, projects and report settings.")


@cli.command("pr-report")
@click.argument("project")
@click.argument("pr_id")
@click.option("--diff", "diff_path", default=None,
              help="Unified diff of the PR. Issues on its lines are left for inline comments.")
@click.option("--format", "output_format", default="json", show_default=True,
              type=click.Choice(["json", "markdown", "status"]),
              help="Full JSON payload, the comment body only, or the status line only.")
@click.option("--severity", default=None,
              type=click.Choice(SEVERITIES, case_sensitive=False),
              help="Lowest severity that fails the analysis (overrides config).")
@click.option("--max-issues", "max_issues", default=None, type=click.IntRange(min=0),
              help="Issues listed in the global comment (overrides config).")
@click.option("--no-inline", is_flag=True, default=False,
              help="Report every issue in the global comment.")
@click.option("--link-base", default=None,
              help="Base URL for issue links, e.g. https://github.com/o/r/blob/<sha>.")
@click.option("--fail-on-error", is_flag=True, default=False,
              help=f"Exit with code {EXIT_ANALYSIS_FAILED} when the analysis fails.")
@click.pass_context
@_exit_on_errors
def pr_report_command(ctx: click.Context, project: str, pr_id: str, diff_path: str | None,
                      output_format: str, severity: str | None, max_issues: int | None,
                      no_inline: bool, link_base: str | None, fail_on_error: bool) -> None:
    """Commit status and global comment for pull request PR_ID of PROJECT."""
    from sonar_pr_report.diff import DiffPositions
    from sonar_pr_report.markdown import MarkdownUtils
    from sonar_pr_report.reports.issues import (
        build_global_report,
        fetch_pr_issues,
        render_pr_report,
    )

    config, client = _make_client(ctx)
    project_key = config.resolve_project(project)

    positions = DiffPositions()
    if diff_path:
        positions = DiffPositions.from_file(diff_path)
        _verbose(ctx, f"Loaded {len(positions.paths)} file(s) from '{diff_path}'")

    _verbose(ctx, f"Fetching issues of {project_key} PR#{pr_id}")
    issues = fetch_pr_issues(client, project_key, pr_id)

    report = build_global_report(
        issues,
        positions,
        MarkdownUtils(config.url),
        inline=config.inline_comments and not no_inline,
        severity=(severity or config.failure_severity).upper(),
        max_global_issues=config.max_global_issues if max_issues is None else max_issues,
        link_base=link_base or config.github_url,
    )
    _verbose(ctx, f"{report.total_issues} issue(s), {report.extra_issue_count} outside the diff")

    if output_format == "markdown":
        _write(report.format_for_markdown(), ctx)
    elif output_format == "status":
        _write(report.status_description(), ctx)
    else:
        payload = render_pr_report(report)
        payload.update(project_key=project_key, pull_request=pr_id)
        _write(json.dumps(payload, indent=2 if ctx.obj["pretty"] else None,
                          ensure_ascii=False), ctx)

    if fail_on_error and report.status() is Status.FAILURE:
        sys.exit(EXIT_ANALYSIS_FAILED)
