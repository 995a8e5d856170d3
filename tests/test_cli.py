"""Tests for sonar_pr_report/cli.py"""

import json
import textwrap

import pytest
from click.testing import CliRunner

from sonar_pr_report.cli import EXIT_ANALYSIS_FAILED, cli

BASE    = "https://sonar.example.com"
PROJECT = "ch.corren.wcs"

CONFIG = """\
    server:
      url: "https://sonar.example.com"
      token: "squ_abc123"
    projects:
      wcs: "ch.corren.wcs"
    report:
      failure_severity: MAJOR
      max_global_issues: 10
    """

DIFF = """\
    --- a/src/Foo.java
    +++ b/src/Foo.java
    @@ -1,2 +1,3 @@
     a
    +b
     c
    """


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    for var in ("SONAR_URL", "SONAR_TOKEN", "SONAR_FAILURE_SEVERITY"):
        monkeypatch.delenv(var, raising=False)
    p = tmp_path / "sonar-config.yaml"
    p.write_text(textwrap.dedent(CONFIG), encoding="utf-8")
    return str(p)


@pytest.fixture
def diff_file(tmp_path):
    p = tmp_path / "pr.diff"
    p.write_text(textwrap.dedent(DIFF), encoding="utf-8")
    return str(p)


def _mock_issues(requests_mock, *issues):
    items = [
        {"key": f"i{n}", "rule": "java:S1234", "severity": sev,
         "component": f"{PROJECT}:src/Foo.java", "line": line, "message": "Some issue"}
        for n, (sev, line) in enumerate(issues)
    ]
    return requests_mock.get(
        f"{BASE}/api/issues/search",
        json={"issues": items, "paging": {"total": len(items)}},
    )


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------

def test_init_writes_template(runner, tmp_path):
    out = tmp_path / "sonar-config.yaml"
    result = runner.invoke(cli, ["init", "--output", str(out)])
    assert result.exit_code == 0
    assert "report:" in out.read_text()


# ---------------------------------------------------------------------------
# pr-report
# ---------------------------------------------------------------------------

def test_pr_report_json(runner, config_file, diff_file, requests_mock):
    _mock_issues(requests_mock, ("BLOCKER", 2), ("INFO", 10))
    result = runner.invoke(cli, ["--config", config_file, "pr-report", "wcs", "42",
                                 "--diff", diff_file])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["project_key"]  == PROJECT
    assert payload["pull_request"] == "42"
    assert payload["status"]       == "FAILURE"
    assert payload["github_state"] == "error"
    assert payload["summary"]["out_of_diff"] == 1
    assert "#### 1 extra issue" in payload["markdown"]


def test_pr_report_status_format(runner, config_file, requests_mock):
    _mock_issues(requests_mock, ("MINOR", 2))
    result = runner.invoke(cli, ["--config", config_file, "pr-report", "wcs", "42",
                                 "--format", "status"])
    assert result.exit_code == 0
    assert result.output.strip() == "SonarQube reported 1 issue, none above CRITICAL level."


def test_pr_report_markdown_format_with_overrides(runner, config_file, requests_mock):
    _mock_issues(requests_mock, ("MINOR", 1), ("MINOR", 2), ("MINOR", 3))
    result = runner.invoke(cli, ["--config", config_file, "pr-report", "wcs", "42",
                                 "--format", "markdown", "--no-inline", "--max-issues", "2",
                                 "--severity", "minor"])
    assert result.exit_code == 0
    assert result.output.startswith("SonarQube analysis reported 3 issues\n")
    assert "#### Top 2 issues" in result.output


def test_pr_report_fail_on_error(runner, config_file, requests_mock):
    _mock_issues(requests_mock, ("CRITICAL", 2))
    result = runner.invoke(cli, ["--config", config_file, "pr-report", "wcs", "42",
                                 "--format", "status", "--fail-on-error"])
    assert result.exit_code == EXIT_ANALYSIS_FAILED
    assert "with 1 critical" in result.output


def test_pr_report_no_issues_succeeds_with_fail_on_error(runner, config_file, requests_mock):
    _mock_issues(requests_mock)
    result = runner.invoke(cli, ["--config", config_file, "pr-report", "wcs", "42",
                                 "--format", "markdown", "--fail-on-error"])
    assert result.exit_code == 0
    assert result.output.strip() == "SonarQube analysis reported no issues."


def test_pr_report_missing_diff_file(runner, config_file, tmp_path, requests_mock):
    _mock_issues(requests_mock)
    result = runner.invoke(cli, ["--config", config_file, "pr-report", "wcs", "42",
                                 "--diff", str(tmp_path / "nope.diff")])
    assert result.exit_code == 1
    assert "Diff file not found" in result.output


def test_pr_report_authentication_error(runner, config_file, requests_mock):
    requests_mock.get(f"{BASE}/api/issues/search", status_code=401)
    result = runner.invoke(cli, ["--config", config_file, "pr-report", "wcs", "42"])
    assert result.exit_code == 1
    assert "Authentication error" in result.output


def test_pr_report_writes_output_file(runner, config_file, tmp_path, requests_mock):
    _mock_issues(requests_mock, ("MAJOR", 5))
    out = tmp_path / "comment.md"
    result = runner.invoke(cli, ["--config", config_file, "--output", str(out),
                                 "pr-report", "wcs", "42", "--format", "markdown"])
    assert result.exit_code == 0
    assert out.read_text(encoding="utf-8").startswith("SonarQube analysis reported 1 issue\n")


def test_pr_report_accepts_latin1_diff(runner, config_file, tmp_path, requests_mock):
    _mock_issues(requests_mock, ("MAJOR", 1))
    diff = tmp_path / "latin1.diff"
    diff.write_bytes(b"+++ b/src/Foo.java\n@@ -1 +1 @@\n+caf\xe9\n")
    result = runner.invoke(cli, ["--config", config_file, "pr-report", "wcs", "42",
                                 "--diff", str(diff), "--format", "json"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["summary"]["out_of_diff"] == 0


# ---------------------------------------------------------------------------
# _make_client()
# ---------------------------------------------------------------------------

def test_make_client_returns_config_and_client(config_file):
    import click

    from sonar_pr_report.cli import _make_client
    from sonar_pr_report.client import SonarClient
    from sonar_pr_report.config import Config

    ctx = click.Context(cli, obj={"config_path": config_file, "verbose": False})
    config, client = _make_client(ctx)
    assert isinstance(config, Config)
    assert isinstance(client, SonarClient)
    assert client.base_url == BASE
