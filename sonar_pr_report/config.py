"""Configuration for the pull request reporter.

Usage:
    config = load("sonar-config.yaml")     # ConfigError on a bad file
    config.resolve_project("wcs")          # alias -> SonarQube project key
    generate_template("sonar-config.yaml")
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from sonar_pr_report.models import SEVERITIES

#: Default cap on issues listed in the global (out-of-diff) summary
MAX_GLOBAL_ISSUES = 10
DEFAULT_FAILURE_SEVERITY = "CRITICAL"


class ConfigError(Exception):
    """The configuration file or one of its values is unusable."""


class ProjectNotFoundError(ConfigError):
    """No project alias or key matches the requested name."""


class InvalidConfigurationError(ConfigError):
    """The failure severity is not a SonarQube issue level."""


def check_severity(severity: str) -> int:
    """Return the index of *severity* in SEVERITIES.

    Raises:
        InvalidConfigurationError: if the name is not an issue level.
    """
    if severity not in SEVERITIES:
        raise InvalidConfigurationError(f"Severity level: {severity} is not an issue level.")
    return SEVERITIES.index(severity)


@dataclass
class Config:
    url: str
    token: str
    projects: dict[str, str] = field(default_factory=dict)
    github_url: str | None = None
    failure_severity: str = DEFAULT_FAILURE_SEVERITY
    max_global_issues: int = MAX_GLOBAL_ISSUES
    inline_comments: bool = True

    def resolve_project(self, name: str) -> str:
        """Map an alias to its project key; a known key maps to itself."""
        key = self.projects.get(name)
        if key is None and name in self.projects.values():
            key = name
        if key is None:
            aliases = ", ".join(sorted(self.projects)) or "none"
            raise ProjectNotFoundError(f"Unknown project '{name}' (aliases: {aliases})")
        return key


def load(config_path: str = "sonar-config.yaml") -> Config:
    """Read and validate *config_path*.

    SONAR_URL, SONAR_TOKEN and SONAR_FAILURE_SEVERITY take precedence over
    the file.

    Raises:
        ConfigError: missing or unparsable file, or invalid values.
        InvalidConfigurationError: unknown failure severity.
    """
    path = Path(config_path)
    if not path.is_file():
        raise ConfigError(
            f"Config file not found: '{config_path}'. "
            "Create one with `sonar-pr-report init`."
        )
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"'{config_path}' is not valid YAML: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"'{config_path}' must contain a YAML mapping.")

    server = _section(raw, "server")
    report = _section(raw, "report")
    severity = (os.environ.get("SONAR_FAILURE_SEVERITY")
                or report.get("failure_severity")
                or DEFAULT_FAILURE_SEVERITY)

    config = Config(
        url=str(os.environ.get("SONAR_URL") or server.get("url") or "").strip(),
        token=str(os.environ.get("SONAR_TOKEN") or server.get("token") or "").strip(),
        projects=raw.get("projects") or {},
        github_url=_section(raw, "github").get("url") or None,
        failure_severity=str(severity).strip().upper(),
        max_global_issues=report.get("max_global_issues", MAX_GLOBAL_ISSUES),
        inline_comments=report.get("inline_comments", True),
    )
    _validate(config)
    return config


def _section(raw: dict, name: str) -> dict[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' must be a mapping")
    return value


def _validate(config: Config) -> None:
    problems: list[str] = []
    if not config.url:
        problems.append("server.url is required (or SONAR_URL)")
    if not config.token:
        problems.append("server.token is required (or SONAR_TOKEN)")
    if not config.projects:
        problems.append("projects needs at least one alias")
    # bool is an int subclass
    cap = config.max_global_issues
    if isinstance(cap, bool) or not isinstance(cap, int) or cap < 0:
        problems.append("report.max_global_issues must be a non-negative integer")
    if not isinstance(config.inline_comments, bool):
        problems.append("report.inline_comments must be true or false")

    if problems:
        raise ConfigError("Invalid configuration: " + "; ".join(problems))

    check_severity(config.failure_severity)


TEMPLATE = """\
server:
  url: "https://sonar.example.com"
  token: "squ_xxxxxxxxxxxx"

projects:
  # alias: SonarQube project key
  my-project: "com.example.my-project"

github:
  # Optional. Issues outside the diff link to <url>/<path>#L<line>
  url: "https://github.com/example/my-project/blob/main"

report:
  failure_severity: CRITICAL    # INFO, MINOR, MAJOR, CRITICAL or BLOCKER
  max_global_issues: 10         # issues listed in the summary comment
  inline_comments: true
"""


def generate_template(output_path: str = "sonar-config.yaml") -> None:
    """Write TEMPLATE to *output_path*.

    Raises:
        ConfigError: if the file exists; it may hold a token.
    """
    path = Path(output_path)
    if path.exists():
        raise ConfigError(f"'{output_path}' already exists, not overwriting it.")
    path.write_text(TEMPLATE, encoding="utf-8")
