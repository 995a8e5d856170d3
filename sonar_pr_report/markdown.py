"""Markdown snippets for GitHub pull request comments.

Usage:
    md = MarkdownUtils("https://sonar.example.com")
    md.inline_issue("MAJOR", "Remove this unused import.", "python:S1128")
    md.global_issue("MAJOR", "Remove this unused import.", "python:S1128",
                    url=None, component_key="proj:src/app.py")
"""

from urllib.parse import quote

IMAGES_ROOT_URL = "https://sonarsource.github.io/sonar-github/"


class MarkdownUtils:
    """Renders issue lines with severity icons and a link to the rule page."""

    def __init__(self, sonar_url: str) -> None:
        base = sonar_url if sonar_url.endswith("/") else sonar_url + "/"
        self._rule_url_prefix = base

    @staticmethod
    def severity_image(severity: str) -> str:
        return f"![{severity}]({IMAGES_ROOT_URL}severity-{severity.lower()}.png)"

    def rule_link(self, rule_key: str) -> str:
        encoded = quote(rule_key, safe="")
        return (
            f"[![rule]({IMAGES_ROOT_URL}rule.png)]"
            f"({self._rule_url_prefix}coding_rules#rule_key={encoded})"
        )

    def inline_issue(self, severity: str, message: str, rule_key: str) -> str:
        """Body of an inline review comment for an issue on a diff line."""
        return f"{self.severity_image(severity)} {message} {self.rule_link(rule_key)}"

    def global_issue(
        self,
        severity: str,
        message: str,
        rule_key: str,
        url: str | None,
        component_key: str,
    ) -> str:
        """One issue of the global summary.

        The message links to *url* when given, otherwise the component key
        is shown next to it.
        """
        if url is not None:
            text = f"[{message}]({url})"
        else:
            text = f"{message} ({component_key})"
        return f"{self.severity_image(severity)} {text} {self.rule_link(rule_key)}"
