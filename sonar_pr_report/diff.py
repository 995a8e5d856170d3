"""Unified diff parsing.

GitHub only accepts review comments on lines shown in the pull request diff,
that is added lines and context lines inside a hunk. ``DiffPositions`` answers
whether an issue sits on such a line.

Usage:
    positions = DiffPositions.from_file("pr.diff")
    positions.contains("src/Foo.java", 42)
"""

import re
from pathlib import Path

from sonar_pr_report.config import ConfigError
from sonar_pr_report.models import Issue

HUNK_HEADER_PATTERN = re.compile(
    r"^@@ -(?P<base_start>\d+)(?:,(?P<base_count>\d+))? "
    r"\+(?P<head_start>\d+)(?:,(?P<head_count>\d+))? @@"
)


def parse_unified_diff(text: str) -> dict[str, set[int]]:
    """Map each new-side file path to its commentable line numbers.

    Hunk bodies are consumed by the line counts of their ``@@`` header, so
    content lines that look like ``+++``/``---`` file headers stay content.
    """
    lines_by_path: dict[str, set[int]] = {}
    current: set[int] | None = None
    head_line = 0
    base_left = head_left = 0

    for line in text.splitlines():
        if base_left > 0 or head_left > 0:
            if line.startswith("\\"):
                continue
            marker = line[:1]
            if marker == "-":
                base_left -= 1
                continue
            if marker == "+":
                head_left -= 1
            else:
                # context line; some tools strip the leading space of blank ones
                base_left -= 1
                head_left -= 1
            if current is not None:
                current.add(head_line)
            head_line += 1
            continue

        header = HUNK_HEADER_PATTERN.match(line)
        if header is not None:
            base_left = int(header.group("base_count") or 1)
            head_left = int(header.group("head_count") or 1)
            head_line = int(header.group("head_start"))
            continue

        if line.startswith("diff --git"):
            current = None
        elif line.startswith("+++ "):
            target = line[4:].split("\t", 1)[0].strip()
            if target == "/dev/null":
                current = None
            else:
                if target.startswith("b/"):
                    target = target[2:]
                current = lines_by_path.setdefault(target, set())

    return lines_by_path


class DiffPositions:
    """Commentable lines of a pull request, keyed by file path."""

    def __init__(self, lines_by_path: dict[str, set[int]] | None = None) -> None:
        self._lines = lines_by_path or {}

    @classmethod
    def from_text(cls, text: str) -> "DiffPositions":
        return cls(parse_unified_diff(text))

    @classmethod
    def from_file(cls, diff_path: str) -> "DiffPositions":
        """Read a unified diff file.

        Raises:
            ConfigError: if the file does not exist.
        """
        path = Path(diff_path)
        if not path.exists():
            raise ConfigError(f"Diff file not found: '{diff_path}'")
        # Only the diff markers matter, undecodable source bytes are replaced
        return cls.from_text(path.read_text(encoding="utf-8", errors="replace"))

    @property
    def paths(self) -> set[str]:
        return set(self._lines)

    def contains(self, path: str, line: int | None) -> bool:
        if path not in self._lines:
            return False
        # File-level issues can be attached to the file itself
        if line is None:
            return True
        return line in self._lines[path]

    def contains_issue(self, issue: Issue) -> bool:
        return self.contains(issue.path, issue.line)
