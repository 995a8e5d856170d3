"""SonarQube issue search client.

Usage:
    client = SonarClient.from_config(config)
    for raw in client.iter_issues({"componentKeys": "my-project", "pullRequest": "42"}):
        ...
"""

import warnings
from typing import TYPE_CHECKING, Any, Iterator

import requests

if TYPE_CHECKING:
    from sonar_pr_report.config import Config

ISSUES_ENDPOINT = "/api/issues/search"
PAGE_SIZE = 500
#: /api/issues/search refuses to page past this many results
MAX_SEARCH_RESULTS = 10_000


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class SonarClientError(Exception):
    """SonarQube answered with an unexpected status."""


class AuthenticationError(SonarClientError):
    """HTTP 401: the analysis token was rejected."""


class NotFoundError(SonarClientError):
    """HTTP 404: unknown project or pull request."""


class NetworkError(SonarClientError):
    """The server could not be reached in time."""


_STATUS_ERRORS: dict[int, type[SonarClientError]] = {
    401: AuthenticationError,
    404: NotFoundError,
}


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class SonarClient:
    """Reads analysis issues from a SonarQube server."""

    def __init__(self, url: str, token: str, timeout: int = 30) -> None:
        self.base_url = url.rstrip("/")
        self._timeout = timeout
        self._session = requests.Session()
        # Tokens go in the username field with an empty password
        self._session.auth = (token, "")

    @classmethod
    def from_config(cls, config: "Config", timeout: int = 30) -> "SonarClient":
        return cls(url=config.url, token=config.token, timeout=timeout)

    def search_issues(self, params: dict[str, Any]) -> list[dict]:
        """Return every issue matching *params*, all pages joined."""
        return list(self.iter_issues(params))

    def iter_issues(self, params: dict[str, Any]) -> Iterator[dict]:
        """Yield raw issues page by page.

        Warns once when the server reports more matches than the search
        endpoint is able to page through.
        """
        page = 1
        seen = 0
        while True:
            body = self._get(ISSUES_ENDPOINT, {**params, "p": page, "ps": PAGE_SIZE})
            issues = body.get("issues", [])
            total = body.get("paging", {}).get("total", seen + len(issues))
            if page == 1 and total > MAX_SEARCH_RESULTS:
                warnings.warn(
                    f"{total} issues match but SonarQube only pages through the "
                    f"first {MAX_SEARCH_RESULTS}; the report will be incomplete.",
                    UserWarning,
                    stacklevel=2,
                )
            yield from issues
            seen += len(issues)
            if not issues or seen >= total:
                return
            page += 1

    def _get(self, endpoint: str, params: dict[str, Any]) -> dict:
        url = self.base_url + endpoint
        try:
            response = self._session.get(url, params=params, timeout=self._timeout)
        except requests.exceptions.Timeout as exc:
            raise NetworkError(f"No answer from {self.base_url} within {self._timeout}s") from exc
        except requests.exceptions.ConnectionError as exc:
            raise NetworkError(f"Cannot connect to {self.base_url}") from exc

        if response.ok:
            return response.json()
        error = _STATUS_ERRORS.get(response.status_code, SonarClientError)
        raise error(f"GET {endpoint} returned HTTP {response.status_code}: {response.text[:200]}")
