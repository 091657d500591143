"""Minimal GitHub REST client for pull requests, issue comments and commit statuses."""

import logging
from typing import Any, Dict, List, Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from upr.core.config import DEFAULT_GITHUB_API_URL
from upr.core.exceptions import GitHubError

logger = logging.getLogger(__name__)

PER_PAGE = 100


class GitHubClient:
    """Token-authenticated client for the handful of GitHub endpoints upr needs."""

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_GITHUB_API_URL,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            token: GitHub access token
            base_url: API root, override for GitHub Enterprise
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": "upr",
            },
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def list_pull_requests(self, owner: str, repo: str) -> List[Dict[str, Any]]:
        """List every open pull request of owner/repo."""
        return self._get_paginated(f"/repos/{owner}/{repo}/pulls", {"state": "open"})

    def list_pull_request_commits(self, owner: str, repo: str, number: int) -> List[Dict[str, Any]]:
        """List the commits of pull request ``number``."""
        return self._get_paginated(f"/repos/{owner}/{repo}/pulls/{number}/commits")

    def create_issue_comment(self, owner: str, repo: str, number: int, body: str) -> Dict[str, Any]:
        """Post ``body`` as a comment on the pull request's issue thread."""
        return self._post(f"/repos/{owner}/{repo}/issues/{number}/comments", {"body": body})

    def create_commit_status(
        self,
        owner: str,
        repo: str,
        sha: str,
        state: str,
        description: str = "",
        context: str = "default",
        target_url: str = "",
    ) -> Dict[str, Any]:
        """Create a status on commit ``sha``."""
        payload = {"state": state, "context": context}
        if description:
            payload["description"] = description
        if target_url:
            payload["target_url"] = target_url
        return self._post(f"/repos/{owner}/{repo}/statuses/{sha}", payload)

    def _get_paginated(self, path: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        results: List[Dict[str, Any]] = []
        url: Optional[str] = path
        query: Optional[Dict[str, Any]] = {**(params or {}), "per_page": PER_PAGE}
        while url:
            response = self._get(url, query)
            results.extend(response.json())
            next_link = response.links.get("next")
            url = next_link["url"] if next_link else None
            query = None  # the next link already carries the query string
        return results

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    def _send_get(self, url: str, params: Optional[Dict[str, Any]]) -> httpx.Response:
        return self._client.get(url, params=params)

    def _get(self, url: str, params: Optional[Dict[str, Any]]) -> httpx.Response:
        try:
            response = self._send_get(url, params)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("GitHub request failed", extra={"method": "GET", "url": url, "error": str(e)})
            raise GitHubError(f"GET {url} failed: {e}") from e
        return response

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self._client.post(path, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("GitHub request failed", extra={"method": "POST", "url": path, "error": str(e)})
            raise GitHubError(f"POST {path} failed: {e}") from e
        return response.json()
