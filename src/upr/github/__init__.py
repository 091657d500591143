"""GitHub API access: REST client and commit-to-PR resolution."""

from upr.github.client import GitHubClient
from upr.github.resolver import resolve_pull_requests, target_pull_requests

__all__ = [
    "GitHubClient",
    "resolve_pull_requests",
    "target_pull_requests",
]
