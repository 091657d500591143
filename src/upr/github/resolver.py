"""Map a commit to the pull requests that contain it."""

import logging
from typing import List

from upr.core.config import Settings
from upr.github.client import GitHubClient

logger = logging.getLogger(__name__)


def resolve_pull_requests(client: GitHubClient, owner: str, repo: str, commit: str) -> List[int]:
    """Return the numbers of open PRs whose commit list contains ``commit``.

    Numbers are unique and in listing order. Listing errors propagate as
    GitHubError; no partial result is returned.
    """
    matches: List[int] = []
    for pull in client.list_pull_requests(owner, repo):
        number = pull["number"]
        commits = client.list_pull_request_commits(owner, repo, number)
        if any(pr_commit.get("sha") == commit for pr_commit in commits) and number not in matches:
            matches.append(number)

    logger.info(
        f"Commit matched {len(matches)} pull request(s)",
        extra={"commit": commit, "pull_requests": matches},
    )
    return matches


def target_pull_requests(client: GitHubClient, settings: Settings) -> List[int]:
    """Return the PRs to comment on: pr_num (if set) plus every PR containing the commit."""
    targets: List[int] = []
    if settings.pr_num is not None:
        targets.append(settings.pr_num)
    if settings.commit is not None:
        for number in resolve_pull_requests(client, settings.owner, settings.repo, settings.commit):
            if number not in targets:
                targets.append(number)
    return targets
