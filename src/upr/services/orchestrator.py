"""Orchestrate the comment and status commands."""

import logging
from datetime import datetime
from typing import List, Optional

from upr.comment.assembler import build_payload, render_comment
from upr.core.config import Settings
from upr.core.exceptions import ConfigurationError
from upr.github.client import GitHubClient
from upr.github.resolver import target_pull_requests
from upr.uploads.collector import collect_uploads
from upr.uploads.models import UploadGroup
from upr.uploads.scheduler import upload_files

logger = logging.getLogger(__name__)


def _require_valid(problems: List[str]) -> None:
    if problems:
        raise ConfigurationError("\n".join(problems))


def post_comment(settings: Settings, client: GitHubClient, now: Optional[datetime] = None) -> List[int]:
    """Comment on every PR matching the commit (and/or pr_num).

    Uploads happen only once at least one PR was found. The comment is
    rendered once and the same body is posted to each PR.

    Args:
        settings: Resolved settings
        client: GitHub client
        now: Reference time for the upload expiry

    Returns:
        PR numbers that were commented on; empty when none matched

    Raises:
        ConfigurationError: If required settings are missing or invalid
        GitHubError: If listing PRs or posting a comment fails
        AuthenticationError: If the object store rejects the credentials
        BucketSetupError: If the bucket cannot be prepared
        CommentError: If the comment file cannot be read
        RenderError: If the template fails to render
    """
    _require_valid(settings.comment_problems())
    if settings.uploads is not None:
        # catch backend config errors before any network call
        settings.backend_config()

    prs = target_pull_requests(client, settings)
    if not prs:
        logger.info("NOTICE: No PRs were found matching your query, nothing done...")
        return []

    group: Optional[UploadGroup] = None
    expires_at: Optional[datetime] = None
    if settings.uploads is not None:
        group = collect_uploads(settings.uploads)
        expires_at = upload_files(group, settings, now)

    payload = build_payload(settings, group, expires_at)
    body = render_comment(payload, settings.template_dir)

    for number in prs:
        logger.info(f"Updating PR '{number}' with details.", extra={"pull_request": number})
        client.create_issue_comment(settings.owner, settings.repo, number, body)

    logger.info("Finished commenting on pull request(s)!", extra={"pull_requests": prs})
    return prs


def post_status(settings: Settings, client: GitHubClient) -> None:
    """Create the configured commit status.

    Raises:
        ConfigurationError: If required settings are missing or invalid
        GitHubError: If the status cannot be created
    """
    _require_valid(settings.status_problems())
    client.create_commit_status(
        settings.owner,
        settings.repo,
        settings.commit,
        state=settings.state.lower(),
        description=settings.desc,
        context=settings.context,
        target_url=settings.url,
    )
    logger.info("Successfully updated the status!", extra={"commit": settings.commit})
