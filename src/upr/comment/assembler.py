"""Build and render the pull request comment body."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from jinja2 import (
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    PackageLoader,
    StrictUndefined,
    TemplateError,
)

from upr.core.config import Settings
from upr.core.exceptions import CommentError, RenderError
from upr.uploads.models import UploadGroup, UploadItem

logger = logging.getLogger(__name__)

COMMENT_TEMPLATE = "pr_comment.md.j2"


@dataclass
class CommentPayload:
    """Data handed to the comment template."""

    summary: str
    commit_id: Optional[str] = None
    title: Optional[str] = None
    uploads: Dict[str, List[UploadItem]] = field(default_factory=dict)
    uploads_expire: Optional[datetime] = None


def build_payload(
    settings: Settings,
    group: Optional[UploadGroup] = None,
    expires_at: Optional[datetime] = None,
) -> CommentPayload:
    """Assemble the comment payload from settings, uploads and expiry.

    Raises:
        CommentError: If the comment file cannot be read
    """
    comment_file = settings.comment_file or ""
    try:
        summary = Path(comment_file).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise CommentError(f"Failed reading comment_file '{comment_file}': {e}") from e

    return CommentPayload(
        summary=summary,
        commit_id=settings.commit,
        title=settings.title,
        uploads=group.as_dict() if group is not None else {},
        uploads_expire=expires_at,
    )


def _environment(template_dir: Optional[str] = None) -> Environment:
    loaders = [PackageLoader("upr", "templates")]
    if template_dir:
        loaders.insert(0, FileSystemLoader(template_dir))
    return Environment(
        loader=ChoiceLoader(loaders),
        undefined=StrictUndefined,
        autoescape=False,
    )


def render_comment(payload: CommentPayload, template_dir: Optional[str] = None) -> str:
    """Render the comment body.

    Args:
        payload: Assembled comment data
        template_dir: Directory whose pr_comment.md.j2 overrides the bundled one

    Returns:
        Markdown comment body

    Raises:
        RenderError: If the template is missing or fails to render
    """
    try:
        template = _environment(template_dir).get_template(COMMENT_TEMPLATE)
        body = template.render(comment=payload)
    except TemplateError as e:
        logger.error("Executing comment template failed", extra={"error": str(e)})
        raise RenderError(f"Executing template failed: {e}") from e
    return body
