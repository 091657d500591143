"""upr: post CI statuses and comments to GitHub pull requests."""

import logging
from typing import Any, Callable, Optional

import typer

from upr.core.config import load_settings
from upr.core.exceptions import ConfigurationError, UprError
from upr.core.logging import setup_logging
from upr.github.client import GitHubClient
from upr.services.orchestrator import post_comment, post_status

logger = logging.getLogger(__name__)

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help=(
        "A command line tool to manipulate pull requests on GitHub.\n\n"
        "This tool is designed to be integrated into a CI implementation "
        "in order to update the Status or add a Comment."
    ),
)


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(None, "--config", help="config file (default is ./config.yaml)"),
    commit: Optional[str] = typer.Option(None, "--commit", "-c", help="commit you are working with"),
    token: Optional[str] = typer.Option(None, "--token", help="required: GitHub access token"),
    owner: Optional[str] = typer.Option(None, "--owner", help="required: owner of the repo you are working with"),
    repo: Optional[str] = typer.Option(None, "--repo", help="required: name of the repo you are working with"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="log level (default INFO)"),
    log_format: Optional[str] = typer.Option(None, "--log-format", help="log format: text | json"),
) -> None:
    ctx.obj = {
        "config": config,
        "commit": commit,
        "token": token,
        "owner": owner,
        "repo": repo,
        "log_level": log_level,
        "log_format": log_format,
    }


def _usage_exit(ctx: typer.Context, message: str) -> None:
    typer.echo(f"\n{message}\n", err=True)
    typer.echo(ctx.get_help())
    raise typer.Exit(code=1)


def _run(ctx: typer.Context, command: Callable[..., Any], **options: Any) -> None:
    overrides = {**(ctx.obj or {}), **options}
    config_file = overrides.pop("config", None)
    try:
        settings = load_settings(config_file, **overrides)
    except ConfigurationError as e:
        _usage_exit(ctx, str(e))

    setup_logging(settings.log_level, settings.log_format)
    if config_file:
        logger.info(f"Using config file: {config_file}")

    with GitHubClient(settings.token or "", settings.github_api_url) as client:
        try:
            command(settings, client)
        except ConfigurationError as e:
            _usage_exit(ctx, str(e))
        except UprError as e:
            logger.error(f"ERROR: {e}")
            raise typer.Exit(code=1)


@app.command()
def comment(
    ctx: typer.Context,
    pr_num: Optional[int] = typer.Option(
        None, "--pr_num", "-n", help="required unless 'commit' isset: pull request number on which to comment on"
    ),
    comment_file: Optional[str] = typer.Option(
        None, "--comment_file", "-f", help="required: file which includes the comment text"
    ),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="the title of the comment"),
    template_dir: Optional[str] = typer.Option(
        None, "--template_dir", help="directory with a custom pr_comment.md.j2 template"
    ),
    uploads: Optional[str] = typer.Option(
        None, "--uploads", "-u", help="comma separated list of files or directories to be recursively uploaded"
    ),
    uploads_api: Optional[str] = typer.Option(
        None, "--uploads_api", help="required if 'uploads' isset: api to use to upload to an object store (s3 | swift)"
    ),
    uploads_endpoint: Optional[str] = typer.Option(
        None, "--uploads_endpoint", help="required if 'uploads' isset: object store url endpoint"
    ),
    uploads_region: Optional[str] = typer.Option(
        None, "--uploads_region", help="upload region when using the 's3' api"
    ),
    uploads_identity: Optional[str] = typer.Option(
        None,
        "--uploads_identity",
        help="s3: access key (or ~/.aws/credentials, AWS_ACCESS_KEY_ID); swift: keystone identity as 'tenant:username'",
    ),
    uploads_secret: Optional[str] = typer.Option(
        None,
        "--uploads_secret",
        help="s3: secret key (or ~/.aws/credentials, AWS_SECRET_ACCESS_KEY); swift: keystone password",
    ),
    uploads_bucket: Optional[str] = typer.Option(
        None, "--uploads_bucket", "-b", help="required if 'uploads' isset: bucket to upload the files to (will be made public)"
    ),
    uploads_expire: Optional[int] = typer.Option(
        None, "--uploads_expire", "-e", help="optional number of days to keep the uploaded files before they are removed"
    ),
    uploads_concurrency: Optional[int] = typer.Option(
        None, "--uploads_concurrency", help="number of files to be uploaded concurrently (default 4)"
    ),
) -> None:
    """Add a comment to a pull request on GitHub.

    Optionally, files can be made public by uploading them to an object store
    using either the Swift or S3 API.
    """
    _run(
        ctx,
        post_comment,
        pr_num=pr_num,
        comment_file=comment_file,
        title=title,
        template_dir=template_dir,
        uploads=uploads,
        uploads_api=uploads_api,
        uploads_endpoint=uploads_endpoint,
        uploads_region=uploads_region,
        uploads_identity=uploads_identity,
        uploads_secret=uploads_secret,
        uploads_bucket=uploads_bucket,
        uploads_expire=uploads_expire,
        uploads_concurrency=uploads_concurrency,
    )


@app.command()
def status(
    ctx: typer.Context,
    state: Optional[str] = typer.Option(
        None, "--state", "-s", help="required: pull request state (pending | success | failure | error)"
    ),
    desc: Optional[str] = typer.Option(None, "--desc", "-d", help="a short description of the environment context"),
    context: Optional[str] = typer.Option(
        None, "--context", "-x", help="required: the contextual identifier for this status"
    ),
    url: Optional[str] = typer.Option(None, "--url", "-u", help="a reference url for more information about this status"),
) -> None:
    """Add or update the status of a commit on GitHub."""
    _run(ctx, post_status, state=state, desc=desc, context=context, url=url)


if __name__ == "__main__":
    app()
