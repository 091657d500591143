"""End-to-end tests for the comment and status flows."""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from upr.core.exceptions import BucketSetupError, ConfigurationError, GitHubError
from upr.services.orchestrator import post_comment, post_status


@pytest.fixture
def github():
    """GitHub client mock where commit abc123 belongs to PR 3 only."""
    client = MagicMock()
    client.list_pull_requests.return_value = [{"number": 2}, {"number": 3}]
    client.list_pull_request_commits.side_effect = lambda owner, repo, number: (
        [{"sha": "abc123"}] if number == 3 else [{"sha": "fff000"}]
    )
    return client


@pytest.fixture
def comment_file(tmp_path):
    path = tmp_path / "comment.md"
    path.write_text("Build passed.")
    return str(path)


def test_comment_without_uploads(github, make_settings, comment_file):
    settings = make_settings(commit="abc123", comment_file=comment_file)

    prs = post_comment(settings, github)

    assert prs == [3]
    github.create_issue_comment.assert_called_once()
    owner, repo, number, body = github.create_issue_comment.call_args.args
    assert (owner, repo, number) == ("acme", "widgets", 3)
    assert "Build passed." in body
    assert "Uploaded files" not in body


def test_comment_posts_same_body_to_each_pr(github, make_settings, comment_file):
    settings = make_settings(commit="abc123", pr_num=9, comment_file=comment_file, title="CI")

    prs = post_comment(settings, github)

    assert prs == [9, 3]
    bodies = [call.args[3] for call in github.create_issue_comment.call_args_list]
    assert [call.args[2] for call in github.create_issue_comment.call_args_list] == [9, 3]
    assert bodies[0] == bodies[1]


def test_no_matching_pr_is_a_notice(github, make_settings, comment_file, caplog):
    settings = make_settings(
        commit="nothere",
        comment_file=comment_file,
        uploads="build",
        uploads_api="s3",
        uploads_endpoint="https://store.example.com/",
        uploads_region="us-east-1",
        uploads_bucket="ci-artifacts",
    )

    with patch("upr.services.orchestrator.upload_files") as mock_upload:
        with caplog.at_level("INFO"):
            assert post_comment(settings, github) == []

    mock_upload.assert_not_called()
    github.create_issue_comment.assert_not_called()
    assert "NOTICE: No PRs were found matching your query, nothing done..." in caplog.text


def test_comment_with_uploads(github, make_settings, comment_file, artifact_tree, fake_backend):
    settings = make_settings(
        commit="abc123",
        comment_file=comment_file,
        uploads="build, notes.txt",
        uploads_api="s3",
        uploads_endpoint="https://store.example.com/",
        uploads_region="us-east-1",
        uploads_bucket="ci-artifacts",
        uploads_expire=2,
    )
    fake_backend.fail_keys = {"build/logs/b.log"}
    now = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)

    with patch("upr.uploads.scheduler.create_backend", return_value=fake_backend):
        post_comment(settings, github, now=now)

    body = github.create_issue_comment.call_args.args[3]
    assert "[report.html](https://store.example.com/ci-artifacts/build/report.html)" in body
    assert "[notes.txt](https://store.example.com/ci-artifacts/notes.txt)" in body
    assert "b.log (not available)" in body
    assert "2024-03-13" in body


def test_bucket_setup_failure_aborts_before_posting(github, make_settings, comment_file, artifact_tree, fake_backend):
    settings = make_settings(
        pr_num=3,
        comment_file=comment_file,
        uploads="build",
        uploads_api="s3",
        uploads_endpoint="https://store.example.com/",
        uploads_region="us-east-1",
        uploads_bucket="ci-artifacts",
    )
    fake_backend.make_public = MagicMock(side_effect=BucketSetupError("not public"))

    with patch("upr.uploads.scheduler.create_backend", return_value=fake_backend):
        with pytest.raises(BucketSetupError):
            post_comment(settings, github)

    assert fake_backend.puts == []
    github.create_issue_comment.assert_not_called()


def test_invalid_settings_fail_before_network(github, make_settings, comment_file):
    settings = make_settings(
        pr_num=3,
        comment_file=comment_file,
        uploads="build",
        uploads_api="swift",
        uploads_endpoint="https://keystone.example.com/v2.0",
        uploads_bucket="ci",
        uploads_identity="no-separator",
        uploads_secret="pw",
    )

    with pytest.raises(ConfigurationError, match="tenant:username"):
        post_comment(settings, github)

    github.list_pull_requests.assert_not_called()
    github.create_issue_comment.assert_not_called()


def test_listing_error_is_fatal(github, make_settings, comment_file):
    github.list_pull_requests.side_effect = GitHubError("GET failed")

    with pytest.raises(GitHubError):
        post_comment(make_settings(commit="abc123", comment_file=comment_file), github)
    github.create_issue_comment.assert_not_called()


def test_post_status(make_settings):
    client = MagicMock()
    settings = make_settings(
        commit="abc123", state="Success", context="ci/unit", desc="all green", url="https://ci.example.com/1"
    )

    post_status(settings, client)

    client.create_commit_status.assert_called_once_with(
        "acme",
        "widgets",
        "abc123",
        state="success",
        description="all green",
        context="ci/unit",
        target_url="https://ci.example.com/1",
    )


def test_post_status_invalid_state(make_settings):
    client = MagicMock()

    with pytest.raises(ConfigurationError, match="'state' flag"):
        post_status(make_settings(commit="abc123", state="green", context="ci"), client)
    client.create_commit_status.assert_not_called()
