"""Tests for settings loading and usage validation."""

import pytest

from upr.core.config import BackendKind, Settings, load_settings
from upr.core.exceptions import ConfigurationError

UPLOADS_S3 = {
    "uploads": "build",
    "uploads_api": "S3",
    "uploads_endpoint": "https://s3.example.com",
    "uploads_region": "us-east-1",
    "uploads_bucket": "ci-artifacts",
}


class TestLoadSettings:
    """Tests for settings precedence."""

    def test_defaults(self):
        settings = load_settings()

        assert settings.uploads_concurrency == 4
        assert settings.uploads_expire == 0
        assert settings.token is None

    def test_config_file_env_and_flags(self, tmp_path, monkeypatch):
        config = tmp_path / "upr.yaml"
        config.write_text("owner: from-file\nrepo: from-file\ntoken: from-file\n")
        monkeypatch.setenv("UPR_REPO", "from-env")
        monkeypatch.setenv("UPR_TOKEN", "from-env")

        settings = load_settings(str(config), token="from-flag", owner=None)

        assert settings.owner == "from-file"
        assert settings.repo == "from-env"
        assert settings.token == "from-flag"

    def test_default_config_file_in_cwd(self, tmp_path):
        (tmp_path / "config.yaml").write_text("owner: acme\nuploads_concurrency: 8\n")

        settings = load_settings()

        assert settings.owner == "acme"
        assert settings.uploads_concurrency == 8

    def test_missing_config_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Config file not found"):
            load_settings(str(tmp_path / "absent.yaml"))

    def test_invalid_concurrency(self):
        with pytest.raises(ConfigurationError):
            load_settings(uploads_concurrency=0)


class TestCommentProblems:
    """Tests for comment command validation."""

    def test_valid(self, make_settings):
        assert make_settings(commit="abc123", comment_file="c.md").comment_problems() == []

    def test_missing_required(self):
        problems = Settings().comment_problems()

        assert problems == ["MISSING REQUIRED FLAGS: token, owner, repo, (commit || pr_num), comment_file"]

    def test_uploads_invalid_api(self, make_settings):
        settings = make_settings(pr_num=1, comment_file="c.md", **{**UPLOADS_S3, "uploads_api": "ftp"})

        problems = settings.comment_problems()

        assert "ERROR: The 'uploads_api' flag must be one of: s3, swift" in problems

    def test_swift_identity_format(self, make_settings):
        settings = make_settings(
            pr_num=1,
            comment_file="c.md",
            uploads="build",
            uploads_api="swift",
            uploads_endpoint="https://keystone.example.com/v2.0",
            uploads_bucket="ci",
            uploads_identity="bob",
            uploads_secret="pw",
        )

        problems = settings.comment_problems()

        assert any("tenant:username" in problem for problem in problems)

    def test_swift_requires_credentials(self, make_settings):
        settings = make_settings(
            pr_num=1,
            comment_file="c.md",
            uploads="build",
            uploads_api="swift",
            uploads_endpoint="https://keystone.example.com/v2.0",
            uploads_bucket="ci",
        )

        assert settings.comment_problems() == ["MISSING REQUIRED FLAGS: uploads_identity, uploads_secret"]

    def test_s3_requires_region(self, make_settings):
        settings = make_settings(pr_num=1, comment_file="c.md", **{**UPLOADS_S3, "uploads_region": None})

        problems = settings.comment_problems()

        assert problems[0] == "MISSING REQUIRED FLAGS: uploads_region"
        assert "uploads_region" in problems[1]


class TestStatusProblems:
    """Tests for status command validation."""

    def test_valid_state_is_case_insensitive(self, make_settings):
        settings = make_settings(commit="abc123", state="SUCCESS", context="ci")

        assert settings.status_problems() == []

    def test_invalid_state(self, make_settings):
        problems = make_settings(commit="abc123", state="done", context="ci").status_problems()

        assert problems == ["ERROR: The 'state' flag must be one of: pending, success, failure, error"]

    def test_missing_fields(self, make_settings):
        assert make_settings().status_problems() == ["MISSING REQUIRED FLAGS: commit, state, context"]


class TestBackendConfig:
    """Tests for the derived backend config."""

    def test_s3(self, make_settings):
        config = make_settings(uploads_expire=3, uploads_concurrency=2, **UPLOADS_S3).backend_config()

        assert config.kind is BackendKind.S3
        assert config.bucket == "ci-artifacts"
        assert config.expire_days == 3
        assert config.concurrency == 2

    def test_is_immutable(self, make_settings):
        config = make_settings(**UPLOADS_S3).backend_config()

        with pytest.raises(Exception):
            config.bucket = "other"

    def test_swift_identity_parts(self, make_settings):
        config = make_settings(
            uploads_api="swift",
            uploads_endpoint="https://keystone.example.com/v2.0",
            uploads_bucket="ci",
            uploads_identity="ci-tenant:bob:extra",
            uploads_secret="pw",
        ).backend_config()

        assert config.identity_parts() == ("ci-tenant", "bob:extra")

    def test_swift_bad_identity(self, make_settings):
        settings = make_settings(
            uploads_api="swift",
            uploads_endpoint="https://keystone.example.com/v2.0",
            uploads_bucket="ci",
            uploads_identity="bob",
        )

        with pytest.raises(ConfigurationError, match="tenant:username"):
            settings.backend_config()

    def test_unknown_api(self, make_settings):
        with pytest.raises(ConfigurationError):
            make_settings(**{**UPLOADS_S3, "uploads_api": "ftp"}).backend_config()
