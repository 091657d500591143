"""Configuration management for upr."""

import contextvars
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from upr.core.exceptions import ConfigurationError

DEFAULT_CONFIG_FILE = "config.yaml"
DEFAULT_GITHUB_API_URL = "https://api.github.com"

STATUS_STATES = ("pending", "success", "failure", "error")

# Config file picked for the Settings instance currently being built
config_file_context: contextvars.ContextVar[str] = contextvars.ContextVar(
    "config_file", default=DEFAULT_CONFIG_FILE
)


class BackendKind(str, Enum):
    """Object store API used for uploads."""

    S3 = "s3"
    SWIFT = "swift"


class BackendConfig(BaseModel):
    """Resolved object store settings, validated before any network call."""

    model_config = ConfigDict(frozen=True)

    kind: BackendKind
    endpoint: str
    bucket: str
    region: Optional[str] = None
    identity: Optional[str] = None
    secret: Optional[str] = None
    expire_days: int = 0
    concurrency: int = 4

    def identity_parts(self) -> tuple[str, str]:
        """Split the identity into (tenant, username).

        Raises:
            ConfigurationError: If the identity is not formatted as tenant:username
        """
        if not self.identity or ":" not in self.identity:
            raise ConfigurationError(
                f"The 'uploads_identity' flag for '{BackendKind.SWIFT.value}' is formatted as 'tenant:username'"
            )
        tenant, username = self.identity.split(":", 1)
        return tenant, username


class Settings(BaseSettings):
    """Settings resolved from CLI flags, UPR_* environment variables and a YAML config file."""

    model_config = SettingsConfigDict(
        env_prefix="UPR_",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # GitHub
    token: Optional[str] = None
    owner: Optional[str] = None
    repo: Optional[str] = None
    commit: Optional[str] = None
    github_api_url: str = DEFAULT_GITHUB_API_URL

    # Status
    state: Optional[str] = None
    desc: str = ""
    context: Optional[str] = None
    url: str = ""

    # Comment
    pr_num: Optional[int] = None
    title: Optional[str] = None
    comment_file: Optional[str] = None
    template_dir: Optional[str] = None

    # Uploads
    uploads: Optional[str] = None
    uploads_api: Optional[str] = None
    uploads_endpoint: Optional[str] = None
    uploads_region: Optional[str] = None
    uploads_identity: Optional[str] = None
    uploads_secret: Optional[str] = None
    uploads_bucket: Optional[str] = None
    uploads_expire: int = Field(default=0, ge=0)
    uploads_concurrency: int = Field(default=4, gt=0)

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"  # "text" or "json"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # flag > env > config file > default
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=config_file_context.get()),
        )

    @property
    def api(self) -> Optional[str]:
        """Lower-cased uploads_api selector."""
        return self.uploads_api.lower() if self.uploads_api else None

    def comment_problems(self) -> list[str]:
        """Return usage problems for the comment command, empty when valid."""
        missing = self._missing("token", "owner", "repo")
        if self.commit is None and self.pr_num is None:
            missing.append("(commit || pr_num)")
        if self.comment_file is None:
            missing.append("comment_file")

        invalid: list[str] = []
        if self.uploads is not None:
            missing += self._missing("uploads_api", "uploads_endpoint", "uploads_bucket")
            apis = [kind.value for kind in BackendKind]
            if self.api not in apis:
                invalid.append(f"ERROR: The 'uploads_api' flag must be one of: {', '.join(apis)}")
            if self.api == BackendKind.SWIFT.value:
                missing += self._missing("uploads_identity", "uploads_secret")
                if self.uploads_identity is not None and ":" not in self.uploads_identity:
                    invalid.append(
                        f"ERROR: The 'uploads_identity' flag for '{BackendKind.SWIFT.value}' "
                        "is formatted as 'tenant:username'"
                    )
            if self.api == BackendKind.S3.value and self.uploads_region is None:
                missing.append("uploads_region")
                invalid.append(
                    f"ERROR: The 'uploads_region' flag is required when using the "
                    f"'{BackendKind.S3.value}' api for 'uploads'"
                )

        return self._usage(missing, invalid)

    def status_problems(self) -> list[str]:
        """Return usage problems for the status command, empty when valid."""
        missing = self._missing("token", "owner", "repo", "commit", "state", "context")
        invalid: list[str] = []
        if self.state is not None and self.state.lower() not in STATUS_STATES:
            invalid.append(f"ERROR: The 'state' flag must be one of: {', '.join(STATUS_STATES)}")
        return self._usage(missing, invalid)

    def backend_config(self) -> BackendConfig:
        """Build the immutable object store config from the uploads_* settings.

        Raises:
            ConfigurationError: If the uploads settings are incomplete
        """
        try:
            config = BackendConfig(
                kind=self.api or "",
                endpoint=self.uploads_endpoint or "",
                bucket=self.uploads_bucket or "",
                region=self.uploads_region,
                identity=self.uploads_identity,
                secret=self.uploads_secret,
                expire_days=self.uploads_expire,
                concurrency=self.uploads_concurrency,
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid uploads configuration: {e}") from e

        if not config.endpoint or not config.bucket:
            raise ConfigurationError("Both 'uploads_endpoint' and 'uploads_bucket' are required for uploads")
        if config.kind is BackendKind.SWIFT:
            config.identity_parts()
        return config

    def _missing(self, *names: str) -> list[str]:
        return [name for name in names if getattr(self, name) is None]

    @staticmethod
    def _usage(missing: list[str], invalid: list[str]) -> list[str]:
        problems = []
        if missing:
            problems.append(f"MISSING REQUIRED FLAGS: {', '.join(missing)}")
        return problems + invalid


def load_settings(config_file: Optional[str] = None, **overrides: Any) -> Settings:
    """Build Settings once at startup.

    Args:
        config_file: Optional YAML config path; defaults to ./config.yaml when present
        **overrides: Values given explicitly on the command line; None values are ignored

    Returns:
        Immutable Settings instance

    Raises:
        ConfigurationError: If the config file is missing or a value fails validation
    """
    if config_file and not Path(config_file).is_file():
        raise ConfigurationError(f"Config file not found: {config_file}")

    token = config_file_context.set(config_file or DEFAULT_CONFIG_FILE)
    try:
        return Settings(**{key: value for key, value in overrides.items() if value is not None})
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
    finally:
        config_file_context.reset(token)
