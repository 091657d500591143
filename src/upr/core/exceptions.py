"""Custom exceptions for upr."""


class UprError(Exception):
    """Base exception for upr."""
    pass


class ConfigurationError(UprError):
    """Exception raised when required settings are missing or invalid."""
    pass


class GitHubError(UprError):
    """Exception raised when a GitHub API call fails."""
    pass


class AuthenticationError(UprError):
    """Exception raised when object store authentication fails."""
    pass


class BucketSetupError(UprError):
    """Exception raised when the bucket cannot be created, made public or given a lifecycle."""
    pass


class UploadError(UprError):
    """Exception raised when a single object upload fails."""
    pass


class CommentError(UprError):
    """Exception raised when the comment source file cannot be read."""
    pass


class RenderError(UprError):
    """Exception raised when the comment template fails to render."""
    pass
