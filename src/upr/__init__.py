"""upr: report CI results back to GitHub pull requests."""

__version__ = "0.1.0"
