"""Read-only SSO directory cache."""

__version__ = "0.1.0"
