"""Form backend: hosted endpoints for third-party HTML forms."""

__version__ = "1.0.0"
