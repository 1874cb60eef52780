"""Daily check-in and redemption code reward service."""

__version__ = "1.0.0"
