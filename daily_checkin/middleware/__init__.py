"""Middleware and observability."""
