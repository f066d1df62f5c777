"""Shared utilities: configuration and rate limiting."""
