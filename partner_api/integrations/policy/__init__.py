"""Retry, circuit breaker and response normalization policies."""
