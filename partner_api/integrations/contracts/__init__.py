"""
Contracts (data models).

This folder defines the request/response shapes of the Partner API, e.g.:
- product listings
- client/property creation requests
- property, milestone and pagination envelopes
- webhook event payloads

Why this exists:
- Ensures consistent data structures across mock and real clients
- Prevents "guessing" payload formats in multiple places
- Callers rely on stable models, not on ad-hoc dicts

Both mock and real HTTP clients should use these contracts.
"""
