"""Authentication and authorization.

1. Token service (jwt.py) — signed, stateless access tokens.
2. Authentication gate (dependencies.py) — resolves the caller per request.
3. Policy (policy.py) — pure allow/deny rules per role and ownership.
"""
