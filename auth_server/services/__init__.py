"""서비스 패키지 — 비즈니스 로직 계층.

Service package — Business logic layer.
``auth_service`` orchestrates the credential hasher, token issuer and the
account/session stores; ``session_sweeper`` schedules expired-session cleanup.
"""
