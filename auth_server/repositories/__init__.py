"""레포지토리 패키지 — 데이터베이스 쿼리 계층.

Repository package — Database query layer.
``base`` declares the account/session store contracts; the SQLAlchemy
implementations bind to one ``AsyncSession`` per request.
"""
