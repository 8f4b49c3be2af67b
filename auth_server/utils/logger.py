"""애플리케이션 로거 설정 모듈.

Application logger configuration.
Request/response events are shipped by the Axiom middleware; this logger
covers service-level events (audit lines, store failures, sweep results).
Secrets (passwords, tokens) are never passed to it.
"""

import sys

from loguru import logger

from auth_server.config import settings


def setup_logger():
    """로거를 설정합니다 (Configure the console sink)."""
    logger.remove()  # 기본 핸들러 제거 — Remove default handler

    logger.add(
        sys.stderr,
        colorize=True,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=settings.LOG_LEVEL,
    )
    return logger


# 로거 초기화 — Initialize logger
log = setup_logger()
