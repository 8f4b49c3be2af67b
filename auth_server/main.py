"""FastAPI 애플리케이션 엔트리포인트 — 미들웨어 및 라우터 등록.

FastAPI application entry point — Middleware and router registration.
Configures CORS, request logging, the validation rule set, the expired-session
sweeper, health/version endpoints and the auth router.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from auth_server.api.auth import router as auth_router
from auth_server.config import settings
from auth_server.middleware.axiom_logging import AxiomLoggingMiddleware
from auth_server.services.session_sweeper import create_scheduler
from auth_server.utils.logger import log
from auth_server.utils.validation import ValidationRules


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """시작/종료 훅 — 검증 규칙 생성 및 세션 정리 스케줄러 관리.

    Startup/shutdown hook. Builds the immutable validation rules and runs the
    expired-session sweeper while the app is up.
    """
    app.state.validation_rules = ValidationRules.from_settings(settings)

    scheduler = None
    if settings.SESSION_SWEEP_INTERVAL_MINUTES > 0:
        scheduler = create_scheduler(settings.SESSION_SWEEP_INTERVAL_MINUTES)
        scheduler.start()
        log.info(f"Session sweeper started (every {settings.SESSION_SWEEP_INTERVAL_MINUTES} min)")

    yield

    if scheduler is not None:
        scheduler.shutdown(wait=False)
        log.info("Session sweeper stopped")


app: FastAPI = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Axiom API 로깅 미들웨어 — Axiom API request/response logging
# CORS보다 먼저 등록하여 모든 요청을 캡처 (Registered before CORS to capture all requests)
app.add_middleware(AxiomLoggingMiddleware)

# CORS 미들웨어 — Cross-Origin Resource Sharing middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """요청 본문 형식 오류를 400으로 반환합니다.

    Malformed or incomplete request bodies are reported as 400.
    """
    messages: list[str] = [
        f"{'.'.join(str(part) for part in err['loc'] if part != 'body')}: {err['msg']}"
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"detail": "; ".join(messages) or "Invalid request"})


@app.get("/health")
async def health_check() -> dict[str, str]:
    """서버 상태 확인 엔드포인트.

    Health check endpoint for load balancers and monitoring.
    """
    return {"status": "ok"}


@app.get("/version")
async def version() -> dict[str, str]:
    """서비스 이름과 버전 (Service name and version)."""
    return {"name": settings.APP_NAME, "version": settings.APP_VERSION}


app.include_router(auth_router, prefix="/api/v1/auth", tags=["Auth"])
