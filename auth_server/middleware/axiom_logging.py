"""Axiom API 로깅 미들웨어.

Axiom API logging middleware.
Ships one structured event per auth request: endpoint, method, status code,
duration, client address and the error reason on failures. Credentials are
masked before anything leaves the process, including the camelCase keys of
the auth wire format (``password``, ``confirmPassword``, ``refreshToken``).
"""

import json
import re
import time
from typing import Any

from axiom_py import Client as AxiomClient
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from auth_server.config import settings
from auth_server.utils.logger import log

# 마스킹 대상 필드 패턴 — Keys whose values are never logged
_SENSITIVE_KEYS = re.compile(
    r"(password|secret|token|authorization|credential)",
    re.IGNORECASE,
)

# 로깅 제외 경로 — Paths excluded from logging
_SKIP_PATHS = {"/health", "/version", "/docs", "/redoc", "/openapi.json"}

_MAX_ERROR_LEN: int = 500


def _mask(data: Any, depth: int = 0) -> Any:
    """민감 필드 마스킹 — Recursively mask credential fields."""
    if depth > 5:
        return "..."
    if isinstance(data, dict):
        return {
            k: "***" if _SENSITIVE_KEYS.search(k) else _mask(v, depth + 1)
            for k, v in data.items()
        }
    if isinstance(data, list):
        return [_mask(item, depth + 1) for item in data[:20]]
    return data


def _error_detail(body: bytes) -> str:
    """에러 응답 본문에서 사유 추출 — Pull ``detail`` out of an error body."""
    try:
        payload: Any = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return body.decode("utf-8", errors="replace")[:_MAX_ERROR_LEN]
    detail: Any = payload.get("detail", payload) if isinstance(payload, dict) else payload
    text: str = detail if isinstance(detail, str) else json.dumps(detail)
    return text[:_MAX_ERROR_LEN]


class AxiomLoggingMiddleware(BaseHTTPMiddleware):
    """모든 인증 API 요청/응답을 Axiom에 로깅하는 미들웨어.

    Middleware that logs auth API requests and responses to Axiom.
    Passes requests straight through when no Axiom token is configured.
    """

    def __init__(self, app: Any) -> None:
        super().__init__(app)
        self._client: AxiomClient | None = None
        self._dataset: str = settings.AXIOM_DATASET

        if settings.AXIOM_API_TOKEN and settings.AXIOM_DATASET:
            self._client = AxiomClient(token=settings.AXIOM_API_TOKEN)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in _SKIP_PATHS or self._client is None:
            return await call_next(request)

        start_time: float = time.perf_counter()

        request_body: Any = None
        if request.method in ("POST", "PUT", "PATCH", "DELETE"):
            body_bytes: bytes = await request.body()
            if body_bytes:
                try:
                    request_body = _mask(json.loads(body_bytes))
                except (json.JSONDecodeError, UnicodeDecodeError):
                    request_body = "(non-json body)"

        error_detail: str | None = None
        status_code: int = 500
        try:
            response: Response = await call_next(request)
            status_code = response.status_code

            # 에러 응답 body 소비 후 재구성 — Consume the error body, then rebuild the response
            if status_code >= 400:
                resp_body: bytes = b""
                async for chunk in response.body_iterator:
                    resp_body += chunk if isinstance(chunk, bytes) else chunk.encode("utf-8")
                error_detail = _error_detail(resp_body)
                response = Response(
                    content=resp_body,
                    status_code=status_code,
                    headers=dict(response.headers),
                    media_type=response.media_type,
                )
        except Exception as exc:
            error_detail = f"{type(exc).__name__}: {str(exc)[:300]}"
            raise
        finally:
            event: dict[str, Any] = {
                "service": settings.APP_NAME,
                "method": request.method,
                "path": request.url.path,
                "status_code": status_code,
                "duration_ms": round((time.perf_counter() - start_time) * 1000, 2),
                "client_ip": request.client.host if request.client else None,
                "user_agent": request.headers.get("user-agent"),
            }
            if request.query_params:
                event["query_params"] = _mask(dict(request.query_params))
            if request.path_params:
                event["path_params"] = dict(request.path_params)
            if request_body is not None:
                event["request_body"] = request_body
            if error_detail:
                event["error"] = error_detail

            try:
                self._client.ingest_events(self._dataset, [event])
            except Exception as ingest_exc:  # noqa: BLE001
                # 로깅 실패는 요청에 영향 없음 — Ingest failures never fail the request
                log.warning(f"Axiom ingest failed: {ingest_exc}")

        return response
