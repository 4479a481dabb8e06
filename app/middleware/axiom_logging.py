"""Axiom API 로깅 미들웨어.

Axiom API logging middleware.
Sends one structured event per API request to Axiom: method, path,
path/query params, masked request body, status code, duration and the
error detail of failed responses. Secrets (token, password, authorization)
are masked. Without AXIOM_API_TOKEN/AXIOM_DATASET the middleware is a
pass-through.
"""

import json
import logging
import re
import time
from typing import Any

from axiom_py import Client as AxiomClient
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.config import settings

logger = logging.getLogger(__name__)

# 마스킹 대상 필드 패턴 — Fields to mask in request bodies and params
_SENSITIVE_KEYS = re.compile(
    r"(password|secret|token|authorization|api_key|apikey|credential)",
    re.IGNORECASE,
)

# 로깅 제외 경로 — Paths excluded from logging
_SKIP_PATHS: frozenset[str] = frozenset({"/health", "/docs", "/redoc", "/openapi.json"})

_MAX_DEPTH: int = 5
_MAX_ITEMS: int = 20
_MAX_DETAIL: int = 500


def _mask(data: Any, depth: int = 0) -> Any:
    """민감 필드 재귀 마스킹 — 큰 목록은 앞부분만 유지."""
    if depth > _MAX_DEPTH:
        return "..."
    if isinstance(data, dict):
        return {
            key: "***" if _SENSITIVE_KEYS.search(str(key)) else _mask(value, depth + 1)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [_mask(item, depth + 1) for item in data[:_MAX_ITEMS]]
    return data


def _shorten(text: str, limit: int = _MAX_DETAIL) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


async def _read_request_body(request: Request) -> Any:
    """쓰기 요청의 JSON body를 마스킹해 반환 — body가 없으면 None."""
    if request.method not in ("POST", "PUT", "PATCH"):
        return None
    body = await request.body()
    if not body:
        return None
    try:
        return _mask(json.loads(body))
    except (json.JSONDecodeError, UnicodeDecodeError):
        return "(non-json body)"


def _error_detail(body: bytes) -> str:
    """오류 응답 body에서 detail 추출 (FastAPI {"detail": ...} 형식)."""
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _shorten(body.decode("utf-8", errors="replace"))
    detail = payload.get("detail", payload) if isinstance(payload, dict) else payload
    return _shorten(detail if isinstance(detail, str) else json.dumps(detail, default=str))


class AxiomLoggingMiddleware(BaseHTTPMiddleware):
    """모든 API 요청/응답을 Axiom에 로깅하는 미들웨어.

    Middleware that logs every API request and response to Axiom.
    """

    def __init__(self, app: Any) -> None:
        super().__init__(app)
        self._dataset: str = settings.AXIOM_DATASET
        self._client: AxiomClient | None = None
        if settings.axiom_enabled:
            self._client = AxiomClient(token=settings.AXIOM_API_TOKEN)

    def _ingest(self, event: dict[str, Any]) -> None:
        try:
            self._client.ingest_events(self._dataset, [event])
        except Exception as exc:
            # 로깅 실패는 요청 처리에 영향을 주지 않음 — Ingest failure never fails the request
            logger.warning("Axiom ingest failed for %s %s: %s", event["method"], event["path"], exc)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        # Axiom 미설정 또는 제외 경로 — Pass through
        if self._client is None or request.url.path in _SKIP_PATHS:
            return await call_next(request)

        started: float = time.perf_counter()
        event: dict[str, Any] = {
            "service": settings.APP_NAME,
            "method": request.method,
            "path": request.url.path,
            "status_code": 500,
        }
        if request.query_params:
            event["query_params"] = _mask(dict(request.query_params))

        request_body = await _read_request_body(request)
        if request_body is not None:
            event["request_body"] = request_body

        try:
            response = await call_next(request)
            event["status_code"] = response.status_code
            if request.path_params:
                event["path_params"] = dict(request.path_params)

            if response.status_code >= 400:
                # 응답 body를 소비한 뒤 같은 내용으로 다시 구성 — Re-wrap the consumed body
                body = b"".join(
                    [chunk if isinstance(chunk, bytes) else chunk.encode("utf-8") async for chunk in response.body_iterator]
                )
                event["error"] = _error_detail(body)
                response = Response(
                    content=body,
                    status_code=response.status_code,
                    headers=dict(response.headers),
                    media_type=response.media_type,
                )
        except Exception as exc:
            event["error"] = f"{type(exc).__name__}: {_shorten(str(exc), 300)}"
            raise
        finally:
            event["duration_ms"] = round((time.perf_counter() - started) * 1000, 2)
            self._ingest(event)

        return response
