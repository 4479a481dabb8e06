"""Scorecard API 엔트리포인트.

``app`` is built by ``create_app``: root logging from LOG_LEVEL, Axiom
request logging, CORS, ``/health`` and the v1 routers. The engine pool is
disposed on shutdown.

Run with ``uvicorn app.main:app``.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1 import api_router
from app.config import settings
from app.database import engine
from app.middleware.axiom_logging import AxiomLoggingMiddleware

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(level=settings.LOG_LEVEL, format=LOG_FORMAT)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    logger.info("%s starting (loader strategy: %s)", settings.APP_NAME, settings.SCORECARD_LOADER_STRATEGY)
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    """FastAPI 앱 생성 및 미들웨어/라우터 등록."""
    configure_logging()
    application = FastAPI(title=settings.APP_NAME, version="1.0.0", lifespan=lifespan)

    # 미들웨어는 나중에 등록한 것이 바깥쪽: CORS 응답까지 Axiom이 기록하도록 CORS를 먼저 등록
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_middleware(AxiomLoggingMiddleware)

    @application.get("/health")
    async def health_check() -> dict[str, str]:
        """로드 밸런서용 상태 확인 (Liveness probe)."""
        return {"status": "ok"}

    application.include_router(api_router, prefix="/api/v1")
    return application


app: FastAPI = create_app()
