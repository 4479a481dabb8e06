"""API v1 라우터 패키지 — 모든 엔드포인트 통합.

API v1 router package — aggregates every endpoint into a single router
for inclusion in the FastAPI application.

Included routers:
    - scorecards: 스코어카드 목록/집계/요약 (Listings, aggregate, summary, owners)
    - metrics: 지표 수명주기 및 값 입력 (Metric lifecycle and entries)
    - roles: 역할 관리 및 조직도 (Role management and org chart)
    - people: 보고 라인 조회 (Reporting-line queries)
"""

from fastapi import APIRouter

from app.api.v1.metrics import router as metrics_router
from app.api.v1.people import router as people_router
from app.api.v1.roles import router as roles_router
from app.api.v1.scorecards import router as scorecards_router

api_router: APIRouter = APIRouter()

api_router.include_router(scorecards_router, prefix="/scorecards", tags=["Scorecards"])
api_router.include_router(metrics_router, prefix="/scorecards/{scorecard_id}/metrics", tags=["Metrics"])
api_router.include_router(roles_router, prefix="/roles", tags=["Roles"])
api_router.include_router(people_router, prefix="/people", tags=["People"])
