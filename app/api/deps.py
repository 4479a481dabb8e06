"""FastAPI 의존성 주입 모듈 — 인증, 관리자 권한, 레코드 저장소.

FastAPI dependency injection module — authentication, admin gating and
the read-side record store.

Authentication Flow:
    1. 클라이언트가 Authorization: Bearer <token> 헤더를 전송
       (Client sends Authorization: Bearer <token> header)
    2. HTTPBearer가 토큰을 추출 (HTTPBearer extracts the token)
    3. profile_id_from_token()이 JWT를 검증하고 프로필 ID를 반환
       (signature, expiry and token type are checked)
    4. 해당 ID로 DB에서 프로필을 조회
       (Profile is fetched by that id)
    5. 프로필 활성 상태를 확인 (Profile active status is verified)
"""

from typing import Annotated
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import async_session, get_db
from app.models.people import Profile
from app.repositories.people_repository import profile_repository
from app.repositories.record_store import ScorecardStore, SqlRecordStore
from app.utils.jwt import profile_id_from_token

# HTTP Bearer 토큰 추출기 — Authorization 헤더에서 JWT 토큰 추출
# (Extracts JWT token from Authorization: Bearer <token> header)
security: HTTPBearer = HTTPBearer()

_record_store: SqlRecordStore = SqlRecordStore(async_session)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Profile:
    """JWT 토큰에서 현재 인증된 프로필을 추출합니다.

    Decode the bearer token and return the active profile it names.

    Raises:
        HTTPException(401): 토큰이 유효하지 않거나 만료됨 (Invalid or expired token)
        HTTPException(401): 프로필이 없거나 비활성 (Profile not found or inactive)
    """
    try:
        profile_id: UUID = profile_id_from_token(credentials.credentials)
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

    profile: Profile | None = await profile_repository.get_by_id(db, profile_id)
    if profile is None or not profile.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive")

    return profile


async def require_admin(
    current_user: Annotated[Profile, Depends(get_current_user)],
) -> Profile:
    """시스템 관리자만 허용 (System administrators only)."""
    if not current_user.is_system_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
    return current_user


def get_store() -> ScorecardStore:
    """읽기 측 레코드 저장소 — 테스트에서는 dependency override로 교체.

    Read-side record store. Each fetch opens its own session, so the store
    is shared across requests.
    """
    return _record_store
