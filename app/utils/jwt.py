"""베어러 토큰 검증: 외부 인증 서비스가 발급한 액세스 토큰.

Sign-in happens in the external auth service. The API only needs to turn
an access token into the profile id it was issued for; ``issue_access_token``
exists for local tooling and the test suite.

Claims read here: ``sub`` (profile UUID), ``type`` (must be ``"access"``)
and ``exp``.
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt

from app.config import settings

ACCESS_TOKEN_TYPE = "access"


def issue_access_token(profile_id: UUID, ttl: timedelta | None = None) -> str:
    """프로필 ID로 서명된 액세스 토큰 발급 (Sign an access token for a profile)."""
    lifetime: timedelta = ttl if ttl is not None else timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {
        "sub": str(profile_id),
        "type": ACCESS_TOKEN_TYPE,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def profile_id_from_token(token: str) -> UUID:
    """토큰을 검증하고 ``sub``의 프로필 ID를 반환합니다.

    Raises:
        jwt.InvalidTokenError: 서명/만료 오류, 액세스 토큰이 아님, 또는 sub 누락·형식 오류
            (bad signature or expiry, wrong token type, missing or malformed sub)
    """
    payload: dict = jwt.decode(
        token,
        settings.JWT_SECRET_KEY,
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["exp", "sub"]},
    )
    if payload.get("type") != ACCESS_TOKEN_TYPE:
        raise jwt.InvalidTokenError("Invalid token type")
    try:
        return UUID(payload["sub"])
    except (TypeError, ValueError) as exc:
        raise jwt.InvalidTokenError("Invalid subject") from exc
