"""액세스 토큰 검증 테스트."""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from app.config import settings
from app.utils.jwt import issue_access_token, profile_id_from_token


def _sign(claims: dict) -> str:
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


class TestProfileIdFromToken:
    """토큰에서 프로필 ID 추출."""

    def test_round_trip(self):
        profile_id = uuid.uuid4()
        assert profile_id_from_token(issue_access_token(profile_id)) == profile_id

    def test_expired(self):
        token = issue_access_token(uuid.uuid4(), ttl=timedelta(seconds=-5))
        with pytest.raises(jwt.ExpiredSignatureError):
            profile_id_from_token(token)

    def test_refresh_type_rejected(self):
        token = _sign({"sub": str(uuid.uuid4()), "type": "refresh", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)})
        with pytest.raises(jwt.InvalidTokenError):
            profile_id_from_token(token)

    def test_malformed_subject(self):
        token = _sign({"sub": "not-a-uuid", "type": "access", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)})
        with pytest.raises(jwt.InvalidTokenError):
            profile_id_from_token(token)

    def test_missing_expiry(self):
        token = _sign({"sub": str(uuid.uuid4()), "type": "access"})
        with pytest.raises(jwt.InvalidTokenError):
            profile_id_from_token(token)

    def test_wrong_secret(self):
        token = jwt.encode(
            {"sub": str(uuid.uuid4()), "type": "access", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            "another-secret",
            algorithm=settings.JWT_ALGORITHM,
        )
        with pytest.raises(jwt.InvalidSignatureError):
            profile_id_from_token(token)
