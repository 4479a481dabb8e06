"""테스트 인프라 — 인메모리 레코드 저장소, 인증 오버라이드, httpx 클라이언트 픽스처.

Test infrastructure — in-memory record store, current-user override and
httpx client fixtures. The API suite runs without a database: the read
side uses ``InMemoryStore`` and writes go through mocked repositories.
"""

import uuid
from collections.abc import AsyncGenerator
from datetime import date

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.api.deps import get_current_user, get_store
from app.database import get_db
from app.main import app
from app.models.people import Profile
from app.utils.jwt import issue_access_token
from tests.fakes import InMemoryStore, make_entry, make_metric, make_profile, make_scorecard


# ---------------------------------------------------------------------------
# 사용자 픽스처
# ---------------------------------------------------------------------------
def make_user(full_name: str, email: str, is_admin: bool = False, manager_id=None) -> Profile:
    """요청 사용자용 (저장되지 않은) 프로필 ORM 객체를 생성합니다."""
    return Profile(
        id=uuid.uuid4(),
        full_name=full_name,
        email=email,
        manager_id=manager_id,
        is_active=True,
        is_system_admin=is_admin,
    )


@pytest.fixture
def admin_user() -> Profile:
    return make_user("Ada Admin", "ada@example.com", is_admin=True)


@pytest.fixture
def owner_user() -> Profile:
    return make_user("Olive Owner", "olive@example.com")


@pytest.fixture
def other_user() -> Profile:
    return make_user("Victor Other", "victor@example.com")


# ---------------------------------------------------------------------------
# 저장소 픽스처: 스코어카드 하나와 지표 두 개
# ---------------------------------------------------------------------------
@pytest.fixture
def store(admin_user: Profile, owner_user: Profile, other_user: Profile) -> InMemoryStore:
    """기본 데이터가 들어 있는 인메모리 저장소."""
    s = InMemoryStore()
    for user in (admin_user, owner_user, other_user):
        s.profiles.append(make_profile(user.full_name, user.email, id=user.id, is_system_admin=user.is_system_admin))

    scorecard = make_scorecard(owner_user.id, name="Sales")
    s.scorecards.append(scorecard)

    revenue = make_metric(scorecard.id, "Revenue", target_value=100, owner_user_id=owner_user.id, display_order=0)
    calls = make_metric(scorecard.id, "Calls", target_value=50, display_order=1)
    s.metrics.extend([revenue, calls])
    s.entries.extend([
        make_entry(revenue.id, date(2025, 1, 6), 80),
        make_entry(revenue.id, date(2025, 1, 13), 120),
        make_entry(calls.id, date(2025, 1, 13), 25),
    ])
    return s


# ---------------------------------------------------------------------------
# 클라이언트 픽스처
# ---------------------------------------------------------------------------
async def _no_db() -> AsyncGenerator[None, None]:
    yield None


def login_as(user: Profile) -> None:
    """get_current_user를 주어진 사용자로 오버라이드합니다."""
    app.dependency_overrides[get_current_user] = lambda: user


@pytest_asyncio.fixture
async def client(store: InMemoryStore) -> AsyncGenerator[AsyncClient, None]:
    """FastAPI 테스트 클라이언트 — 저장소와 DB 세션을 오버라이드합니다."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_db] = _no_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def make_token(user: Profile) -> str:
    """테스트용 JWT 액세스 토큰을 생성합니다."""
    return issue_access_token(user.id)


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
