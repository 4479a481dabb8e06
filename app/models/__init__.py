"""SQLAlchemy ORM 모델 패키지 — 모든 도메인 모델의 중앙 임포트 지점.

SQLAlchemy ORM models package — Central import point for all domain models.
Importing from this package ensures all models are registered with the
SQLAlchemy metadata, which is required for Alembic migrations and
relationship resolution.

Modules:
    people: 프로필 및 직원 명부 (Profiles and the employee roster)
    team: 팀 및 팀 구성원 (Teams and team members)
    role: 역할 및 역할 배정 (Roles and role assignments)
    scorecard: 스코어카드, 공유 구성원, 지표, 지표 값 (Scorecards, members, metrics, entries)
"""

from app.models.people import Employee, Profile
from app.models.team import Team, TeamMember
from app.models.role import EmployeeRole, Role
from app.models.scorecard import Metric, MetricEntry, Scorecard, ScorecardMember

__all__ = [
    "Employee", "Profile",
    "Team", "TeamMember",
    "EmployeeRole", "Role",
    "Metric", "MetricEntry", "Scorecard", "ScorecardMember",
]
