"""add_get_scorecard_aggregate

Revision ID: b2d3f4a5c6e7
Revises: a1c2e3f4b5d6
Create Date: 2026-10-05 11:00:00.000000

get_scorecard_aggregate(p_scorecard_id, p_user_id) 함수 추가:
- 권한 검사: 관리자, 소유자, 공유 구성원, 지표 담당자,
  역할 스코어카드 소유자의 관리자, 팀 소유자의 관리자
- 반환: {error, data: {scorecard, metrics(entries, owner), employees}}
- 보관 지표는 반환하지 않음 (애플리케이션이 별도로 로드)
"""
from typing import Sequence, Union

from alembic import op

revision: str = "b2d3f4a5c6e7"
down_revision: Union[str, None] = "a1c2e3f4b5d6"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


FUNCTION_SQL = """
CREATE OR REPLACE FUNCTION get_scorecard_aggregate(
  p_scorecard_id UUID,
  p_user_id UUID
)
RETURNS JSONB
LANGUAGE plpgsql
STABLE
AS $$
DECLARE
  v_scorecard scorecards%ROWTYPE;
  v_is_admin BOOLEAN := FALSE;
  v_has_access BOOLEAN := FALSE;
BEGIN
  SELECT COALESCE(is_system_admin, FALSE) INTO v_is_admin
  FROM profiles
  WHERE id = p_user_id;

  SELECT * INTO v_scorecard
  FROM scorecards
  WHERE id = p_scorecard_id
    AND is_active = TRUE;

  IF NOT FOUND THEN
    RETURN jsonb_build_object('error', 'Scorecard not found', 'data', NULL);
  END IF;

  IF v_is_admin OR v_scorecard.owner_user_id = p_user_id THEN
    v_has_access := TRUE;
  ELSIF EXISTS (
    SELECT 1 FROM scorecard_members
    WHERE scorecard_id = p_scorecard_id AND user_id = p_user_id
  ) THEN
    v_has_access := TRUE;
  ELSIF EXISTS (
    SELECT 1 FROM metrics
    WHERE scorecard_id = p_scorecard_id
      AND owner_user_id = p_user_id
      AND is_active = TRUE
  ) THEN
    v_has_access := TRUE;
  ELSIF v_scorecard.type = 'role' AND EXISTS (
    SELECT 1 FROM profiles
    WHERE id = v_scorecard.owner_user_id AND manager_id = p_user_id
  ) THEN
    v_has_access := TRUE;
  ELSIF v_scorecard.type = 'team' AND v_scorecard.team_id IS NOT NULL AND (
    EXISTS (
      SELECT 1 FROM team_members
      WHERE team_id = v_scorecard.team_id AND user_id = p_user_id
    )
    OR EXISTS (
      SELECT 1
      FROM team_members tm
      JOIN profiles p ON p.id = tm.user_id
      WHERE tm.team_id = v_scorecard.team_id
        AND tm.role = 'owner'
        AND p.manager_id = p_user_id
    )
  ) THEN
    v_has_access := TRUE;
  END IF;

  IF NOT v_has_access THEN
    RETURN jsonb_build_object('error', 'Permission denied', 'data', NULL);
  END IF;

  RETURN jsonb_build_object(
    'error', NULL,
    'data', jsonb_build_object(
      'scorecard', to_jsonb(v_scorecard),
      'metrics', COALESCE((
        SELECT jsonb_agg(
          to_jsonb(m) || jsonb_build_object(
            'owner', (
              SELECT jsonb_build_object(
                'id', p.id, 'full_name', p.full_name, 'email', p.email, 'avatar_url', p.avatar_url
              )
              FROM profiles p
              WHERE p.id = m.owner_user_id
            ),
            'entries', COALESCE((
              SELECT jsonb_agg(to_jsonb(me) ORDER BY me.period_start DESC)
              FROM metric_entries me
              WHERE me.metric_id = m.id
            ), '[]'::jsonb)
          )
          ORDER BY m.display_order, m.created_at
        )
        FROM metrics m
        WHERE m.scorecard_id = p_scorecard_id
          AND m.is_active = TRUE
          AND m.is_archived = FALSE
      ), '[]'::jsonb),
      'employees', COALESCE((
        SELECT jsonb_agg(
          to_jsonb(e) || jsonb_build_object(
            'profile_id', p.id,
            'profile', jsonb_build_object(
              'id', p.id, 'full_name', p.full_name, 'email', p.email, 'avatar_url', p.avatar_url
            )
          )
          ORDER BY e.full_name
        )
        FROM employees e
        JOIN profiles p ON lower(p.email) = lower(e.company_email)
      ), '[]'::jsonb)
    )
  );
END;
$$;
"""


def upgrade() -> None:
    op.execute(FUNCTION_SQL)
    op.execute(
        "COMMENT ON FUNCTION get_scorecard_aggregate(UUID, UUID) IS "
        "'Scorecard aggregate with permission checks: scorecard, active metrics with entries and owners, roster.'"
    )


def downgrade() -> None:
    op.execute("DROP FUNCTION IF EXISTS get_scorecard_aggregate(UUID, UUID)")
