"""커스텀 HTTP 예외 클래스 모듈.

Custom HTTP exception classes module.
Raised only at the service/router boundary: core loaders report failures
as result objects ({data, error}) and the service layer converts them here.

Usage:
    from app.utils.exceptions import NotFoundError, BadRequestError
    raise NotFoundError("Scorecard not found")
    raise BadRequestError("A role cannot be accountable to itself")
"""

from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """404 Not Found 예외 — 요청한 리소스를 찾을 수 없을 때 사용.

    Raised when a required entity (scorecard, metric, role, profile) does not exist.
    """

    def __init__(self, detail: str = "Resource not found") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class DuplicateError(HTTPException):
    """409 Conflict 예외 — 중복 리소스 생성 시도 시 사용.

    Raised on uniqueness violations (duplicate role name, repeated role assignment).
    """

    def __init__(self, detail: str = "Resource already exists") -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class ForbiddenError(HTTPException):
    """403 Forbidden 예외 — 권한 부족 시 사용.

    Raised when the caller cannot view or modify the target
    (non-admin role writes, scorecard access denied).
    """

    def __init__(self, detail: str = "Insufficient permissions") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class UnauthorizedError(HTTPException):
    """401 Unauthorized 예외 — 인증 실패 시 사용."""

    def __init__(self, detail: str = "Authentication required") -> None:
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class BadRequestError(HTTPException):
    """400 Bad Request 예외 — 잘못된 요청 데이터 시 사용.

    Raised when the request is invalid beyond what Pydantic validation catches
    (e.g. self-accountable role, unparsable entry value, reorder of unknown rows).
    """

    def __init__(self, detail: str = "Bad request") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class DataLoadError(HTTPException):
    """500 Internal Server Error 예외 — 필수 데이터 조회 실패 시 사용.

    Raised when a required fetch reported an error (database failure,
    aggregate function error other than not-found/permission).
    """

    def __init__(self, detail: str = "Failed to load data") -> None:
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
