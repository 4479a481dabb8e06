"""공통 Pydantic 응답 스키마 정의.

Common Pydantic response schema definitions shared across API domains.
"""

from pydantic import BaseModel


class MessageResponse(BaseModel):
    """범용 메시지 응답 스키마.

    Generic confirmation for actions that return no resource, such as
    reordering metrics or roles.

    Attributes:
        message: 응답 메시지 (Human-readable confirmation message)
    """

    message: str
