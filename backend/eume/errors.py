"""
도메인 예외 정의
"""
from typing import Optional


class EumeError(Exception):
    """이음이 백엔드의 기본 예외"""
    pass


class ValidationError(EumeError):
    """요청 필드가 누락되었거나 잘못된 경우"""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class NotFoundError(EumeError):
    """참조한 사용자/환자/리포트가 존재하지 않는 경우"""

    def __init__(self, resource: str, identifier: Optional[str] = None):
        detail = f"{resource} not found" if identifier is None else f"{resource} '{identifier}' not found"
        super().__init__(detail)
        self.resource = resource
        self.identifier = identifier


class StorageError(EumeError):
    """저장소 오류. 이 계층에서는 재시도하지 않는다."""

    def __init__(self, operation: str):
        super().__init__(f"storage operation failed: {operation}")
        self.operation = operation


class UpstreamServiceError(EumeError):
    """LLM 등 외부 서비스 호출 실패"""

    def __init__(self, service: str, reason: Optional[str] = None):
        super().__init__(f"{service} failed" + (f": {reason}" if reason else ""))
        self.service = service
        self.reason = reason
