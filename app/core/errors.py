from typing import Optional, Dict, Any, List
from fastapi import status
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """표준 에러 응답 모델"""
    error: str
    message: str
    details: Optional[Dict[str, Any]] = None
    status_code: int


class ValidationError(BaseModel):
    """검증 에러 세부사항"""
    field: str
    message: str
    value: Optional[Any] = None


class ValidationErrorResponse(BaseModel):
    """검증 에러 응답 모델"""
    error: str = "validation_error"
    message: str
    validation_errors: List[ValidationError]
    status_code: int


# =============================================================================
# 시그널링 예외 클래스들
# =============================================================================

class BaseSignalingException(Exception):
    """
    기본 시그널링 예외 클래스

    WebSocket 메시지 처리 중 발생하며, 발신자에게만 error 이벤트로 전달됩니다.
    연결은 유지됩니다.
    """
    error: str = "signaling_error"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.details = details
        super().__init__(message)

    def to_event(self) -> Dict[str, Any]:
        """클라이언트로 보낼 error 이벤트로 변환"""
        return {"type": "error", "message": self.message}


class MalformedEnvelopeException(BaseSignalingException):
    """파싱할 수 없거나 type이 없는 메시지"""
    error = "malformed_envelope"

    def __init__(
        self,
        message: str = "Invalid message format",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details)


class UnknownMessageTypeException(BaseSignalingException):
    """지원하지 않는 메시지 타입"""
    error = "unknown_message_type"

    def __init__(self, message_type: str):
        super().__init__("Unknown message type", {"type": message_type})


class InvalidPayloadException(BaseSignalingException):
    """구조적으로 올바르지 않은 페이로드"""
    error = "invalid_payload"

    def __init__(
        self,
        message: str = "Invalid message payload",
        validation_errors: Optional[List[ValidationError]] = None
    ):
        self.validation_errors = validation_errors or []
        super().__init__(
            message,
            {"validation_errors": [e.model_dump() for e in self.validation_errors]}
        )


# =============================================================================
# 에러 헬퍼 함수들
# =============================================================================

def create_error_response(
    error: str,
    message: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None
) -> ErrorResponse:
    """표준 에러 응답 생성"""
    return ErrorResponse(
        error=error,
        message=message,
        status_code=status_code,
        details=details
    )


def create_validation_error_response(
    message: str,
    validation_errors: List[ValidationError],
    status_code: int = status.HTTP_422_UNPROCESSABLE_ENTITY
) -> ValidationErrorResponse:
    """검증 에러 응답 생성"""
    return ValidationErrorResponse(
        message=message,
        validation_errors=validation_errors,
        status_code=status_code
    )


def validation_errors_from_pydantic(exc) -> List[ValidationError]:
    """pydantic ValidationError를 ValidationError 목록으로 변환"""
    return [
        ValidationError(
            field=".".join(str(loc) for loc in error["loc"]) or "__root__",
            message=error["msg"],
            value=error.get("input") if not isinstance(error.get("input"), dict) else None
        )
        for error in exc.errors()
    ]
