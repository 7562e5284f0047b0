import traceback
from typing import Callable
from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from pydantic import ValidationError as PydanticValidationError

from app.core.config import settings
from app.core.errors import (
    create_error_response,
    create_validation_error_response,
    validation_errors_from_pydantic,
)
from app.core.logging import get_logger

logger = get_logger(__name__)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    통합 에러 처리 미들웨어

    HTTP 엔드포인트에서 처리되지 않은 예외를 표준화된 에러 응답으로 변환합니다.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)

        except PydanticValidationError as e:
            error_response = create_validation_error_response(
                "Request validation failed",
                validation_errors_from_pydantic(e)
            )
            return JSONResponse(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                content=error_response.model_dump()
            )

        except TimeoutError as e:
            error_response = create_error_response(
                "timeout_error",
                "Request timeout",
                status.HTTP_408_REQUEST_TIMEOUT,
                {"detail": str(e) if settings.debug else None}
            )
            return JSONResponse(
                status_code=error_response.status_code,
                content=error_response.model_dump()
            )

        except Exception as e:
            # 예상하지 못한 모든 에러들
            error_detail = None
            if settings.debug:
                error_detail = {
                    "exception": str(e),
                    "type": type(e).__name__,
                    "traceback": traceback.format_exc()
                }

            error_response = create_error_response(
                "internal_server_error",
                "An unexpected error occurred",
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                error_detail
            )

            logger.error(f"Unhandled exception: {type(e).__name__}: {e}", exc_info=True)

            return JSONResponse(
                status_code=error_response.status_code,
                content=error_response.model_dump()
            )
