from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from app.core.config import settings
from app.core.logging import (
    get_logger,
    log_websocket_event,
    set_connection_context,
    clear_connection_context,
)
from app.schemas.signaling import ErrorEvent
from app.websockets.hub import SignalingHub, get_hub

logger = get_logger(__name__)

router = APIRouter(tags=["WebSocket"])


@router.websocket(settings.ws_path)
async def signaling_endpoint(
    websocket: WebSocket,
    hub: SignalingHub = Depends(get_hub),
):
    """
    익명 매칭 / 시그널링 WebSocket 엔드포인트

    연결마다 하나의 수신 루프가 메시지를 SignalingRelay로 넘기며,
    어떤 방식으로 루프가 끝나든 disconnect 처리가 한 번 실행됩니다.
    """
    await websocket.accept()

    # 1. 연결 등록 (핸들 발급)
    connection = await hub.lifecycle.accept(websocket)
    handle = connection.handle
    set_connection_context(handle)

    try:
        # 2. 메시지 수신 루프
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(frame.get("code", 1000))

            raw = frame.get("text")
            if raw is None:
                raw = frame.get("bytes")

            try:
                await hub.relay.handle_raw(handle, raw)
            except Exception as e:
                # 한 메시지의 처리 실패가 연결이나 다른 대화방에 영향을 주지 않도록 함
                logger.error(f"Error processing message from connection {handle}: {e}", exc_info=True)
                hub.registry.send(handle, ErrorEvent(message="Failed to process message").to_wire())

    except WebSocketDisconnect as e:
        # 정상적인 연결 해제
        log_websocket_event(logger, "closed", handle, close_code=e.code)

    except Exception as e:
        logger.error(f"Unexpected error in WebSocket connection {handle}: {e}", exc_info=True)

    finally:
        # 3. 연결 해제 처리
        await hub.lifecycle.disconnect(handle)
        clear_connection_context()
