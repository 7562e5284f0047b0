from typing import List, Optional

from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()  # .env 파일 로드


class Settings(BaseSettings):
    app_name: str = "pairchat-signaling"
    debug: bool = False
    log_level: str = "INFO"
    log_dir: Optional[str] = None  # 지정된 경우에만 파일 로그 생성

    # WebSocket 시그널링
    ws_path: str = "/ws"
    cors_origins: List[str] = ["*"]
    max_chat_message_length: int = 2000
    outbound_queue_size: int = 256

    # 대기방 만료 (0이면 만료 없음)
    waiting_room_timeout_seconds: float = 300
    waiting_room_sweep_interval_seconds: float = 15

    class Config:
        env_file = ".env"


settings = Settings()
