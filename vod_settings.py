"""VOD 서버 설정 - 환경 변수와 .env 파일에서 읽는다."""

from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """VOD 서버 설정"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server
    host: str = "localhost"
    port: int = 5001
    log_level: str = "info"
    cors_origins: List[str] = ["*"]

    # VOD streaming
    vod_dir: Path = Path("videos")
    content_type: str = "video/mp4"
    chunk_size: int = 64 * 1024

    # Owncast
    owncast_url: Optional[str] = None
    owncast_admin_token: Optional[str] = None
    hls_url: str = "http://localhost:8080/hls/stream.m3u8"
    upstream_timeout: float = 10.0
