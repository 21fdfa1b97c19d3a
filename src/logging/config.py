"""Logging settings (LOG_* env vars).

Console sink은 사람이 읽는 형식, file sink은 JSON 또는 회전되는 text 파일입니다.
show_context가 켜져 있으면 console 라인에 vault / operation / trace_id가 붙습니다.

Rules Applied:
    - #11 Pydantic Modeling: Settings management, strict types
    - #15 Logging Standards: Configurable dual sinks
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal, TypeAlias

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel: TypeAlias = Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]


class LoggingConfig(BaseSettings):
    """Logging sink 설정.

    Attributes:
        log_dir: 로그 파일 디렉토리
        file_prefix: 로그 파일명 접두사 ("{prefix}_YYYY-MM-DD.json")
        console_level: console 최소 레벨
        file_level: file 최소 레벨
        enable_file: file sink 사용 여부
        json_logs: file sink을 JSON (record 단위 직렬화)으로 기록
        rotation / retention / compression: text file 회전 정책
        show_context: console에 vault / operation / trace_id 표시
        diagnose: traceback에 변수 값 표시 (운영 환경에서는 끔)
        backtrace: catch 지점 이전까지 traceback 확장
    """

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_dir: Path = Path("logs")
    file_prefix: str = Field(default="vault", min_length=1)

    console_level: LogLevel = "INFO"
    file_level: LogLevel = "DEBUG"

    enable_file: bool = True
    json_logs: bool = True
    rotation: str = Field(default="50 MB", description="e.g. '100 MB', '1 day'")
    retention: str = "14 days"
    compression: str = "gz"

    show_context: bool = False
    diagnose: bool = False
    backtrace: bool = True


def get_logging_config() -> LoggingConfig:
    """LOG_* 환경 변수에서 설정 로드."""
    return LoggingConfig()
