"""Loguru sink 설정 테스트."""

from __future__ import annotations

import json
from pathlib import Path

from loguru import logger

from src.core.logger import configure_logger, setup_logger, setup_logger_from_config
from src.logging.config import LoggingConfig
from src.logging.context import LoggingContext


class TestLoggerSetup:
    def teardown_method(self) -> None:
        logger.remove()

    def test_text_file_sink_includes_context(self, tmp_path: Path) -> None:
        configure_logger(
            LoggingConfig(log_dir=tmp_path, console_level="ERROR", json_logs=False)
        )
        with LoggingContext(vault="vault:0", operation="deposit", trace_id="abc"):
            logger.info("vault booted")
        logger.complete()

        files = list(tmp_path.glob("vault_*.log"))
        assert len(files) == 1
        text = files[0].read_text(encoding="utf-8")
        assert "vault booted" in text
        assert "[vault:0:deposit:abc]" in text

    def test_json_file_sink(self, tmp_path: Path) -> None:
        config = LoggingConfig(
            log_dir=tmp_path, file_prefix="audit", console_level="ERROR", json_logs=True
        )
        setup_logger_from_config(config)
        with LoggingContext(strategy="strat:a"):
            logger.info("reconciled")
        logger.complete()

        files = list(tmp_path.glob("audit_*.json"))
        assert len(files) == 1
        lines = files[0].read_text(encoding="utf-8").splitlines()
        record = json.loads(lines[-1])["record"]
        assert record["message"] == "reconciled"
        assert record["extra"]["strategy"] == "strat:a"

    def test_explicit_bind_wins(self, tmp_path: Path) -> None:
        configure_logger(
            LoggingConfig(log_dir=tmp_path, console_level="ERROR", json_logs=True)
        )
        with LoggingContext(strategy="strat:a"):
            logger.bind(strategy="strat:b").info("bound")
        logger.complete()

        lines = next(tmp_path.glob("vault_*.json")).read_text(encoding="utf-8").splitlines()
        assert json.loads(lines[-1])["record"]["extra"]["strategy"] == "strat:b"

    def test_console_only(self, tmp_path: Path) -> None:
        setup_logger(log_dir=tmp_path / "unused", enable_file=False)
        assert not (tmp_path / "unused").exists()
