"""로그 설정 테스트"""

import logging
import os
from collections.abc import Generator
from pathlib import Path

import pytest

from mangaembed.logging_config import (
    ROTATED_MESSAGE,
    SizeCappedFileHandler,
    cleanup_old_logs,
    setup_logging,
)


@pytest.fixture
def restore_root_logger() -> Generator[None, None, None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def _write_logs(log_dir: Path, count: int) -> list[Path]:
    """mtime이 1초씩 증가하는 로그 파일 생성 (오래된 순)"""
    paths = []
    for i in range(count):
        path = log_dir / f"app_2026-01-0{i + 1}_00-00-00.log"
        path.write_text("old\n", encoding="utf-8")
        os.utime(path, (1_700_000_000 + i, 1_700_000_000 + i))
        paths.append(path)
    return paths


class TestSizeCappedFileHandler:
    def setup_method(self) -> None:
        self.logger = logging.getLogger("tests.size_capped")
        self.logger.propagate = False
        self.logger.setLevel(logging.INFO)

    def teardown_method(self) -> None:
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

    def test_truncates_same_file_on_rollover(self, tmp_path: Path) -> None:
        log_file = tmp_path / "app.log"
        handler = SizeCappedFileHandler(log_file, max_bytes=100)
        handler.setFormatter(logging.Formatter("%(message)s"))
        self.logger.addHandler(handler)

        self.logger.info("a" * 60)
        self.logger.info("b" * 60)
        handler.flush()

        lines = log_file.read_text(encoding="utf-8").splitlines()
        assert lines[0].endswith(f" - {ROTATED_MESSAGE}")
        assert lines[1:] == ["b" * 60]
        assert list(tmp_path.iterdir()) == [log_file]

    def test_below_limit_appends(self, tmp_path: Path) -> None:
        log_file = tmp_path / "app.log"
        handler = SizeCappedFileHandler(log_file, max_bytes=1000)
        handler.setFormatter(logging.Formatter("%(message)s"))
        self.logger.addHandler(handler)

        self.logger.info("first")
        self.logger.info("second")
        handler.flush()

        assert log_file.read_text(encoding="utf-8").splitlines() == ["first", "second"]


class TestCleanupOldLogs:
    def test_keeps_newest(self, tmp_path: Path) -> None:
        paths = _write_logs(tmp_path, 5)
        (tmp_path / "other.txt").write_text("keep", encoding="utf-8")

        removed = cleanup_old_logs(tmp_path, keep=2)

        assert sorted(removed) == paths[:3]
        assert sorted(p.name for p in tmp_path.iterdir()) == sorted(
            [paths[3].name, paths[4].name, "other.txt"]
        )

    def test_keep_zero_removes_all(self, tmp_path: Path) -> None:
        _write_logs(tmp_path, 2)
        cleanup_old_logs(tmp_path, keep=0)
        assert list(tmp_path.glob("app_*.log")) == []


@pytest.mark.usefixtures("restore_root_logger")
class TestSetupLogging:
    def test_creates_new_file_and_prunes(self, tmp_path: Path) -> None:
        old = _write_logs(tmp_path, 3)

        log_file = setup_logging(log_dir=str(tmp_path), log_level="DEBUG", max_files=2)

        assert log_file.parent == tmp_path
        assert log_file.exists()
        assert not old[0].exists()
        assert not old[1].exists()
        assert old[2].exists()
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_handlers_replaced(self, tmp_path: Path) -> None:
        setup_logging(log_dir=str(tmp_path))
        setup_logging(log_dir=str(tmp_path))

        handlers = logging.getLogger().handlers
        assert len(handlers) == 2
        assert sum(isinstance(h, SizeCappedFileHandler) for h in handlers) == 1

    def test_defaults_from_settings(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        log_dir = tmp_path / "from_env"
        log_dir.mkdir()
        old = _write_logs(log_dir, 2)
        monkeypatch.setenv("LOG_DIR", str(log_dir))
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        monkeypatch.setenv("LOG_MAX_BYTES", "2048")
        monkeypatch.setenv("LOG_MAX_FILES", "1")

        log_file = setup_logging()

        assert log_file.parent == log_dir
        assert not any(p.exists() for p in old)
        assert logging.getLogger().level == logging.WARNING
        file_handlers = [
            h for h in logging.getLogger().handlers if isinstance(h, SizeCappedFileHandler)
        ]
        assert [h.maxBytes for h in file_handlers] == [2048]

    def test_unknown_level_falls_back_to_info(self, tmp_path: Path) -> None:
        setup_logging(log_dir=str(tmp_path / "nested"), log_level="verbose")
        assert logging.getLogger().level == logging.INFO
