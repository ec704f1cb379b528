"""로그 설정 모듈

- 프로세스 시작마다 새 파일: logs/app_2026-01-12_09-30-00.log
- 파일이 max_bytes를 넘으면 내용을 버리고 처음부터 다시 기록 (백업 없음)
- 시작 시 최신 max_files개만 남기고 오래된 로그 삭제
"""

import logging
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path

from mangaembed.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
ROTATED_MESSAGE = "Log rotated"


class SizeCappedFileHandler(RotatingFileHandler):
    """크기 상한 파일 핸들러

    RotatingFileHandler의 크기 검사를 그대로 쓰되,
    롤오버 시 백업 파일을 만들지 않고 같은 파일을 비운다.
    """

    def __init__(self, filename: str | Path, max_bytes: int, encoding: str = "utf-8"):
        super().__init__(filename=str(filename), maxBytes=max_bytes, backupCount=0, encoding=encoding)

    def doRollover(self) -> None:
        if self.stream:
            self.stream.close()
            self.stream = None  # type: ignore[assignment]

        self.mode = "w"
        self.stream = self._open()
        self.mode = "a"
        self.stream.write(f"{datetime.now().strftime(DATE_FORMAT)} - {ROTATED_MESSAGE}\n")


def cleanup_old_logs(log_dir: Path, keep: int, base_name: str = "app") -> list[Path]:
    """최신 keep개를 제외한 로그 파일 삭제, 삭제한 경로 반환"""
    files = sorted(
        log_dir.glob(f"{base_name}_*.log"), key=lambda p: p.stat().st_mtime, reverse=True
    )
    removed: list[Path] = []
    for old in files[max(0, keep) :]:
        try:
            old.unlink()
            removed.append(old)
        except OSError as e:
            logging.getLogger(__name__).warning(f"로그 삭제 실패: {old} ({e})")
    return removed


def setup_logging(
    log_dir: str | None = None,
    log_level: str | None = None,
    max_bytes: int | None = None,
    max_files: int | None = None,
) -> Path:
    """로그 시스템 초기화 (프로세스 시작 시 1회)

    None인 인자는 설정값 (LOG_DIR, LOG_LEVEL, LOG_MAX_BYTES, LOG_MAX_FILES) 사용

    Args:
        log_dir: 로그 디렉터리
        log_level: 로그 레벨 (DEBUG/INFO/WARNING/ERROR)
        max_bytes: 파일 1개의 최대 크기 (바이트)
        max_files: 보관할 로그 파일 수 (새 파일 포함)

    Returns:
        이번 프로세스의 로그 파일 경로
    """
    settings = get_settings()
    log_dir = log_dir if log_dir is not None else settings.log_dir
    log_level = log_level if log_level is not None else settings.log_level
    max_bytes = max_bytes if max_bytes is not None else settings.log_max_bytes
    max_files = max_files if max_files is not None else settings.log_max_files

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    cleanup_old_logs(log_path, keep=max_files - 1)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    log_file = log_path / f"app_{datetime.now().strftime('%Y-%m-%d_%H-%M-%S')}.log"
    file_handler = SizeCappedFileHandler(log_file, max_bytes=max_bytes)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logging.info(f"로그 초기화 완료: {log_file.absolute()} (최대 {max_bytes // 1024}KB)")
    return log_file
