import logging
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

from voice_relay.logging_handlers import DateStampedFileHandler, cleanup_old_logs


def _age(path: Path, *, hours: float) -> None:
    stamp = (datetime.now(timezone.utc) - timedelta(hours=hours)).timestamp()
    os.utime(path, (stamp, stamp))


def test_date_stamped_file_handler_creates_expected_path(tmp_path) -> None:
    current = datetime(2024, 5, 26, 12, 34, 56, tzinfo=timezone.utc)
    handler = DateStampedFileHandler(tmp_path / "logs", current_time=current)
    try:
        expected_file = (
            tmp_path / "logs" / "2024-05-26" / "relay_2024-05-26_12-34-56_UTC.log"
        ).resolve()
        file_path = Path(handler.baseFilename)
        assert file_path == expected_file
        assert file_path.exists()

        record = logging.LogRecord(
            name="test",
            level=logging.INFO,
            pathname=__file__,
            lineno=0,
            msg="[req-1] STT Result: %s",
            args=("नमस्ते",),
            exc_info=None,
        )
        handler.emit(record)

        assert "नमस्ते" in file_path.read_text(encoding="utf-8")
    finally:
        handler.close()


def test_handler_normalizes_to_utc(tmp_path) -> None:
    ist = timezone(timedelta(hours=5, minutes=30))
    current = datetime(2024, 1, 1, 2, 0, 0, tzinfo=ist)
    handler = DateStampedFileHandler(tmp_path, prefix="voice", current_time=current)
    try:
        assert Path(handler.baseFilename).name == "voice_2023-12-31_20-30-00_UTC.log"
        assert Path(handler.baseFilename).parent.name == "2023-12-31"
    finally:
        handler.close()


def test_cleanup_old_logs(tmp_path) -> None:
    """Old log files are deleted based on retention hours."""
    date_dir = tmp_path / "2024-05-26"
    date_dir.mkdir()

    old_file = date_dir / "relay_old.log"
    old_file.write_text("old content")
    _age(old_file, hours=72)

    recent_file = date_dir / "relay_recent.log"
    recent_file.write_text("recent content")
    _age(recent_file, hours=24)

    unrelated = date_dir / "notes.txt"
    unrelated.write_text("keep me")
    _age(unrelated, hours=500)

    files_deleted, errors = cleanup_old_logs(tmp_path, retention_hours=48)

    assert files_deleted == 1
    assert errors == 0
    assert not old_file.exists()
    assert recent_file.exists()
    assert unrelated.exists()


def test_cleanup_old_logs_disabled(tmp_path) -> None:
    old_file = tmp_path / "relay_old.log"
    old_file.write_text("content")
    _age(old_file, hours=2400)

    assert cleanup_old_logs(tmp_path, retention_hours=0) == (0, 0)
    assert old_file.exists()


def test_cleanup_old_logs_missing_directory(tmp_path) -> None:
    assert cleanup_old_logs(tmp_path / "absent", retention_hours=48) == (0, 0)


def test_cleanup_old_logs_removes_empty_date_directories(tmp_path) -> None:
    date_dir = tmp_path / "2024-01-01"
    date_dir.mkdir()
    old_file = date_dir / "relay_old.log"
    old_file.write_text("content")
    _age(old_file, hours=2400)

    files_deleted, errors = cleanup_old_logs(tmp_path, retention_hours=48)

    assert (files_deleted, errors) == (1, 0)
    assert not date_dir.exists()
