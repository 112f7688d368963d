import io
import os
import re
import threading

import pytest

from etherrecorder.levels import LogEntry, LogLevel, LogOutput
from etherrecorder.logger import (
    MAX_THREADS,
    Logger,
    get_thread_label,
    set_thread_label,
)


def _run_in_thread(func):
    result = {}

    def target():
        result["value"] = func()

    worker = threading.Thread(target=target)
    worker.start()
    worker.join()
    return result["value"]


@pytest.fixture
def stream():
    return io.StringIO()


@pytest.fixture
def make_logger(tmp_path, stream):
    created = []

    def factory(**logger_options):
        options = {
            "log_file_path": str(tmp_path),
            "log_file_name": "app.log",
            "log_destination": "both",
        }
        options.update(logger_options)
        logger = Logger(stream=stream)
        logger.configure({"logger": options})
        created.append(logger)
        return logger

    yield factory
    for logger in created:
        logger.close()


@pytest.fixture(autouse=True)
def main_label():
    set_thread_label("TESTER")
    yield
    set_thread_label(None)


def test_thread_label_is_per_thread():
    set_thread_label("MAIN")
    assert get_thread_label() == "MAIN"
    assert _run_in_thread(get_thread_label) is None


def test_create_entry_defaults_to_unknown_label():
    logger = Logger(stream=io.StringIO())
    entry = _run_in_thread(lambda: logger.create_entry(LogLevel.INFO, "hi"))
    assert entry.thread_label == "UNKNOWN"
    assert entry.message == "hi"
    assert entry.level == LogLevel.INFO


def test_create_entry_indexes_increase():
    logger = Logger(stream=io.StringIO())
    first = logger.create_entry(LogLevel.INFO, "a")
    second = logger.create_entry(LogLevel.INFO, "b")
    assert second.index == first.index + 1
    assert first.thread_label == "TESTER"


def test_create_entry_truncates_message_and_label():
    logger = Logger(stream=io.StringIO())
    set_thread_label("L" * 200)
    entry = logger.create_entry(LogLevel.INFO, "x" * 2000)
    assert len(entry.message) == 1023
    assert len(entry.thread_label) == 63


def test_configure_reports_file(make_logger, tmp_path):
    logger = Logger(stream=io.StringIO())
    result = logger.configure(
        {"logger": {"log_file_path": str(tmp_path), "log_file_name": "app.log"}}
    )
    assert result == f"Logger initialised. App logging to {tmp_path / 'app.log'}"
    assert logger.output == LogOutput.SCREEN
    logger.close()


def test_log_is_queued_until_flushed(make_logger, tmp_path, stream):
    logger = make_logger()
    logger.log(LogLevel.ERROR, "hello %d", 42)
    assert stream.getvalue() == ""
    assert logger.flush_queue() == 1
    text = (tmp_path / "app.log").read_text(encoding="utf-8")
    assert "ERROR: [TESTER] hello 42" in text
    assert "\x1b" not in text
    assert "[TESTER] hello 42" in stream.getvalue()


def test_level_filtering(make_logger):
    logger = make_logger()
    logger.set_level(LogLevel.WARN)
    logger.log(LogLevel.INFO, "dropped")
    logger.log(LogLevel.ERROR, "kept")
    assert logger.flush_queue() == 1


def test_screen_output_has_reset_after_label(make_logger, tmp_path, stream):
    logger = make_logger(log_destination="screen")
    entry = logger.create_entry(LogLevel.ERROR, "boom")
    logger.log_now(entry)
    assert entry.message == "boom"
    assert f"ERROR\x1b[0m: [TESTER] {entry.message}" in stream.getvalue()
    assert entry.message not in (tmp_path / "app.log").read_text(encoding="utf-8")


def test_ansi_colours(make_logger, stream):
    logger = make_logger(log_destination="console", ansi_colours="true")
    entry = logger.create_entry(LogLevel.ERROR, "red")
    logger.log_now(entry)
    assert f"\x1b[31mERROR\x1b[0m: [TESTER] {entry.message}" in stream.getvalue()


def test_file_only_output(make_logger, tmp_path, stream):
    logger = make_logger(log_destination="file")
    entry = logger.create_entry(LogLevel.INFO, "quiet")
    logger.log_now(entry)
    assert stream.getvalue() == ""
    text = (tmp_path / "app.log").read_text(encoding="utf-8")
    assert f"[{entry.thread_label}] {entry.message}" in text


def test_index_width_and_granularity(make_logger, stream):
    logger = make_logger(
        log_destination="screen",
        log_leading_zeros="4",
        timestamp_granularity="millisecond",
    )
    entry = logger.create_entry(LogLevel.INFO, "ts")
    logger.log_now(entry)
    fields = stream.getvalue().split()
    assert fields[0] == f"{entry.index:04d}"
    assert re.fullmatch(r"\d\d:\d\d:\d\d\.\d{3}", fields[2])


def test_second_granularity_has_no_fraction(make_logger, stream):
    logger = make_logger(log_destination="screen", timestamp_granularity="second")
    entry = logger.create_entry(LogLevel.INFO, "ts")
    logger.log_now(entry)
    fields = stream.getvalue().split()
    assert fields[0] == f"{entry.index:012d}"
    assert re.fullmatch(r"\d\d:\d\d:\d\d", fields[2])


def test_thread_specific_file(make_logger, tmp_path):
    logger = make_logger(log_destination="file")
    worker_path = tmp_path / "w" / "worker.log"
    logger.set_thread_log_file("worker", str(worker_path))
    entry = LogEntry(
        index=1, level=LogLevel.INFO, timestamp=0, message="from worker",
        thread_label="WORKER",
    )
    logger.log_now(entry)
    assert "from worker" in worker_path.read_text(encoding="utf-8")
    assert "from worker" not in (tmp_path / "app.log").read_text(encoding="utf-8")


def test_thread_file_from_config(tmp_path):
    logger = Logger(stream=io.StringIO())
    logs = tmp_path / "logs"
    logger.configure(
        {
            "logger": {
                "log_file_path": str(logs),
                "worker.log_file_name": "worker.log",
                "log_level": "warning",
            },
            "debug": {"trace_on": "true"},
        }
    )
    logger.set_thread_log_file_from_config("worker")
    assert logger.level == LogLevel.WARN
    assert logger.trace_all is True
    assert logger.thread_log_files == [("worker", str(logs / "worker.log"))]
    logger.close()


def test_log_level_defaults_to_info_from_config(make_logger):
    logger = make_logger()
    logger.set_thread_log_file_from_config("nobody")
    assert logger.level == LogLevel.INFO
    assert logger.thread_log_files == []


def test_thread_file_limit(make_logger, tmp_path):
    logger = make_logger()
    for number in range(MAX_THREADS + 1):
        logger.set_thread_log_file(f"t{number}", str(tmp_path / f"t{number}.log"))
    labels = [label for label, _ in logger.thread_log_files]
    assert len(labels) == MAX_THREADS
    assert f"t{MAX_THREADS}" not in labels


def test_trace_prefixes_location(make_logger, stream):
    logger = make_logger(log_destination="screen")
    logger.set_level(LogLevel.TRACE)
    logger.log(LogLevel.TRACE, "traced")
    assert logger.flush_queue() == 1
    assert re.search(r"\[test_logger\.py:\d+\] traced", stream.getvalue())


def test_rotation(make_logger, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    logger = make_logger(log_destination="file", log_file_size="10")
    first = logger.create_entry(LogLevel.INFO, "first message")
    logger.log_now(first)
    second = logger.create_entry(LogLevel.INFO, "second message")
    logger.log_now(second)
    rotated = list(tmp_path.glob("log_*.txt.old"))
    assert len(rotated) == 1
    assert first.message in rotated[0].read_text(encoding="utf-8")
    current = (tmp_path / "app.log").read_text(encoding="utf-8")
    assert second.message in current
    assert first.message not in current


def test_purge_on_restart(make_logger, tmp_path):
    (tmp_path / "app.log").write_text("old content\n", encoding="utf-8")
    logger = make_logger(log_destination="file", purge_logs_on_restart="true")
    entry = logger.create_entry(LogLevel.INFO, "fresh")
    logger.log_now(entry)
    text = (tmp_path / "app.log").read_text(encoding="utf-8")
    assert "old content" not in text
    assert f"[{entry.thread_label}] {entry.message}" in text


def test_append_without_purge(make_logger, tmp_path):
    (tmp_path / "app.log").write_text("old content\n", encoding="utf-8")
    logger = make_logger(log_destination="file")
    entry = logger.create_entry(LogLevel.INFO, "fresh")
    assert entry.message == "fresh"
    logger.log_now(entry)
    text = (tmp_path / "app.log").read_text(encoding="utf-8")
    assert text.startswith("old content\n")
    assert f"[{entry.thread_label}] {entry.message}" in text


def test_unopenable_file_falls_back_to_screen(make_logger, tmp_path, stream, capsys):
    (tmp_path / "sub").mkdir()
    logger = make_logger(log_file_name="sub", log_destination="file")
    logger.log_now(logger.create_entry(LogLevel.INFO, "fallback"))
    assert logger.output == LogOutput.SCREEN
    assert "[TESTER] fallback" in stream.getvalue()
    assert "Failed to open log file" in capsys.readouterr().err


def test_queue_overflow_is_reported(tmp_path, stream):
    logger = Logger(stream=stream, queue_size=3)
    logger.configure(
        {
            "logger": {
                "log_file_path": str(tmp_path),
                "log_file_name": "app.log",
                "log_destination": "screen",
            }
        }
    )
    for number in range(3):
        logger.log(LogLevel.INFO, "message %d", number)
    assert "Log queue overflow. Discarding oldest log entry." in stream.getvalue()
    assert logger.flush_queue() == 2
    assert "message 0" not in stream.getvalue()
    assert "message 2" in stream.getvalue()
    logger.close()


def test_close_flushes_queue(make_logger, tmp_path):
    logger = make_logger(log_destination="file")
    logger.log(LogLevel.INFO, "pending")
    logger.close()
    assert "pending" in (tmp_path / "app.log").read_text(encoding="utf-8")
    assert logger.flush_queue() == 0


def test_unconfigured_logger_logs_directly(stream, capsys, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    logger = Logger(stream=stream)
    logger.log(LogLevel.INFO, "direct")
    assert "[TESTER] direct" in stream.getvalue()
    assert logger.output == LogOutput.SCREEN
    assert os.listdir(tmp_path) == []
    logger.close()