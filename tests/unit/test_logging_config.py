"""Unit tests for liftlab logging configuration."""

from __future__ import annotations

import json
import logging
import os
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from unittest import mock

import liftlab
from liftlab.logging_config import (
    ENV_FILE,
    ENV_JSON,
    ENV_LEVEL,
    LOGGER_NAME,
    JsonFormatter,
    _resolve_level,
)


def library_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)


def real_handlers() -> list[logging.Handler]:
    return [h for h in library_logger().handlers if not isinstance(h, logging.NullHandler)]


def flush_all() -> None:
    for handler in library_logger().handlers:
        handler.flush()


class TestSilentByDefault:
    def test_only_null_handler(self):
        handlers = library_logger().handlers
        assert handlers
        assert all(isinstance(h, logging.NullHandler) for h in handlers)

    def test_simulation_run_prints_nothing(self, capfd):
        """A full run with the default setup writes nothing to the terminal."""
        sim = liftlab.Simulation(liftlab.SimulationConfig(seed=1, duration=5.0))
        sim.run_for(10.0)

        captured = capfd.readouterr()
        assert captured.out == ""
        assert captured.err == ""


class TestConsoleLogging:
    def test_returns_installed_handler(self):
        handler = liftlab.enable_console_logging()
        assert handler in library_logger().handlers
        assert isinstance(handler, logging.StreamHandler)

    def test_level_applies_to_logger_and_handler(self):
        handler = liftlab.enable_console_logging(level="DEBUG")
        assert library_logger().level == logging.DEBUG
        assert handler.level == logging.DEBUG

    def test_simulation_lifecycle_is_logged(self, capfd):
        liftlab.enable_console_logging(level="INFO")
        sim = liftlab.Simulation(liftlab.SimulationConfig(seed=1, duration=1.0))
        sim.run_for(2.0)

        err = capfd.readouterr().err
        assert "Simulation started" in err
        assert "Simulation completed" in err
        assert "liftlab.simulation" in err

    def test_custom_format(self, capfd):
        liftlab.enable_console_logging(level="INFO", format="<%(levelname)s> %(message)s")
        logging.getLogger(f"{LOGGER_NAME}.custom").warning("door jammed")
        assert "<WARNING> door jammed" in capfd.readouterr().err


class TestFileLogging:
    def test_rotating_file(self, tmp_path):
        handler = liftlab.enable_file_logging(tmp_path / "a" / "b" / "sim.log", max_bytes=2048, backup_count=5)
        assert isinstance(handler, RotatingFileHandler)
        assert handler.maxBytes == 2048
        assert handler.backupCount == 5
        assert (tmp_path / "a" / "b").is_dir()

    def test_writes_records(self, tmp_path):
        path = tmp_path / "sim.log"
        liftlab.enable_file_logging(path, level="DEBUG")
        logging.getLogger(f"{LOGGER_NAME}.core.elevator").debug("arrived at floor %d", 4)
        flush_all()
        assert "arrived at floor 4" in path.read_text()

    def test_timed_rotation(self, tmp_path):
        handler = liftlab.enable_timed_file_logging(tmp_path / "sim.log", when="H", interval=2)
        assert isinstance(handler, TimedRotatingFileHandler)
        assert handler.when == "H"
        assert handler.interval == 2 * 60 * 60


class TestJsonLogging:
    def test_one_object_per_line(self, capfd):
        liftlab.enable_json_logging(level="INFO")
        log = logging.getLogger(f"{LOGGER_NAME}.test")
        log.info("first")
        log.info("second")

        lines = capfd.readouterr().err.strip().splitlines()
        records = [json.loads(line) for line in lines]
        assert [r["message"] for r in records] == ["first", "second"]
        assert records[0]["level"] == "INFO"
        assert records[0]["logger"] == f"{LOGGER_NAME}.test"
        assert records[0]["thread"]

    def test_json_file(self, tmp_path):
        path = tmp_path / "sim.jsonl"
        liftlab.enable_json_file_logging(path)
        logging.getLogger(f"{LOGGER_NAME}.test").warning("capacity %d reached", 8)
        flush_all()
        assert json.loads(path.read_text().strip())["message"] == "capacity 8 reached"


class TestJsonFormatter:
    def _record(self, exc_info=None) -> logging.LogRecord:
        return logging.LogRecord(
            name="liftlab.test",
            level=logging.ERROR,
            pathname=__file__,
            lineno=1,
            msg="tick %d failed",
            args=(3,),
            exc_info=exc_info,
        )

    def test_basic_record(self):
        data = json.loads(JsonFormatter().format(self._record()))
        assert data["message"] == "tick 3 failed"
        assert data["level"] == "ERROR"
        assert data["timestamp"].endswith("+00:00")
        assert "exception" not in data

    def test_exception(self):
        try:
            raise RuntimeError("motor fault")
        except RuntimeError as e:
            exc_info = (type(e), e, e.__traceback__)
        data = json.loads(JsonFormatter().format(self._record(exc_info)))
        assert "RuntimeError: motor fault" in data["exception"]


class TestConfigureFromEnv:
    def test_nothing_set(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            assert liftlab.configure_from_env() is None
        assert real_handlers() == []

    def test_level_only(self):
        with mock.patch.dict(os.environ, {ENV_LEVEL: "debug"}, clear=True):
            handler = liftlab.configure_from_env()
        assert isinstance(handler, logging.StreamHandler)
        assert library_logger().level == logging.DEBUG

    def test_file_defaults_to_info(self, tmp_path):
        path = tmp_path / "env.log"
        with mock.patch.dict(os.environ, {ENV_FILE: str(path)}, clear=True):
            handler = liftlab.configure_from_env()
        assert isinstance(handler, RotatingFileHandler)
        assert library_logger().level == logging.INFO

    def test_json_to_stderr(self, capfd):
        with mock.patch.dict(os.environ, {ENV_LEVEL: "INFO", ENV_JSON: "1"}, clear=True):
            liftlab.configure_from_env()
        logging.getLogger(f"{LOGGER_NAME}.test").info("json env")
        assert json.loads(capfd.readouterr().err.strip())["message"] == "json env"

    def test_json_to_file(self, tmp_path):
        path = tmp_path / "env.jsonl"
        with mock.patch.dict(os.environ, {ENV_FILE: str(path), ENV_JSON: "1"}, clear=True):
            handler = liftlab.configure_from_env()
        assert isinstance(handler.formatter, JsonFormatter)


class TestLevels:
    def test_set_level(self):
        liftlab.set_level("WARNING")
        assert library_logger().level == logging.WARNING
        liftlab.set_level(logging.ERROR)
        assert library_logger().level == logging.ERROR

    def test_module_level_filters_one_subpackage(self, capfd):
        liftlab.enable_console_logging(level="DEBUG")
        liftlab.set_module_level("algorithms", "WARNING")
        try:
            logging.getLogger(f"{LOGGER_NAME}.algorithms.greedy").debug("dispatch detail")
            logging.getLogger(f"{LOGGER_NAME}.core.elevator").debug("elevator detail")
        finally:
            logging.getLogger(f"{LOGGER_NAME}.algorithms").setLevel(logging.NOTSET)

        err = capfd.readouterr().err
        assert "dispatch detail" not in err
        assert "elevator detail" in err

    def test_resolve_level(self):
        assert _resolve_level("info") == logging.INFO
        assert _resolve_level(logging.DEBUG) == logging.DEBUG
        assert _resolve_level("LOUD") == logging.INFO


class TestDisableLogging:
    def test_removes_handlers_and_silences(self, capfd, tmp_path):
        liftlab.enable_console_logging(level="DEBUG")
        liftlab.enable_file_logging(tmp_path / "sim.log")

        liftlab.disable_logging()
        logging.getLogger(f"{LOGGER_NAME}.test").critical("should not appear")

        assert real_handlers() == []
        assert any(isinstance(h, logging.NullHandler) for h in library_logger().handlers)
        assert "should not appear" not in capfd.readouterr().err
