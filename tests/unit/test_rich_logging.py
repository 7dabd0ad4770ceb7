"""Tests for build-context logging."""

import logging

from mudblazor_index.utils.rich_logging import (
    PACKAGE_LOGGER,
    BuildLogAdapter,
    BuildLogFormatter,
    setup_logging,
)


def _record(msg="hello", **extra):
    record = logging.LogRecord("mudblazor_index.indexing.indexer", logging.INFO, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestBuildLogFormatter:
    def test_plain_line(self):
        line = BuildLogFormatter(use_colors=False).format(_record())
        assert line.endswith("INFO     indexer: hello")

    def test_build_context(self):
        line = BuildLogFormatter(use_colors=False).format(_record(generation=3, phase="merging"))
        assert "[gen 3] [merging] hello" in line

    def test_colors(self):
        line = BuildLogFormatter(use_colors=True).format(_record())
        assert "\033[32m" in line


class TestBuildLogAdapter:
    def test_context_added_to_records(self):
        adapter = BuildLogAdapter(logging.getLogger("test.adapter"))
        adapter.set_build_context(generation=2, phase="declarations")

        _, kwargs = adapter.process("msg", {})
        assert kwargs["extra"] == {"generation": 2, "phase": "declarations"}

    def test_clear_context(self):
        adapter = BuildLogAdapter(logging.getLogger("test.adapter"))
        adapter.build_started(5, "/src")
        adapter.clear_context()

        _, kwargs = adapter.process("msg", {"extra": {"k": 1}})
        assert kwargs["extra"] == {"k": 1}

    def test_phase_change_keeps_generation(self):
        adapter = BuildLogAdapter(logging.getLogger("test.adapter"))
        adapter.build_started(1, "/src")
        adapter.phase_change("examples")
        assert (adapter.generation, adapter.phase) == (1, "examples")


class TestSetupLogging:
    def test_configures_package_logger(self, tmp_path):
        log_file = tmp_path / "logs" / "index.log"
        logger = setup_logging("debug", log_file=log_file, use_colors=False)

        assert logger.name == PACKAGE_LOGGER
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2

        logging.getLogger("mudblazor_index.cache").warning("written")
        for handler in logger.handlers:
            handler.flush()
        assert "written" in log_file.read_text()

    def test_repeat_calls_replace_handlers(self):
        setup_logging()
        logger = setup_logging("WARNING")
        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING
