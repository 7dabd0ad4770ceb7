"""Logging setup with build context (generation, phase) on every line."""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "mudblazor_index"


class BuildLogFormatter(logging.Formatter):
    """Compact formatter that shows the build generation and phase when present."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",      # Cyan
        "INFO": "\033[32m",       # Green
        "WARNING": "\033[33m",    # Yellow
        "ERROR": "\033[31m",      # Red
        "CRITICAL": "\033[35m",   # Magenta
    }

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        context = ""
        if hasattr(record, "generation"):
            context += f"[gen {record.generation}] "
        if hasattr(record, "phase"):
            context += f"[{record.phase}] "

        if self.use_colors:
            level_color = self.LEVEL_COLORS.get(record.levelname, "")
            reset = "\033[0m"
        else:
            level_color = ""
            reset = ""

        line = (
            f"{timestamp} {level_color}{record.levelname:8s}{reset} "
            f"{record.name.rsplit('.', 1)[-1]}: {context}{record.getMessage()}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class BuildLogAdapter(logging.LoggerAdapter):
    """Logger adapter that tags messages with the running build's context."""

    def __init__(self, logger: logging.Logger):
        super().__init__(logger, {})
        self.generation: Optional[int] = None
        self.phase: Optional[str] = None

    def set_build_context(self, generation: Optional[int] = None, phase: Optional[str] = None):
        if generation is not None:
            self.generation = generation
        if phase is not None:
            self.phase = phase

    def clear_context(self):
        self.generation = None
        self.phase = None

    def process(self, msg, kwargs):
        extra = dict(kwargs.get("extra") or {})
        if self.generation is not None:
            extra["generation"] = self.generation
        if self.phase:
            extra["phase"] = self.phase
        kwargs["extra"] = extra
        return msg, kwargs

    def phase_change(self, phase: str):
        self.set_build_context(phase=phase)
        self.debug("Phase: %s", phase)

    def build_started(self, generation: int, root_path: str):
        self.set_build_context(generation=generation, phase="starting")
        self.info("🔨 Building component index from %s", root_path)

    def build_completed(self, duration_seconds: float, component_count: int):
        self.info("✅ Indexed %d components in %.1fs", component_count, duration_seconds)
        self.clear_context()

    def build_failed(self, error: BaseException):
        self.error("❌ Index build failed: %s", error)
        self.clear_context()


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
    use_colors: Optional[bool] = None,
) -> logging.Logger:
    """
    Configure the package logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Also write plain-text logs to this file
        use_colors: Force ANSI colors on/off; defaults to whether stderr is a tty

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    logger.propagate = False

    # Close existing handlers before clearing (prevents file descriptor leak)
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    if use_colors is None:
        use_colors = hasattr(sys.stderr, "isatty") and sys.stderr.isatty()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(BuildLogFormatter(use_colors=use_colors))
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(BuildLogFormatter(use_colors=False))
        logger.addHandler(file_handler)

    return logger
