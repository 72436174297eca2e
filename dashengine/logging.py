"""Package logging for dashengine.

Every module logs through ``get_logger(__name__)``, so all records flow to a
single ``dashengine`` root logger with one handler. Records emitted inside
``solve_context`` carry a ``scenario`` field naming the round being solved or
graded; the default format prints it, which keeps interleaved log lines from
concurrent rounds attributable.
"""

import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

_ROOT_LOGGER_CONFIGURED = False

ROOT_LOGGER_NAME = "dashengine"

#: Value of the ``scenario`` record field outside any ``solve_context``.
NO_SCENARIO = "-"

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(scenario)s] %(message)s"

_current_scenario: ContextVar[str] = ContextVar("dashengine_scenario", default=NO_SCENARIO)


class ScenarioContextFilter(logging.Filter):
    """Stamp each record with the label of the active ``solve_context``."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "scenario"):
            record.scenario = _current_scenario.get()
        return True


@contextmanager
def solve_context(label: str) -> Iterator[str]:
    """Tag records logged in this block (and this thread or task) with ``label``.

    Contexts nest; leaving a block restores the enclosing label.
    """
    token = _current_scenario.set(label)
    try:
        yield label
    finally:
        _current_scenario.reset(token)


def current_scenario() -> str:
    return _current_scenario.get()


def setup_root_logger(
    level: int = logging.INFO,
    format_string: Optional[str] = None,
    handler: Optional[logging.Handler] = None,
) -> None:
    """Install the package handler once.

    Later calls are no-ops until ``reset_logging``.

    Args:
        level: Root level (default: INFO).
        format_string: Record format; defaults to ``DEFAULT_FORMAT``.
        handler: Target handler; defaults to a stdout stream.
    """
    global _ROOT_LOGGER_CONFIGURED

    if _ROOT_LOGGER_CONFIGURED:
        return

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if handler is None:
        handler = logging.StreamHandler(sys.stdout)

    handler.setFormatter(logging.Formatter(format_string or DEFAULT_FORMAT))
    handler.addFilter(ScenarioContextFilter())
    root_logger.addHandler(handler)

    # caplog listens on the stdlib root
    root_logger.propagate = True

    _ROOT_LOGGER_CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Module logger under the ``dashengine`` root.

    The returned logger has no level of its own, so ``set_global_log_level``
    controls it.
    """
    setup_root_logger()

    logger = logging.getLogger(name)
    logger.setLevel(logging.NOTSET)
    return logger


def set_global_log_level(level: int) -> None:
    setup_root_logger()

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)
    for handler in root_logger.handlers:
        handler.setLevel(level)


def enable_debug_logging() -> None:
    """Log resolver, solver and cache decisions (DEBUG)."""
    set_global_log_level(logging.DEBUG)


def disable_debug_logging() -> None:
    set_global_log_level(logging.INFO)


def reset_logging() -> None:
    """Drop the package handler so the next call reinstalls it (tests)."""
    global _ROOT_LOGGER_CONFIGURED
    _ROOT_LOGGER_CONFIGURED = False

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.handlers.clear()
    root_logger.setLevel(logging.NOTSET)


setup_root_logger()
