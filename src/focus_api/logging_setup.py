from __future__ import annotations

import logging
import sys


class _AppOnlyFilter(logging.Filter):
    """
    Keep focus_api logs at the configured level, but let third-party loggers
    (uvicorn access logs, httpx in tests) through only at WARNING and above.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith("focus_api"):
            return True
        return record.levelno >= logging.WARNING


# PUBLIC_INTERFACE
def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger with a single stderr handler.

    Safe to call more than once: pre-existing handlers are replaced, not stacked.
    """
    resolved = logging.getLevelName(level.upper())
    root = logging.getLogger()
    root.setLevel(resolved if isinstance(resolved, int) else logging.INFO)

    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setFormatter(fmt)
    ch.addFilter(_AppOnlyFilter())
    root.addHandler(ch)

    logging.captureWarnings(True)
