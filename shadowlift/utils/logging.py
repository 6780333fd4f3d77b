"""
Logging helpers for ShadowLift

Context-carrying loggers for batch work, batch timing statistics and the
console handler setup used by the CLI.
"""

import json
import logging
import sys
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import colorlog

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

LOG_COLORS = {
    'DEBUG': 'cyan',
    'INFO': 'green',
    'WARNING': 'yellow',
    'ERROR': 'red',
    'CRITICAL': 'red,bg_white',
}

_HANDLER_MARK = '_shadowlift_console'


class StructuredLogger:
    """
    Logger that appends key/value context to each message as JSON.

    Example:
        log = StructuredLogger(__name__, {'batch': 'holiday'})
        log.error("Failed to process file", file='IMG_1.jpg')
        # Failed to process file | {"batch": "holiday", "file": "IMG_1.jpg"}
    """

    def __init__(self, name: str, context: Optional[Dict[str, Any]] = None):
        self.logger = logging.getLogger(name)
        self.context = dict(context or {})

    def bind(self, **context) -> 'StructuredLogger':
        """Copy of this logger with extra context"""
        bound = StructuredLogger(self.logger.name, self.context)
        bound.context.update(context)
        return bound

    def log(self, level: int, message: str, **fields):
        if not self.logger.isEnabledFor(level):
            return
        payload = {**self.context, **fields}
        if payload:
            message = f"{message} | {json.dumps(payload, default=str, sort_keys=True)}"
        self.logger.log(level, message)

    def debug(self, message: str, **fields):
        self.log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields):
        self.log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields):
        self.log(logging.WARNING, message, **fields)

    def error(self, message: str, **fields):
        self.log(logging.ERROR, message, **fields)


@dataclass
class ProcessingStats:
    """Per-batch counters and timings"""
    total_files: int = 0
    durations: List[float] = field(default_factory=list)
    failures: List[Dict[str, str]] = field(default_factory=list)
    started: float = field(default_factory=time.monotonic)

    def set_total(self, total: int):
        self.total_files = total

    def add_success(self, seconds: float = 0.0):
        self.durations.append(seconds)

    def add_failure(self, name: str, reason: str):
        self.failures.append({'name': name, 'reason': reason})

    @property
    def succeeded_files(self) -> int:
        return len(self.durations)

    @property
    def failed_files(self) -> int:
        return len(self.failures)

    @property
    def processed_files(self) -> int:
        return self.succeeded_files + self.failed_files

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.started

    @property
    def average_time(self) -> float:
        return sum(self.durations) / len(self.durations) if self.durations else 0.0

    def get_summary(self) -> Dict[str, Any]:
        return {
            'total_files': self.total_files,
            'processed_files': self.processed_files,
            'succeeded_files': self.succeeded_files,
            'failed_files': self.failed_files,
            'failures': list(self.failures),
            'elapsed_time': self.elapsed,
            'average_time_per_file': self.average_time,
        }

    def format_summary(self, max_failures: int = 10) -> str:
        """Human readable batch report"""
        rule = "=" * 60
        lines = [
            rule,
            "SHADOWLIFT BATCH SUMMARY",
            rule,
            f"Images:           {self.total_files}",
            f"Succeeded:        {self.succeeded_files}",
            f"Failed:           {self.failed_files}",
            f"Elapsed:          {self.elapsed:.1f}s",
            f"Average/image:    {self.average_time:.2f}s",
            rule,
        ]
        if self.failures:
            lines.append("Failures:")
            lines.extend(f"  - {f['name']}: {f['reason']}" for f in self.failures[:max_failures])
            hidden = len(self.failures) - max_failures
            if hidden > 0:
                lines.append(f"  ... {hidden} more")
        return "\n".join(lines)


def setup_console_logging(level: str = "INFO", color: bool = True,
                          fmt: str = DEFAULT_FORMAT):
    """
    Route log records to stderr

    Args:
        level: Root logging level name
        color: Colour records by level when stderr is a terminal
        fmt: logging format string
    """
    stream = sys.stderr
    if color and stream.isatty():
        formatter = colorlog.ColoredFormatter(f'%(log_color)s{fmt}%(reset)s',
                                              log_colors=LOG_COLORS)
    else:
        formatter = logging.Formatter(fmt)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)
    setattr(handler, _HANDLER_MARK, True)

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    # Calling again replaces the previous console handler
    for existing in [h for h in root.handlers if getattr(h, _HANDLER_MARK, False)]:
        root.removeHandler(existing)
    root.addHandler(handler)
