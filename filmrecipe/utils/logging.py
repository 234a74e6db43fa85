"""
Logging helpers for filmrecipe

Console setup for the CLI, key/value structured messages and batch
export statistics.
"""

import json
import logging
import sys
import time
from collections import Counter
from typing import Any, Dict, List, Optional

import click

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

LOG_COLORS = {
    'DEBUG': 'cyan',
    'INFO': 'green',
    'WARNING': 'yellow',
    'ERROR': 'red',
    'CRITICAL': 'red,bg_white',
}


class StructuredLogger:
    """
    Logger that appends context fields to each message as JSON.

    ``log.info("Generated artifact", bytes=120)`` emits
    ``Generated artifact | {"bytes": 120}``.
    """

    def __init__(self, name: str, metadata: Optional[Dict[str, Any]] = None):
        self.logger = logging.getLogger(name)
        self.metadata = dict(metadata or {})

    def bind(self, **fields) -> 'StructuredLogger':
        """Copy of this logger with extra context fields."""
        return StructuredLogger(self.logger.name, {**self.metadata, **fields})

    def log(self, level: int, message: str, **fields):
        if not self.logger.isEnabledFor(level):
            return
        context = {**self.metadata, **fields}
        if context:
            message = f"{message} | {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    def debug(self, message: str, **fields):
        self.log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields):
        self.log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields):
        self.log(logging.WARNING, message, **fields)

    def error(self, message: str, **fields):
        self.log(logging.ERROR, message, **fields)


class ExportStats:
    """Counts and timings for a batch of exports"""

    MAX_LISTED_ERRORS = 10

    def __init__(self):
        self.started = time.monotonic()
        self.total_recipes = 0
        self.exported = 0
        self.failed = 0
        self.artifacts_by_type: Counter = Counter()
        self.durations: List[float] = []
        self.errors: List[Dict[str, str]] = []

    def set_total(self, total: int):
        self.total_recipes = total

    def add_result(self, export_type: str, success: bool, seconds: Optional[float] = None):
        if success:
            self.exported += 1
            self.artifacts_by_type[export_type] += 1
        else:
            self.failed += 1
        if seconds:
            self.durations.append(seconds)

    def add_error(self, source: str, error: str):
        self.errors.append({'source': source, 'error': error})

    def get_summary(self) -> Dict[str, Any]:
        attempted = self.exported + self.failed
        return {
            'total_recipes': self.total_recipes,
            'exported': self.exported,
            'failed': self.failed,
            'success_rate': 100.0 * self.exported / attempted if attempted else 0.0,
            'artifacts_by_type': dict(self.artifacts_by_type),
            'errors': len(self.errors),
            'elapsed_time': time.monotonic() - self.started,
            'average_time_per_export': (sum(self.durations) / len(self.durations)
                                        if self.durations else 0.0),
        }

    def print_summary(self):
        """Print the batch summary with click."""
        summary = self.get_summary()
        rule = "=" * 60

        lines = [
            "", rule, "EXPORT SUMMARY", rule,
            f"Recipes:          {summary['total_recipes']}",
            f"Exported:         {summary['exported']} ({summary['success_rate']:.1f}%)",
            f"Failed:           {summary['failed']}",
        ]
        if summary['artifacts_by_type']:
            lines.append("\nArtifacts:")
            lines.extend(f"  - {name}: {count}"
                         for name, count in sorted(summary['artifacts_by_type'].items()))
        lines.extend([
            f"\nElapsed time:     {summary['elapsed_time']:.1f}s",
            f"Avg time/export:  {summary['average_time_per_export'] * 1000:.1f}ms",
            rule,
        ])

        if self.errors:
            lines.append("\nERRORS:")
            lines.extend(f"  - {e['source']}: {e['error']}"
                         for e in self.errors[:self.MAX_LISTED_ERRORS])
            hidden = len(self.errors) - self.MAX_LISTED_ERRORS
            if hidden > 0:
                lines.append(f"  ... and {hidden} more errors")

        click.echo("\n".join(lines))


def _console_formatter(fmt: str, color: bool) -> logging.Formatter:
    if color and sys.stderr.isatty():
        try:
            import colorlog
        except ImportError:
            pass
        else:
            return colorlog.ColoredFormatter(
                '%(log_color)s' + fmt.replace('%(message)s', '%(reset)s%(message)s'),
                log_colors=LOG_COLORS,
            )
    return logging.Formatter(fmt)


def setup_console_logging(level: str = "INFO", color: bool = True,
                          fmt: str = DEFAULT_FORMAT) -> logging.Handler:
    """
    Send log records to stderr, colored when colorlog is installed.

    Calling again replaces the handler installed by the previous call.

    Args:
        level: Level name for the root logger
        color: Use colorlog on a terminal
        fmt: Record format

    Returns:
        The installed handler
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_console_formatter(fmt, color))
    handler._filmrecipe_console = True

    root = logging.getLogger()
    for existing in [h for h in root.handlers if getattr(h, '_filmrecipe_console', False)]:
        root.removeHandler(existing)
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    root.addHandler(handler)
    return handler
