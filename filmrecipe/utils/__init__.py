"""
filmrecipe utilities module.
"""

from .logging import StructuredLogger, ExportStats, setup_console_logging

__all__ = [
    'StructuredLogger',
    'ExportStats',
    'setup_console_logging',
]
