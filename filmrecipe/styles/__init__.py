"""
Style documents for other raw editors.
"""

from .capture_one import StyleOptions, encode_style, encode_basic_style

__all__ = [
    'StyleOptions',
    'encode_style',
    'encode_basic_style',
]
