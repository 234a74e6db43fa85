"""
Camera Raw XMP presets and looks: encoders and decoder.
"""

from .preset import PresetOptions, encode_preset
from .profile import (
    encode_profile,
    normalize_camera_profile,
    auto_select_camera_profile,
)
from .parser import ParseResult, parse_preset

__all__ = [
    'PresetOptions',
    'encode_preset',
    'encode_profile',
    'normalize_camera_profile',
    'auto_select_camera_profile',
    'ParseResult',
    'parse_preset',
]
