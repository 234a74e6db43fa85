"""
Mask taxonomy for filmrecipe.

Override helpers live in ``filmrecipe.masks.overrides``.
"""

from .registry import (
    REGISTRY,
    MaskRegistry,
    MaskTypeConfig,
    MaskCodes,
    MaskCategory,
    GeometryArchetype,
    CaptureOneMaskType,
    normalize_mask_type,
    get_mask_config,
    get_mask_type_from_codes,
    get_all_mask_types,
)

__all__ = [
    'REGISTRY',
    'MaskRegistry',
    'MaskTypeConfig',
    'MaskCodes',
    'MaskCategory',
    'GeometryArchetype',
    'CaptureOneMaskType',
    'normalize_mask_type',
    'get_mask_config',
    'get_mask_type_from_codes',
    'get_all_mask_types',
]
