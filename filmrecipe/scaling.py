"""
Scaling and clamping policy shared by every encoder.

A grade is written at a per-target strength: values are multiplied by the
strength, clamped into the editor's accepted range, then rounded.  Hue
rotations are never strength-scaled, only clamped.
"""

import logging
import math
from enum import Enum
from typing import Dict, Any, Optional

from .config import get_config_value
from .models import (
    AdjustmentRecord, FieldRange, LocalAdjustments, RANGES,
    HSL_BUCKETS, GRADING_ZONES, is_number,
)

logger = logging.getLogger(__name__)


class ExportTarget(Enum):
    """Export destinations with their own default strength."""
    PRESET = "preset"
    PROFILE = "profile"
    MASK = "mask"
    STYLE = "style"
    LUT = "lut"


# Presets carry the full grade; looks are applied on top of other settings
# at half strength; masks stack on the global grade and stay subtle.
DEFAULT_STRENGTHS: Dict[ExportTarget, float] = {
    ExportTarget.PRESET: 1.0,
    ExportTarget.PROFILE: 0.5,
    ExportTarget.MASK: 0.35,
    ExportTarget.STYLE: 1.0,
    ExportTarget.LUT: 1.0,
}

BASIC_TONE_FIELDS = ('contrast', 'highlights', 'shadows', 'whites', 'blacks',
                     'clarity', 'vibrance', 'saturation', 'brightness')

PARAMETRIC_FIELDS = ('parametric_shadows', 'parametric_darks',
                     'parametric_lights', 'parametric_highlights')

PARAMETRIC_SPLIT_FIELDS = ('parametric_shadow_split', 'parametric_midtone_split',
                           'parametric_highlight_split')


def round_half_up(value: float, decimals: int = 0) -> float:
    """Round with ties going toward +infinity."""
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


def scale(value, field_range: FieldRange, strength: float = 1.0,
          round_result: bool = True, decimals: Optional[int] = None):
    """
    Scale, clamp and round a single value.

    Args:
        value: Raw value; anything that is not a finite number yields None
        field_range: Range the result is clamped into
        strength: Multiplier applied before clamping
        round_result: Round half-up to an integer
        decimals: Fix to this many decimals instead of an integer

    Returns:
        Scaled value, or None when the input is absent or invalid
    """
    if not is_number(value):
        return None
    scaled = field_range.clamp(value * strength)
    if decimals is not None:
        return round_half_up(scaled, decimals)
    if round_result:
        return int(round_half_up(scaled))
    return scaled


def clamp_value(value, field_range: FieldRange, round_result: bool = True,
                decimals: Optional[int] = None):
    """Clamp without strength scaling (hue rotations, splits, grain, vignette)."""
    return scale(value, field_range, 1.0, round_result, decimals)


def resolve_strength(target: ExportTarget, strength: Optional[float] = None,
                     config: Optional[Dict[str, Any]] = None) -> float:
    """
    Strength an encoder should use for a target.

    An explicit caller value wins (clamped to 0..2), then the
    ``export.strength.<target>`` config key, then the built-in default.
    """
    if is_number(strength):
        return RANGES['strength'].clamp(strength)
    if strength is not None:
        logger.debug(f"Ignoring invalid strength {strength!r} for {target.value}")
    if config:
        configured = get_config_value(config, f'export.strength.{target.value}')
        if is_number(configured):
            return RANGES['strength'].clamp(configured)
    return DEFAULT_STRENGTHS[target]


def _drop_none(values: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


def scale_basic_tone(record: AdjustmentRecord, strength: float) -> Dict[str, Any]:
    """Exposure (2 decimals), basic tone sliders and white balance."""
    values = {
        'exposure': scale(record.exposure, RANGES['exposure'], strength, decimals=2),
        'temperature': clamp_value(record.temperature, RANGES['temperature']),
        'tint': clamp_value(record.tint, RANGES['tint']),
    }
    for name in BASIC_TONE_FIELDS:
        values[name] = scale(getattr(record, name), RANGES['tone'], strength)
    return _drop_none(values)


def scale_hsl(record: AdjustmentRecord, strength: float) -> Dict[str, Any]:
    """HSL mixer; hue shifts are clamped only."""
    values = {}
    for bucket in HSL_BUCKETS:
        values[f'hue_{bucket}'] = clamp_value(getattr(record, f'hue_{bucket}'), RANGES['tone'])
        values[f'sat_{bucket}'] = scale(getattr(record, f'sat_{bucket}'), RANGES['tone'], strength)
        values[f'lum_{bucket}'] = scale(getattr(record, f'lum_{bucket}'), RANGES['tone'], strength)
    return _drop_none(values)


def scale_gray_mixer(record: AdjustmentRecord) -> Dict[str, Any]:
    return _drop_none({
        f'gray_{bucket}': clamp_value(getattr(record, f'gray_{bucket}'), RANGES['tone'])
        for bucket in HSL_BUCKETS
    })


def scale_color_grading(record: AdjustmentRecord, strength: float) -> Dict[str, Any]:
    values = {}
    for zone in GRADING_ZONES:
        prefix = f'color_grade_{zone}'
        values[f'{prefix}_hue'] = clamp_value(getattr(record, f'{prefix}_hue'), RANGES['hue'])
        values[f'{prefix}_sat'] = scale(getattr(record, f'{prefix}_sat'), RANGES['percent'], strength)
        values[f'{prefix}_lum'] = scale(getattr(record, f'{prefix}_lum'), RANGES['tone'], strength)
    values['color_grade_blending'] = scale(record.color_grade_blending, RANGES['percent'], strength)
    values['color_grade_balance'] = scale(record.color_grade_balance, RANGES['tone'], strength)
    return _drop_none(values)


def scale_parametric(record: AdjustmentRecord, strength: float) -> Dict[str, Any]:
    values = {name: scale(getattr(record, name), RANGES['tone'], strength)
              for name in PARAMETRIC_FIELDS}
    for name in PARAMETRIC_SPLIT_FIELDS:
        values[name] = clamp_value(getattr(record, name), RANGES['percent'])
    return _drop_none(values)


def scale_local_adjustments(adjustments: LocalAdjustments, strength: float) -> Dict[str, float]:
    """
    Local mask values ready for the -1..1 local scale.

    Exposure stays in stops; everything else is scaled on the -100..100
    canonical scale, clamped, then divided by 100.  Three decimals.
    """
    values = {}
    for name, value in adjustments.to_dict().items():
        if name == 'local_exposure':
            values[name] = scale(value, RANGES['exposure'], strength, decimals=3)
        else:
            scaled = scale(value, RANGES['local'], strength, round_result=False)
            values[name] = None if scaled is None else round_half_up(scaled / 100.0, 3)
    return _drop_none(values)
