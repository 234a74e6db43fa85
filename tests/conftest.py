"""
Shared fixtures for filmrecipe tests.
"""

import pytest

from filmrecipe.config import get_default_config
from filmrecipe.models import AdjustmentRecord


@pytest.fixture
def config():
    """Default configuration, independent of any user file."""
    return get_default_config()


@pytest.fixture
def color_record():
    """A warm color grade with HSL, grading and a master curve."""
    return AdjustmentRecord.from_dict({
        'preset_name': 'Golden Hour',
        'description': 'Warm late-afternoon look',
        'exposure': 0.35,
        'contrast': 20,
        'highlights': -40,
        'shadows': 30,
        'vibrance': 15,
        'temperature': 6200,
        'tint': 8,
        'hue_orange': -5,
        'sat_orange': 12,
        'lum_blue': -20,
        'color_grade_shadow_hue': 210,
        'color_grade_shadow_sat': 15,
        'color_grade_highlight_hue': 45,
        'color_grade_highlight_sat': 20,
        'tone_curve': [[0, 10], [128, 135], [255, 245]],
        'grain_amount': 25,
    })


@pytest.fixture
def monochrome_record():
    """Black and white grade with a gray mixer and stray HSL values."""
    return AdjustmentRecord.from_dict({
        'preset_name': 'Silver Gelatin',
        'treatment': 'black_and_white',
        'contrast': 35,
        'sat_red': 40,
        'hue_blue': 10,
        'gray_red': 20,
        'gray_blue': -30,
    })


@pytest.fixture
def masked_record():
    """Grade carrying one mask of each geometry archetype."""
    return AdjustmentRecord.from_dict({
        'preset_name': 'Portrait Pop',
        'exposure': 0.2,
        'masks': [
            {'type': 'face', 'name': 'Face', 'adjustments': {'exposure': 0.5, 'shadows': 40},
             'referenceX': 0.45, 'referenceY': 0.3},
            {'type': 'radial', 'adjustments': {'clarity': 20},
             'geometry': {'top': 0.1, 'left': 0.2, 'bottom': 0.7, 'right': 0.8, 'feather': 60}},
            {'type': 'linear', 'adjustments': {'local_highlights': -30},
             'zero_x': 0.5, 'zero_y': 0.0, 'full_x': 0.5, 'full_y': 0.4},
            {'type': 'range_luminance', 'adjustments': {'contrast': 25},
             'lum_range': [0.1, 0.2, 0.8, 0.9]},
        ],
    })
