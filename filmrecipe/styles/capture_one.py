"""
Capture One style (``.costyle``) encoder.

A style is an ``<SL Engine="1300">`` block of ``<E K="" V=""/>`` entries,
sorted by key, followed by an ``<LDS>`` block of local adjustments.  The
LDS block is always written, empty when there are no masks.
"""

import logging
import math
import uuid
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Dict, Any, List, Optional, Tuple
from xml.dom import minidom

from ..config import get_config_value, get_default_config
from ..masks.registry import REGISTRY, CaptureOneMaskType
from ..models import AdjustmentRecord, Mask, FieldRange, RANGES, HSL_BUCKETS, is_monochrome
from ..naming import clean_display_name
from ..scaling import ExportTarget, resolve_strength, scale, clamp_value

logger = logging.getLogger(__name__)

ENGINE_VERSION = '1300'

# Capture One's local exposure slider stops at +/-4
LOCAL_EXPOSURE_RANGE = FieldRange(-4.0, 4.0)

SUBJECT_PARTS = ('Body', 'Clothes', 'Eyebrows', 'Face', 'Hair', 'IrisAndPupil', 'Lips', 'Sclera')

RETOUCHING_DEFAULTS = (
    ('RetouchingBlemishRemovalAmount', '0'),
    ('RetouchingDarkCirclesReductionAmount', '0'),
    ('RetouchingFaceSculptingContouring', '0'),
    ('RetouchingOpacity', '100'),
    ('RetouchingSkinEveningAmount', '0'),
    ('RetouchingSkinEveningTexture', '0'),
)

BW_MIXER_DEFAULTS = (
    ('BwRed', '0'), ('BwGreen', '0'), ('BwBlue', '0'),
    ('BwYellow', '0'), ('BwCyan', '0'), ('BwMagenta', '0'),
)

CURVE_KEYS = (
    ('tone_curve', 'GradationCurve'),
    ('tone_curve_red', 'GradationCurveRed'),
    ('tone_curve_green', 'GradationCurveGreen'),
    ('tone_curve_blue', 'GradationCurveBlue'),
)


@dataclass
class StyleOptions:
    """Which groups of settings a style carries."""
    hsl: bool = True
    color_grading: bool = True
    grain: bool = True
    vignette: bool = True
    curves: bool = True
    retouching: bool = True
    masks: bool = True
    strength: Optional[float] = None
    mask_strength: Optional[float] = None
    name: Optional[str] = None
    film_curve: Optional[str] = None
    icc_profile: Optional[str] = None

    @classmethod
    def basic(cls, **kwargs) -> 'StyleOptions':
        """Tone-only variant."""
        return cls(hsl=False, color_grading=False, grain=False, vignette=False,
                   curves=False, retouching=False, masks=False, **kwargs)


def format_number(value: float) -> str:
    """Integers stay bare; everything else gets six decimals."""
    if abs(value - round(value)) < 0.0001:
        return str(int(round(value)))
    return f"{value:.6f}"


def _hue_to_balance(hue: Optional[float], sat: Optional[float]) -> str:
    """Color balance multipliers ``r;g;b`` for a grading wheel position."""
    h = math.radians(hue or 0)
    s = (sat or 0) / 100 * 0.3
    r = 1 + s * math.cos(h)
    g = 1 + s * math.cos(h - 2.094)
    b = 1 + s * math.cos(h + 2.094)
    return f"{r:.6f};{g:.6f};{b:.6f}"


def _hue_to_shift(hue: Optional[float], sat: Optional[float]) -> str:
    """Color correction ``intensity;r;g;b`` for a grading wheel position."""
    h = math.radians(hue or 0)
    s = (sat or 0) / 100
    shifts = [s * math.cos(h) * 0.1, s * math.cos(h - 2.094) * 0.1, s * math.cos(h + 2.094) * 0.1]
    return ';'.join(format_number(v) for v in [abs(s)] + shifts)


def _curve_value(points) -> Optional[str]:
    if not points:
        return None
    return ';'.join(f"{format_number(p.input / 255)},{format_number(p.output / 255)}" for p in points)


def _entries(record: AdjustmentRecord, options: StyleOptions, strength: float,
             name: str) -> List[Tuple[str, str]]:
    monochrome = is_monochrome(record)
    entries: List[Tuple[str, Any]] = [
        ('Name', name),
        ('UUID', str(uuid.uuid4()).upper()),
        ('Exposure', scale(record.exposure, RANGES['exposure'], strength, decimals=2) or 0),
        ('Contrast', scale(record.contrast, RANGES['tone'], strength)),
        ('Brightness', scale(record.brightness, RANGES['tone'], strength)),
        ('Saturation', -100 if monochrome else scale(record.saturation, RANGES['tone'], strength)),
        ('ShadowRecovery', scale(record.shadows, RANGES['tone'], strength)),
        ('WhiteRecovery', scale(record.whites, RANGES['tone'], strength)),
        ('BlackRecovery', scale(record.blacks, RANGES['tone'], strength)),
        ('ColorBalance', '1;1;1'),
        ('FilmCurve', options.film_curve),
        ('ICCProfile', options.icc_profile),
    ]
    highlights = scale(record.highlights, RANGES['tone'], strength)
    if highlights is not None:
        # Capture One recovers highlights with positive values
        entries.append(('HighlightRecoveryEx', -highlights))

    if monochrome:
        entries.append(('BwEnabled', '1'))
        entries.extend(BW_MIXER_DEFAULTS)

    if options.hsl and not monochrome:
        for bucket in HSL_BUCKETS:
            label = bucket.capitalize()
            entries.append((f'ColorEditor{label}Hue',
                            clamp_value(getattr(record, f'hue_{bucket}'), RANGES['tone'])))
            entries.append((f'ColorEditor{label}Saturation',
                            scale(getattr(record, f'sat_{bucket}'), RANGES['tone'], strength)))
            entries.append((f'ColorEditor{label}Lightness',
                            scale(getattr(record, f'lum_{bucket}'), RANGES['tone'], strength)))

    if options.color_grading:
        for zone, balance_key, shift_key in (('shadow', 'ColorBalanceShadow', 'Shadow'),
                                             ('midtone', 'ColorBalanceMidtone', 'Midtone'),
                                             ('highlight', 'ColorBalanceHighlight', 'Highlight')):
            hue = clamp_value(getattr(record, f'color_grade_{zone}_hue'), RANGES['hue'],
                              round_result=False)
            sat = scale(getattr(record, f'color_grade_{zone}_sat'), RANGES['percent'],
                        strength, round_result=False)
            if hue is None and sat is None:
                continue
            entries.append((balance_key, _hue_to_balance(hue, sat)))
            entries.append((shift_key, _hue_to_shift(hue, sat)))

    if options.grain:
        amount = clamp_value(record.grain_amount, RANGES['percent'])
        entries.append(('FilmGrainAmount', amount))
        entries.append(('FilmGrainGranularity', clamp_value(record.grain_size, RANGES['percent'])))
        entries.append(('FilmGrainDensity', clamp_value(record.grain_frequency, RANGES['percent'])))
        if amount:
            entries.append(('FilmGrainType', 1))  # 0 soft, 1 medium, 2 hard

    if options.vignette and record.vignette_amount is not None:
        amount = clamp_value(record.vignette_amount, RANGES['tone'], round_result=False) / 100
        midpoint = clamp_value(record.vignette_midpoint, RANGES['percent'], round_result=False)
        feather = clamp_value(record.vignette_feather, RANGES['percent'], round_result=False)
        roundness = clamp_value(record.vignette_roundness, RANGES['tone'], round_result=False)
        parts = [amount,
                 0.5 if midpoint is None else midpoint / 100,
                 0.5 if feather is None else feather / 100,
                 0 if roundness is None else roundness / 100]
        entries.append(('Vignetting', '|'.join(format_number(p) for p in parts)))

    if options.curves:
        for field_name, key in CURVE_KEYS:
            entries.append((key, _curve_value(getattr(record, field_name))))

    if options.retouching:
        entries.extend(RETOUCHING_DEFAULTS)

    result = []
    for key, value in entries:
        if value is None or value == '':
            continue
        result.append((key, format_number(value) if isinstance(value, (int, float)) else str(value)))
    return sorted(result, key=lambda kv: kv[0].lower())


def _entry(parent: ET.Element, key: str, value: str) -> ET.Element:
    return ET.SubElement(parent, 'E', {'K': key, 'V': value})


def _mask_layer(lds: ET.Element, mask: Mask, index: int, strength: float):
    layer = ET.SubElement(lds, 'LD')
    adjustments_element = ET.SubElement(layer, 'LA')
    adjustments = mask.adjustments

    entries = [
        ('AIColorGrade', '0'),
        ('Enabled', '1'),
        ('Moire', '0;0'),
        ('Name', mask.name or REGISTRY.display_name(mask.type, index)),
        ('Exposure', scale(adjustments.local_exposure, LOCAL_EXPOSURE_RANGE, strength, decimals=2)),
        ('Contrast', scale(adjustments.local_contrast, RANGES['local'], strength)),
        ('Saturation', scale(adjustments.local_saturation, RANGES['local'], strength)),
        ('ShadowRecovery', scale(adjustments.local_shadows, RANGES['local'], strength)),
        ('Clarity', scale(adjustments.local_clarity, RANGES['local'], strength)),
        ('Dehaze', scale(adjustments.local_dehaze, RANGES['local'], strength)),
        ('Opacity', '100'),
        ('UsmMethod', '0'),
    ]
    highlights = scale(adjustments.local_highlights, RANGES['local'], strength)
    if highlights is not None:
        entries.append(('HighlightRecoveryEx', -highlights))
    for key, value in entries:
        if value is not None:
            _entry(adjustments_element, key,
                   format_number(value) if isinstance(value, (int, float)) else str(value))

    metadata = ET.SubElement(layer, 'MD')
    mask_type, part = REGISTRY.capture_one_codes(mask.type)
    _entry(metadata, 'MaskType', str(mask_type.value))
    if mask_type == CaptureOneMaskType.SUBJECT:
        options = ET.SubElement(metadata, 'SO')
        # Subject masks need at least one part; Face when the type names none
        enabled = part or 'Face'
        for key in SUBJECT_PARTS:
            _entry(options, key, '1' if key == enabled else '0')


def _pretty(element: ET.Element) -> str:
    rough = ET.tostring(element, encoding='unicode')
    pretty = minidom.parseString(rough).toprettyxml(indent='\t')
    lines = [line for line in pretty.split('\n') if line.strip() and not line.startswith('<?xml')]
    return '\n'.join(lines) + '\n'


def encode_style(record: AdjustmentRecord, options: Optional[StyleOptions] = None,
                 config: Optional[Dict[str, Any]] = None) -> str:
    """
    Encode a record as a Capture One style.

    Args:
        record: Grade to encode; never modified
        options: Include flags and strengths; full style when omitted
        config: Loaded configuration

    Returns:
        ``.costyle`` document text
    """
    options = options or StyleOptions()
    config = config or get_default_config()
    strength = resolve_strength(ExportTarget.STYLE, options.strength, config)
    name = clean_display_name(options.name or record.preset_name, fallback='Custom Recipe')

    style = ET.Element('SL', {'Engine': ENGINE_VERSION})
    for key, value in _entries(record, options, strength, name):
        _entry(style, key, value)

    lds = ET.Element('LDS')
    if options.masks and record.masks:
        mask_strength = resolve_strength(ExportTarget.MASK, options.mask_strength, config)
        max_masks = get_config_value(config, 'export.max_masks', 3)
        masks = record.masks
        if len(masks) > max_masks:
            logger.warning(f"Style carries {len(masks)} masks, exporting the first {max_masks}")
            masks = masks[:max_masks]
        for index, mask in enumerate(masks):
            _mask_layer(lds, mask, index, mask_strength)

    body = _pretty(style)
    layers = _pretty(lds) if len(lds) else '<LDS>\n</LDS>\n'
    logger.debug(f"Encoded Capture One style {name!r}")
    return '<?xml version="1.0"?>\n' + body + layers


def encode_basic_style(record: AdjustmentRecord, config: Optional[Dict[str, Any]] = None,
                       **kwargs) -> str:
    """Tone-only style with an empty LDS block."""
    return encode_style(record, StyleOptions.basic(**kwargs), config)
