"""
Preset and look decoder.

Reads Camera Raw XMP documents back into an AdjustmentRecord.  Values may
appear as ``crs:`` attributes on the description or as ``crs:`` child
elements; both are accepted.
"""

import logging
import math
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Union

from ..curves import CURVE_TAGS, parse_curve_items
from ..masks.registry import REGISTRY
from ..models import AdjustmentRecord, Treatment, HSL_BUCKETS, GRADING_ZONES, MAX_POINT_COLORS
from .document import (
    parse_xmp, find_settings_description, read_crs_fields, alt_text,
    seq_items, seq_descriptions, nested_description,
)
from .preset import BASIC_TONE_TAGS, PARAMETRIC_TAGS, HSL_TAG_PREFIXES, LOCAL_TAGS, VIGNETTE_TAGS

logger = logging.getLogger(__name__)

NOT_RECOGNIZED = "Not a recognizable look/profile document"

# At least one of these marks a document as camera-raw settings
ACCEPT_MARKERS = ('PresetType', 'RGBTable', 'HasSettings')

Fields = Dict[str, Union[str, ET.Element]]


@dataclass
class ParseResult:
    """Outcome of decoding a preset document."""
    success: bool
    record: Optional[AdjustmentRecord] = None
    name: Optional[str] = None
    description: Optional[str] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


def _number(value) -> Optional[float]:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        number = float(value.strip().lstrip('+'))
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _flag(value) -> bool:
    return isinstance(value, str) and value.strip().lower() == 'true'


def _numbers(value, separator: Optional[str] = None) -> List[float]:
    if not isinstance(value, str):
        return []
    numbers = [_number(part) for part in value.split(separator)]
    return [n for n in numbers if n is not None]


def _read_tone(fields: Fields, data: Dict[str, Any]):
    for name, tag in (('exposure', 'Exposure2012'), ('temperature', 'Temperature'),
                      ('tint', 'Tint')) + BASIC_TONE_TAGS:
        data[name] = _number(fields.get(tag))


def _read_treatment(fields: Fields, data: Dict[str, Any]):
    treatment = fields.get('Treatment')
    monochrome = _flag(fields.get('ConvertToGrayscale')) or (
        isinstance(treatment, str) and 'white' in treatment.lower())
    if monochrome:
        data['treatment'] = Treatment.MONOCHROME
        data['monochrome'] = True
    elif isinstance(treatment, str) and treatment.strip():
        data['treatment'] = Treatment.COLOR


def _read_color(fields: Fields, data: Dict[str, Any]):
    for prefix, tag_prefix in HSL_TAG_PREFIXES:
        for bucket in HSL_BUCKETS:
            data[f'{prefix}_{bucket}'] = _number(fields.get(f'{tag_prefix}{bucket.capitalize()}'))
    for bucket in HSL_BUCKETS:
        data[f'gray_{bucket}'] = _number(fields.get(f'GrayMixer{bucket.capitalize()}'))
    for zone in GRADING_ZONES:
        for part in ('hue', 'sat', 'lum'):
            data[f'color_grade_{zone}_{part}'] = _number(
                fields.get(f'ColorGrade{zone.capitalize()}{part.capitalize()}'))
    data['color_grade_blending'] = _number(fields.get('ColorGradeBlending'))
    data['color_grade_balance'] = _number(fields.get('ColorGradeBalance'))
    for name, tag in PARAMETRIC_TAGS:
        data[name] = _number(fields.get(tag))


def _read_curves(fields: Fields, data: Dict[str, Any]):
    for field_name, tag in CURVE_TAGS.items():
        points = parse_curve_items(seq_items(fields.get(tag)))
        if points:
            data[field_name] = points


def _read_extras(fields: Fields, data: Dict[str, Any]):
    point_colors = []
    for index in range(1, MAX_POINT_COLORS + 1):
        values = _numbers(fields.get(f'PointColor{index}'), ',')
        if values:
            point_colors.append(values)
    if point_colors:
        data['point_colors'] = point_colors

    data['grain_amount'] = _number(fields.get('GrainAmount'))
    data['grain_size'] = _number(fields.get('GrainSize'))
    data['grain_frequency'] = _number(fields.get('GrainFrequency'))
    for name, tag, _ in VIGNETTE_TAGS:
        data[name] = _number(fields.get(tag))

    profile = fields.get('ProfileName')
    if isinstance(profile, str) and profile.strip():
        data['camera_profile'] = profile.strip()


def _read_mask(correction: ET.Element) -> Optional[Dict[str, Any]]:
    correction_fields = read_crs_fields(correction)
    masks = seq_descriptions(correction_fields.get('CorrectionMasks'))
    if not masks:
        return None
    mask_fields = read_crs_fields(masks[0])

    adjustments = {}
    for name, tag in LOCAL_TAGS:
        value = _number(correction_fields.get(tag))
        if value is not None:
            # Local sliders are stored on -1..1; exposure is already in stops
            adjustments[name] = value if name == 'local_exposure' else round(value * 100, 1)

    what = mask_fields.get('What') or ''
    kind = what.split('/', 1)[1] if isinstance(what, str) and '/' in what else ''
    mask: Dict[str, Any] = {
        'name': mask_fields.get('MaskName') or correction_fields.get('CorrectionName') or None,
        'inverted': _flag(mask_fields.get('MaskInverted')),
        'adjustments': adjustments,
    }

    if kind == 'Image':
        sub_type = mask_fields.get('MaskSubType')
        sub_category = mask_fields.get('MaskSubCategoryID')
        mask['type'] = REGISTRY.type_for_codes(sub_type, sub_category)
        if isinstance(sub_category, str) and sub_category.strip().isdigit():
            mask['sub_category_id'] = int(sub_category)
        point = _numbers(mask_fields.get('ReferencePoint'))
        if len(point) == 2:
            mask['reference_x'], mask['reference_y'] = point
    elif kind == 'RangeMask':
        range_description = nested_description(mask_fields.get('CorrectionRangeMask'))
        range_fields = read_crs_fields(range_description) if range_description is not None else {}
        mask['type'] = REGISTRY.type_for_codes('RangeMask', range_fields.get('Type'))
        mask['invert'] = _flag(range_fields.get('Invert'))
        mask['color_amount'] = _number(range_fields.get('ColorAmount'))
        mask['lum_range'] = _numbers(range_fields.get('LumRange'))
        mask['depth_sample_info'] = _numbers(range_fields.get('LuminanceDepthSampleInfo'))
        mask['point_models'] = [_numbers(item) for item in seq_items(range_fields.get('PointModels'))]
    else:
        mask['type'] = REGISTRY.type_for_codes(kind)
        for key, tag in (('zero_x', 'ZeroX'), ('zero_y', 'ZeroY'), ('full_x', 'FullX'),
                         ('full_y', 'FullY'), ('top', 'Top'), ('left', 'Left'),
                         ('bottom', 'Bottom'), ('right', 'Right'), ('angle', 'Angle'),
                         ('midpoint', 'Midpoint'), ('roundness', 'Roundness'),
                         ('feather', 'Feather')):
            mask[key] = _number(mask_fields.get(tag))
        mask['flipped'] = _flag(mask_fields.get('Flipped'))
    return mask


def _read_masks(fields: Fields) -> List[Dict[str, Any]]:
    masks = []
    for correction in seq_descriptions(fields.get('MaskGroupBasedCorrections')):
        mask = _read_mask(correction)
        if mask is None:
            logger.debug("Skipping correction without a mask")
            continue
        masks.append(mask)
    return masks


def parse_preset(text: str) -> ParseResult:
    """
    Decode a preset or look document.

    Args:
        text: XMP document text

    Returns:
        ParseResult; failures are reported in ``error`` and never raised
    """
    if not text or not text.strip():
        return ParseResult(success=False, error="Empty document")
    try:
        root = parse_xmp(text)
    except ET.ParseError as e:
        logger.debug(f"Malformed XMP: {e}")
        return ParseResult(success=False, error=f"Malformed XML: {e}")

    description = find_settings_description(root)
    fields = read_crs_fields(description) if description is not None else {}
    if not any(marker in fields for marker in ACCEPT_MARKERS):
        return ParseResult(success=False, error=NOT_RECOGNIZED)

    name = alt_text(fields.get('Name'))
    summary = alt_text(fields.get('Description'))

    data: Dict[str, Any] = {}
    _read_tone(fields, data)
    _read_treatment(fields, data)
    _read_color(fields, data)
    _read_curves(fields, data)
    _read_extras(fields, data)
    masks = _read_masks(fields)
    if masks:
        data['masks'] = masks
    data['preset_name'] = name
    data['description'] = summary

    record = AdjustmentRecord.from_dict({k: v for k, v in data.items() if v is not None})

    preset_type = fields.get('PresetType') if isinstance(fields.get('PresetType'), str) else None
    metadata = {
        'preset_type': preset_type,
        'version': fields.get('Version') if isinstance(fields.get('Version'), str) else None,
        'has_masks': bool(record.masks),
        'has_hsl': any(getattr(record, f'{p}_{b}') is not None
                       for p in ('hue', 'sat', 'lum') for b in HSL_BUCKETS),
        'has_color_grading': any(getattr(record, f'color_grade_{z}_{p}') is not None
                                 for z in GRADING_ZONES for p in ('hue', 'sat', 'lum')),
        'has_curves': not record.curves().is_empty(),
        'is_look': preset_type == 'Look',
    }
    logger.debug(f"Parsed preset {name!r}: {metadata}")
    return ParseResult(success=True, record=record, name=name, description=summary,
                       metadata=metadata)
