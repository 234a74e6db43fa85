"""
Full raw-development preset encoder (Camera Raw / Lightroom ``.xmp``).
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Dict, Any, List, Optional, Tuple

from ..config import get_config_value, get_default_config
from ..curves import CURVE_TAGS, curve_items
from ..masks.registry import REGISTRY, GeometryArchetype
from ..models import (
    AdjustmentRecord, Mask, RadialGeometry, LinearGeometry,
    ReferencePointGeometry, RangeGeometry, RANGES, HSL_BUCKETS,
    GRADING_ZONES, MAX_POINT_COLORS, is_monochrome, is_number,
)
from ..naming import clean_display_name
from ..scaling import (
    ExportTarget, resolve_strength, scale, clamp_value, scale_basic_tone,
    scale_hsl, scale_gray_mixer, scale_color_grading, scale_parametric,
    scale_local_adjustments,
)
from .document import XMPDocument, XMPDescription
from .profile import select_camera_profile

logger = logging.getLogger(__name__)

CAMERA_RAW_VERSION = '17.5'
PROCESS_VERSION = '15.4'

BASIC_TONE_TAGS = (
    ('contrast', 'Contrast2012'),
    ('highlights', 'Highlights2012'),
    ('shadows', 'Shadows2012'),
    ('whites', 'Whites2012'),
    ('blacks', 'Blacks2012'),
    ('clarity', 'Clarity2012'),
    ('vibrance', 'Vibrance'),
    ('saturation', 'Saturation'),
)

PARAMETRIC_TAGS = (
    ('parametric_shadows', 'ParametricShadows'),
    ('parametric_darks', 'ParametricDarks'),
    ('parametric_lights', 'ParametricLights'),
    ('parametric_highlights', 'ParametricHighlights'),
    ('parametric_shadow_split', 'ParametricShadowSplit'),
    ('parametric_midtone_split', 'ParametricMidtoneSplit'),
    ('parametric_highlight_split', 'ParametricHighlightSplit'),
)

HSL_TAG_PREFIXES = (
    ('hue', 'HueAdjustment'),
    ('sat', 'SaturationAdjustment'),
    ('lum', 'LuminanceAdjustment'),
)

LOCAL_TAGS = (
    ('local_exposure', 'LocalExposure2012'),
    ('local_contrast', 'LocalContrast2012'),
    ('local_highlights', 'LocalHighlights2012'),
    ('local_shadows', 'LocalShadows2012'),
    ('local_whites', 'LocalWhites2012'),
    ('local_blacks', 'LocalBlacks2012'),
    ('local_clarity', 'LocalClarity2012'),
    ('local_dehaze', 'LocalDehaze'),
    ('local_texture', 'LocalTexture'),
    ('local_saturation', 'LocalSaturation'),
    ('local_temperature', 'LocalTemperature'),
    ('local_tint', 'LocalTint'),
)

VIGNETTE_TAGS = (
    ('vignette_amount', 'PostCropVignetteAmount', 'tone'),
    ('vignette_midpoint', 'PostCropVignetteMidpoint', 'percent'),
    ('vignette_feather', 'PostCropVignetteFeather', 'percent'),
    ('vignette_roundness', 'PostCropVignetteRoundness', 'tone'),
    ('vignette_style', 'PostCropVignetteStyle', 'vignette_style'),
    ('vignette_highlight_contrast', 'PostCropVignetteHighlightContrast', 'percent'),
)


@dataclass
class PresetOptions:
    """Which groups of settings a preset carries, and how strongly."""
    wb_basic: bool = True
    exposure: bool = True
    hsl: bool = True
    color_grading: bool = True
    curves: bool = True
    point_color: bool = True
    grain: bool = True
    vignette: bool = True
    masks: bool = True
    strength: Optional[float] = None
    mask_strength: Optional[float] = None
    name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'PresetOptions':
        data = data or {}
        known = {f for f in cls.__dataclass_fields__}
        return cls(**{k: v for k, v in data.items() if k in known})


def _sync_id() -> str:
    return uuid.uuid4().hex.upper()


def _fixed(value: Optional[float], decimals: int) -> Optional[str]:
    return None if value is None else f"{value:.{decimals}f}"


def _unit(value, decimals: int = 3) -> Optional[str]:
    """Normalized coordinate, clamped to 0-1."""
    return _fixed(clamp_value(value, RANGES['unit'], round_result=False), decimals)


def _tone_pairs(record: AdjustmentRecord, strength: float, monochrome: bool,
                options: PresetOptions) -> List[Tuple[str, Any]]:
    basic = scale_basic_tone(record, strength)
    pairs = []
    if options.wb_basic:
        pairs.append(('Temperature', basic.get('temperature')))
        pairs.append(('Tint', basic.get('tint')))
        for field_name, tag in BASIC_TONE_TAGS:
            pairs.append((tag, basic.get(field_name)))
        if monochrome:
            pairs.append(('Saturation', 0))
    if options.exposure:
        pairs.append(('Exposure2012', _fixed(basic.get('exposure'), 2)))
    return pairs


def _color_pairs(record: AdjustmentRecord, strength: float, monochrome: bool,
                 options: PresetOptions) -> List[Tuple[str, Any]]:
    pairs = []
    if options.curves:
        parametric = scale_parametric(record, strength)
        pairs.extend((tag, parametric.get(name)) for name, tag in PARAMETRIC_TAGS)

    if options.hsl and not monochrome:
        hsl = scale_hsl(record, strength)
        for prefix, tag_prefix in HSL_TAG_PREFIXES:
            for bucket in HSL_BUCKETS:
                pairs.append((f'{tag_prefix}{bucket.capitalize()}', hsl.get(f'{prefix}_{bucket}')))

    if monochrome:
        gray = scale_gray_mixer(record)
        if gray:
            for bucket in HSL_BUCKETS:
                pairs.append((f'GrayMixer{bucket.capitalize()}', gray.get(f'gray_{bucket}')))

    if options.color_grading:
        grading = scale_color_grading(record, strength)
        for zone in GRADING_ZONES:
            for part in ('hue', 'sat', 'lum'):
                pairs.append((f'ColorGrade{zone.capitalize()}{part.capitalize()}',
                              grading.get(f'color_grade_{zone}_{part}')))
        pairs.append(('ColorGradeBlending', grading.get('color_grade_blending')))
        pairs.append(('ColorGradeBalance', grading.get('color_grade_balance')))

    if options.point_color:
        for index, point in enumerate(record.point_colors[:MAX_POINT_COLORS]):
            values = [clamp_value(v, RANGES['tone']) for v in point if is_number(v)]
            if values:
                pairs.append((f'PointColor{index + 1}', ','.join(str(v) for v in values)))

    if options.grain:
        pairs.append(('GrainAmount', clamp_value(record.grain_amount, RANGES['percent'])))
        pairs.append(('GrainSize', clamp_value(record.grain_size, RANGES['percent'])))
        pairs.append(('GrainFrequency', clamp_value(record.grain_frequency, RANGES['percent'])))

    if options.vignette:
        for name, tag, range_name in VIGNETTE_TAGS:
            pairs.append((tag, clamp_value(getattr(record, name), RANGES[range_name])))
    return pairs


def _write_geometry(target: XMPDescription, mask: Mask, name: str):
    geometry = mask.geometry
    target.set_many([
        ('MaskActive', True),
        ('MaskName', name),
        ('MaskBlendMode', 0),
        ('MaskInverted', mask.inverted),
        ('MaskValue', 1),
    ])
    codes = REGISTRY.codes_for(mask.type)

    if isinstance(geometry, LinearGeometry):
        target.set('What', 'Mask/Gradient')
        target.set_many([
            ('ZeroX', _unit(geometry.zero_x)),
            ('ZeroY', _unit(geometry.zero_y)),
            ('FullX', _unit(geometry.full_x)),
            ('FullY', _unit(geometry.full_y)),
        ])
    elif isinstance(geometry, RadialGeometry):
        target.set('What', 'Mask/CircularGradient')
        target.set_many([
            ('Top', _unit(geometry.top)),
            ('Left', _unit(geometry.left)),
            ('Bottom', _unit(geometry.bottom)),
            ('Right', _unit(geometry.right)),
            ('Angle', _fixed(geometry.angle, 3) if is_number(geometry.angle) else '0'),
            ('Midpoint', clamp_value(geometry.midpoint, RANGES['percent'])),
            ('Roundness', clamp_value(geometry.roundness, RANGES['tone'])),
            ('Feather', clamp_value(geometry.feather, RANGES['percent'])),
            ('Flipped', geometry.flipped),
            ('Version', 2),
        ])
    elif isinstance(geometry, RangeGeometry):
        target.set('What', 'Mask/RangeMask')
        range_mask = target.add_nested('CorrectionRangeMask')
        range_mask.set_many([
            ('Version', 3),
            ('Type', codes.subtype_code),
            ('Invert', geometry.invert),
            ('SampleType', 0),
        ])
        if geometry.kind == 'luminance':
            range_mask.set('LumRange', ' '.join(f'{v:.6f}' for v in geometry.lum_range))
            range_mask.set('LuminanceDepthSampleInfo',
                           ' '.join(f'{v:.6f}' for v in geometry.depth_sample_info))
        else:
            range_mask.set('ColorAmount', _unit(geometry.color_amount))
            range_mask.add_seq('PointModels', [
                ' '.join(format(v, 'g') for v in model) for model in geometry.point_models if model
            ])
    else:
        reference = geometry if isinstance(geometry, ReferencePointGeometry) else ReferencePointGeometry()
        sub_category = codes.subtype_code or (
            str(mask.sub_category_id) if mask.sub_category_id is not None else None)
        target.set_many([
            ('What', 'Mask/Image'),
            ('MaskSyncID', _sync_id()),
            ('MaskVersion', 1),
            ('MaskSubType', codes.type_code),
            ('MaskSubCategoryID', sub_category),
            ('ReferencePoint', f"{_unit(reference.reference_x)} {_unit(reference.reference_y)}"),
            ('ErrorReason', 0),
        ])


def _write_masks(description: XMPDescription, masks: List[Mask], strength: float,
                 max_masks: int):
    if len(masks) > max_masks:
        logger.warning(f"Preset carries {len(masks)} masks, exporting the first {max_masks}")
        masks = masks[:max_masks]

    corrections = description.add_description_seq('MaskGroupBasedCorrections')
    for index, mask in enumerate(masks):
        name = mask.name or REGISTRY.display_name(mask.type, index)
        local = scale_local_adjustments(mask.adjustments, strength)

        correction = corrections.append()
        correction.set_many([
            ('What', 'Correction'),
            ('CorrectionAmount', 1),
            ('CorrectionActive', True),
            ('CorrectionName', name),
            ('CorrectionSyncID', _sync_id()),
        ])
        correction.set_many((tag, _fixed(local.get(field_name), 3)) for field_name, tag in LOCAL_TAGS)
        correction.set('LocalCurveRefineSaturation', 100)

        mask_seq = correction.add_description_seq('CorrectionMasks')
        _write_geometry(mask_seq.append(), mask, name)


def encode_preset(record: AdjustmentRecord, options: Optional[PresetOptions] = None,
                  config: Optional[Dict[str, Any]] = None) -> str:
    """
    Encode a record as a full Camera Raw preset.

    Args:
        record: Grade to encode; never modified
        options: Include flags, strengths and name override
        config: Loaded configuration (group name, strengths, mask cap)

    Returns:
        XMP packet text
    """
    options = options or PresetOptions()
    config = config or get_default_config()
    strength = resolve_strength(ExportTarget.PRESET, options.strength, config)
    mask_strength = resolve_strength(ExportTarget.MASK, options.mask_strength, config)
    monochrome = is_monochrome(record)
    name = clean_display_name(options.name or record.preset_name)
    group = get_config_value(config, 'export.group_name', 'Film Recipe Wizard')
    cluster = get_config_value(config, 'export.cluster', 'film-recipe-wizard')

    document = XMPDocument()
    description = document.description
    description.set_many([
        ('Version', CAMERA_RAW_VERSION),
        ('ProcessVersion', PROCESS_VERSION),
        ('PresetType', 'Normal'),
        ('PresetSubtype', 'Normal'),
        ('UUID', uuid.uuid4().hex.upper()),
        ('Cluster', cluster),
        ('ProfileName', select_camera_profile(record)),
        ('Look', ''),
        ('HasSettings', True),
        ('SupportsAmount', True),
        ('SupportsAmount2', True),
        ('SupportsColor', True),
        ('SupportsMonochrome', True),
        ('Treatment', 'Black & White' if monochrome else 'Color'),
        ('ConvertToGrayscale', True if monochrome else None),
    ])
    description.set_many(_tone_pairs(record, strength, monochrome, options))
    description.set_many(_color_pairs(record, strength, monochrome, options))

    description.add_alt('Name', name)
    description.add_alt('ShortName', name)
    description.add_alt('Group', group)
    description.add_alt('Description', record.description)

    if options.curves:
        for field_name, tag in CURVE_TAGS.items():
            description.add_seq(tag, curve_items(getattr(record, field_name)))

    if options.masks and record.masks:
        max_masks = get_config_value(config, 'export.max_masks', 3)
        _write_masks(description, record.masks, mask_strength, max_masks)

    logger.debug(f"Encoded preset {name!r} (strength {strength}, monochrome {monochrome})")
    return document.to_string()
