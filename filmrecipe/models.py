"""
Data models for filmrecipe.

The AdjustmentRecord is the canonical, format-agnostic description of a
color grade.  Every encoder reads it, the preset decoder produces it, and
nothing in the codec mutates it.  Values are kept on their natural editor
scales; clamping and strength scaling happen at export time.
"""

import json
import logging
import math
import re
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Dict, Any, List, Optional, Tuple, Union

from .masks.registry import REGISTRY, GeometryArchetype

logger = logging.getLogger(__name__)

HSL_BUCKETS = ('red', 'orange', 'yellow', 'green', 'aqua', 'blue', 'purple', 'magenta')
GRADING_ZONES = ('shadow', 'midtone', 'highlight', 'global')
CURVE_FIELDS = ('tone_curve', 'tone_curve_red', 'tone_curve_green', 'tone_curve_blue')
MAX_POINT_COLORS = 4


@dataclass(frozen=True)
class FieldRange:
    """Inclusive numeric range an editor accepts for a field."""
    min: float
    max: float

    def clamp(self, value: float) -> float:
        return max(self.min, min(self.max, value))

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


RANGES: Dict[str, FieldRange] = {
    'exposure': FieldRange(-5.0, 5.0),
    'tone': FieldRange(-100, 100),
    'temperature': FieldRange(2000, 50000),
    'tint': FieldRange(-150, 150),
    'hue': FieldRange(0, 360),
    'percent': FieldRange(0, 100),
    'curve': FieldRange(0, 255),
    'vignette_style': FieldRange(0, 2),
    'local': FieldRange(-100, 100),
    'local_scale': FieldRange(-1.0, 1.0),
    'unit': FieldRange(0.0, 1.0),
    'strength': FieldRange(0.0, 2.0),
}


class Treatment(Enum):
    """Rendering mode of a grade."""
    COLOR = "color"
    MONOCHROME = "black_and_white"

    @classmethod
    def parse(cls, value) -> Optional['Treatment']:
        """Tolerant parse of treatment strings; None when unrecognized."""
        if isinstance(value, Treatment):
            return value
        if not isinstance(value, str):
            return None
        key = value.strip().lower().replace('&', 'and').replace(' ', '_')
        if key in ('color', 'colour'):
            return cls.COLOR
        if key in ('black_and_white', 'monochrome', 'bw', 'b_and_w', 'grayscale'):
            return cls.MONOCHROME
        return None


@dataclass(frozen=True)
class CurvePoint:
    """Single tone curve control point, both coordinates 0-255."""
    input: int
    output: int

    def to_dict(self) -> Dict[str, int]:
        return {'input': self.input, 'output': self.output}


def is_number(value) -> bool:
    """True for finite int/float values; booleans are not numbers."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _coerce_number(value) -> Optional[float]:
    if is_number(value):
        return value
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def _coerce_bool(value) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ('true', '1', 'yes'):
            return True
        if lowered in ('false', '0', 'no'):
            return False
    if is_number(value):
        return bool(value)
    return None


_CAMEL_RE = re.compile(r'(?<!^)(?=[A-Z])')


def _snake(key: str) -> str:
    return _CAMEL_RE.sub('_', key).lower()


def _snake_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    return {_snake(k): v for k, v in data.items()}


@dataclass
class LocalAdjustments:
    """Adjustments applied inside a mask, on the -100..100 canonical scale."""
    local_exposure: Optional[float] = None     # -5 to +5 stops
    local_contrast: Optional[float] = None     # -100 to +100
    local_highlights: Optional[float] = None   # -100 to +100
    local_shadows: Optional[float] = None      # -100 to +100
    local_whites: Optional[float] = None       # -100 to +100
    local_blacks: Optional[float] = None       # -100 to +100
    local_clarity: Optional[float] = None      # -100 to +100
    local_dehaze: Optional[float] = None       # -100 to +100
    local_texture: Optional[float] = None      # -100 to +100
    local_saturation: Optional[float] = None   # -100 to +100
    local_temperature: Optional[float] = None  # -100 to +100
    local_tint: Optional[float] = None         # -100 to +100

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'LocalAdjustments':
        if isinstance(data, LocalAdjustments):
            return data
        values = {}
        for key, value in _snake_keys(data or {}).items():
            name = key if key.startswith('local_') else f'local_{key}'
            if name in _LOCAL_FIELD_NAMES:
                number = _coerce_number(value)
                if number is not None:
                    values[name] = number
        return cls(**values)

    def to_dict(self) -> Dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)
                if getattr(self, f.name) is not None}

    def is_empty(self) -> bool:
        return not self.to_dict()


_LOCAL_FIELD_NAMES = frozenset(f.name for f in fields(LocalAdjustments))


@dataclass
class RadialGeometry:
    """Ellipse inside a bounding box, normalized coordinates (0-1)."""
    top: float = 0.2
    left: float = 0.2
    bottom: float = 0.8
    right: float = 0.8
    angle: float = 0.0
    midpoint: float = 50      # 0-100
    roundness: float = 0      # -100 to +100
    feather: float = 75       # 0-100
    flipped: bool = False


@dataclass
class LinearGeometry:
    """Gradient from the zero point (no effect) to the full point."""
    zero_x: float = 0.5
    zero_y: float = 0.5
    full_x: float = 0.5
    full_y: float = 0.8


@dataclass
class ReferencePointGeometry:
    """Point the AI selector seeds its detection from."""
    reference_x: float = 0.5
    reference_y: float = 0.5


@dataclass
class RangeGeometry:
    """Color or luminance range selection."""
    kind: str = 'color'  # 'color' or 'luminance'
    color_amount: float = 0.5
    point_models: List[List[float]] = field(default_factory=list)
    lum_range: Tuple[float, float, float, float] = (0.0, 1.0, 1.0, 1.0)
    depth_sample_info: Tuple[float, float, float] = (0.0, 0.5, 0.5)
    invert: bool = False


Geometry = Union[RadialGeometry, LinearGeometry, ReferencePointGeometry, RangeGeometry]

GEOMETRY_CLASSES = {
    GeometryArchetype.RADIAL: RadialGeometry,
    GeometryArchetype.LINEAR: LinearGeometry,
    GeometryArchetype.REFERENCE_POINT: ReferencePointGeometry,
    GeometryArchetype.RANGE: RangeGeometry,
}

_GEOMETRY_ALIASES = {
    'luminance_depth_sample_info': 'depth_sample_info',
}


def geometry_to_dict(geometry: Geometry) -> Dict[str, Any]:
    data = {}
    for f in fields(geometry):
        value = getattr(geometry, f.name)
        data[f.name] = [list(v) for v in value] if f.name == 'point_models' else (
            list(value) if isinstance(value, tuple) else value)
    return data


def build_geometry(mask_type: str, data: Optional[Dict[str, Any]] = None) -> Geometry:
    """
    Build the geometry variant matching a mask type's archetype.

    Keys that do not belong to the archetype are ignored; missing or
    malformed values fall back to the variant defaults.
    """
    archetype = REGISTRY.archetype_for(mask_type)
    geometry_cls = GEOMETRY_CLASSES[archetype]
    source = {}
    for key, value in _snake_keys(data or {}).items():
        source[_GEOMETRY_ALIASES.get(key, key)] = value

    values = {}
    for f in fields(geometry_cls):
        if f.name not in source:
            continue
        raw = source[f.name]
        if f.name in ('flipped', 'invert'):
            flag = _coerce_bool(raw)
            if flag is not None:
                values[f.name] = flag
        elif f.name == 'kind':
            continue
        elif f.name == 'point_models':
            if isinstance(raw, (list, tuple)):
                values[f.name] = [
                    [float(v) for v in pm if is_number(v)]
                    for pm in raw if isinstance(pm, (list, tuple))
                ]
        elif f.name in ('lum_range', 'depth_sample_info'):
            expected = 4 if f.name == 'lum_range' else 3
            if isinstance(raw, (list, tuple)) and len(raw) == expected:
                numbers = [_coerce_number(v) for v in raw]
                if all(n is not None for n in numbers):
                    values[f.name] = tuple(float(n) for n in numbers)
        else:
            number = _coerce_number(raw)
            if number is not None:
                values[f.name] = number

    if geometry_cls is RangeGeometry:
        values['kind'] = 'luminance' if mask_type == 'range_luminance' else 'color'
    return geometry_cls(**values)


@dataclass
class Mask:
    """A local adjustment region: semantic type, adjustments and geometry."""
    type: str
    name: Optional[str] = None
    adjustments: LocalAdjustments = field(default_factory=LocalAdjustments)
    geometry: Optional[Geometry] = None
    inverted: bool = False
    sub_category_id: Optional[int] = None
    id: Optional[str] = None

    def __post_init__(self):
        self.type = REGISTRY.normalize(self.type)
        expected = GEOMETRY_CLASSES[REGISTRY.archetype_for(self.type)]
        if self.geometry is None:
            self.geometry = build_geometry(self.type)
        elif not isinstance(self.geometry, expected):
            raise ValueError(
                f"Mask type {self.type} needs {expected.__name__}, "
                f"got {type(self.geometry).__name__}"
            )

    @property
    def archetype(self) -> GeometryArchetype:
        return REGISTRY.archetype_for(self.type)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Mask':
        """
        Build a mask from plain data.

        Accepts a nested ``geometry`` mapping, flattened geometry keys, or
        both (flattened keys win).  camelCase and snake_case keys are both
        understood.
        """
        if isinstance(data, Mask):
            return data
        flat = _snake_keys(data)
        mask_type = REGISTRY.normalize(flat.get('type'))

        geometry_source = {}
        if isinstance(flat.get('geometry'), dict):
            geometry_source.update(flat['geometry'])
        geometry_source.update({k: v for k, v in flat.items()
                                if k not in ('geometry', 'adjustments')})

        sub_category = _coerce_number(flat.get('sub_category_id'))
        name = flat.get('name')
        mask_id = flat.get('id')
        return cls(
            type=mask_type,
            name=name if isinstance(name, str) else None,
            adjustments=LocalAdjustments.from_dict(flat.get('adjustments')),
            geometry=build_geometry(mask_type, geometry_source),
            inverted=bool(_coerce_bool(flat.get('inverted'))),
            sub_category_id=int(sub_category) if sub_category is not None else None,
            id=mask_id if isinstance(mask_id, str) else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {'type': self.type}
        if self.id is not None:
            data['id'] = self.id
        if self.name is not None:
            data['name'] = self.name
        if self.sub_category_id is not None:
            data['sub_category_id'] = self.sub_category_id
        data['inverted'] = self.inverted
        data['adjustments'] = self.adjustments.to_dict()
        data['geometry'] = geometry_to_dict(self.geometry)
        return data


@dataclass
class CurveSet:
    """The four point curves of a record."""
    master: List[CurvePoint] = field(default_factory=list)
    red: List[CurvePoint] = field(default_factory=list)
    green: List[CurvePoint] = field(default_factory=list)
    blue: List[CurvePoint] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.master or self.red or self.green or self.blue)


@dataclass
class AdjustmentRecord:
    """
    Canonical color grade.

    Every numeric field is optional; None means "absent" and is never
    emitted by an encoder.
    """
    # Basic tone
    exposure: Optional[float] = None     # -5.0 to +5.0 stops
    contrast: Optional[float] = None     # -100 to +100
    highlights: Optional[float] = None   # -100 to +100
    shadows: Optional[float] = None      # -100 to +100
    whites: Optional[float] = None       # -100 to +100
    blacks: Optional[float] = None       # -100 to +100
    clarity: Optional[float] = None      # -100 to +100
    vibrance: Optional[float] = None     # -100 to +100
    saturation: Optional[float] = None   # -100 to +100
    brightness: Optional[float] = None   # -100 to +100
    temperature: Optional[float] = None  # 2000 to 50000 Kelvin
    tint: Optional[float] = None         # -150 to +150

    # Rendering mode
    treatment: Optional[Treatment] = None
    monochrome: Optional[bool] = None
    camera_profile: Optional[str] = None

    # HSL, -100 to +100
    hue_red: Optional[float] = None
    hue_orange: Optional[float] = None
    hue_yellow: Optional[float] = None
    hue_green: Optional[float] = None
    hue_aqua: Optional[float] = None
    hue_blue: Optional[float] = None
    hue_purple: Optional[float] = None
    hue_magenta: Optional[float] = None
    sat_red: Optional[float] = None
    sat_orange: Optional[float] = None
    sat_yellow: Optional[float] = None
    sat_green: Optional[float] = None
    sat_aqua: Optional[float] = None
    sat_blue: Optional[float] = None
    sat_purple: Optional[float] = None
    sat_magenta: Optional[float] = None
    lum_red: Optional[float] = None
    lum_orange: Optional[float] = None
    lum_yellow: Optional[float] = None
    lum_green: Optional[float] = None
    lum_aqua: Optional[float] = None
    lum_blue: Optional[float] = None
    lum_purple: Optional[float] = None
    lum_magenta: Optional[float] = None

    # Gray mixer, -100 to +100 (monochrome only)
    gray_red: Optional[float] = None
    gray_orange: Optional[float] = None
    gray_yellow: Optional[float] = None
    gray_green: Optional[float] = None
    gray_aqua: Optional[float] = None
    gray_blue: Optional[float] = None
    gray_purple: Optional[float] = None
    gray_magenta: Optional[float] = None

    # Color grading: hue 0-360, sat 0-100, lum -100 to +100
    color_grade_shadow_hue: Optional[float] = None
    color_grade_shadow_sat: Optional[float] = None
    color_grade_shadow_lum: Optional[float] = None
    color_grade_midtone_hue: Optional[float] = None
    color_grade_midtone_sat: Optional[float] = None
    color_grade_midtone_lum: Optional[float] = None
    color_grade_highlight_hue: Optional[float] = None
    color_grade_highlight_sat: Optional[float] = None
    color_grade_highlight_lum: Optional[float] = None
    color_grade_global_hue: Optional[float] = None
    color_grade_global_sat: Optional[float] = None
    color_grade_global_lum: Optional[float] = None
    color_grade_blending: Optional[float] = None  # 0-100
    color_grade_balance: Optional[float] = None   # -100 to +100

    # Parametric curve
    parametric_shadows: Optional[float] = None      # -100 to +100
    parametric_darks: Optional[float] = None        # -100 to +100
    parametric_lights: Optional[float] = None       # -100 to +100
    parametric_highlights: Optional[float] = None   # -100 to +100
    parametric_shadow_split: Optional[float] = None     # 0-100
    parametric_midtone_split: Optional[float] = None    # 0-100
    parametric_highlight_split: Optional[float] = None  # 0-100

    # Point curves, (input, output) pairs 0-255
    tone_curve: List[CurvePoint] = field(default_factory=list)
    tone_curve_red: List[CurvePoint] = field(default_factory=list)
    tone_curve_green: List[CurvePoint] = field(default_factory=list)
    tone_curve_blue: List[CurvePoint] = field(default_factory=list)

    # Point color corrections, up to four lists of -100..100 values
    point_colors: List[List[float]] = field(default_factory=list)

    # Grain, 0-100
    grain_amount: Optional[float] = None
    grain_size: Optional[float] = None
    grain_frequency: Optional[float] = None

    # Post-crop vignette
    vignette_amount: Optional[float] = None     # -100 to +100
    vignette_midpoint: Optional[float] = None   # 0-100
    vignette_feather: Optional[float] = None    # 0-100
    vignette_roundness: Optional[float] = None  # -100 to +100
    vignette_style: Optional[float] = None      # 0-2
    vignette_highlight_contrast: Optional[float] = None  # 0-100

    masks: List[Mask] = field(default_factory=list)

    # Provenance
    preset_name: Optional[str] = None
    description: Optional[str] = None
    confidence: Optional[float] = None
    reasoning: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AdjustmentRecord':
        """
        Tolerant construction from plain data.

        Keys may be snake_case or camelCase; an exact snake_case key wins.
        Unknown keys are ignored, non-numeric values for numeric fields are
        dropped, curves are normalized and masks parsed.
        """
        from .curves import normalize_curve

        data = {**_snake_keys(data), **data}
        values = {}
        for f in fields(cls):
            if f.name not in data or data[f.name] is None:
                continue
            raw = data[f.name]
            if f.name == 'treatment':
                treatment = Treatment.parse(raw)
                if treatment is None:
                    logger.debug(f"Ignoring unrecognized treatment {raw!r}")
                else:
                    values[f.name] = treatment
            elif f.name == 'monochrome':
                flag = _coerce_bool(raw)
                if flag is not None:
                    values[f.name] = flag
            elif f.name in CURVE_FIELDS:
                values[f.name] = normalize_curve(raw)
            elif f.name == 'point_colors':
                values[f.name] = _parse_point_colors(raw)
            elif f.name == 'masks':
                if isinstance(raw, (list, tuple)):
                    values[f.name] = [Mask.from_dict(m) for m in raw
                                      if isinstance(m, (dict, Mask))]
            elif f.name in _TEXT_FIELDS:
                if isinstance(raw, str):
                    values[f.name] = raw
            else:
                number = _coerce_number(raw)
                if number is None:
                    logger.debug(f"Dropping non-numeric value for {f.name}: {raw!r}")
                else:
                    values[f.name] = number
        return cls(**values)

    @classmethod
    def from_json(cls, text: str) -> 'AdjustmentRecord':
        return cls.from_dict(json.loads(text))

    def to_dict(self) -> Dict[str, Any]:
        """Plain data with absent fields omitted."""
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if f.name == 'treatment':
                data[f.name] = value.value
            elif f.name in CURVE_FIELDS:
                if value:
                    data[f.name] = [p.to_dict() for p in value]
            elif f.name == 'point_colors':
                if value:
                    data[f.name] = [list(p) for p in value]
            elif f.name == 'masks':
                if value:
                    data[f.name] = [m.to_dict() for m in value]
            else:
                data[f.name] = value
        return data

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def curves(self) -> CurveSet:
        return CurveSet(
            master=list(self.tone_curve),
            red=list(self.tone_curve_red),
            green=list(self.tone_curve_green),
            blue=list(self.tone_curve_blue),
        )

    def validate(self) -> List[str]:
        """
        Report out-of-range values.

        Returns:
            Human-readable warnings; empty when every present value is in range
        """
        warnings = []
        for name, field_range in FIELD_RANGES.items():
            value = getattr(self, name)
            if value is not None and not field_range.contains(value):
                warnings.append(
                    f"{name}={value} outside [{field_range.min}, {field_range.max}], will be clamped"
                )
        if len(self.point_colors) > MAX_POINT_COLORS:
            warnings.append(
                f"{len(self.point_colors)} point colors given, only {MAX_POINT_COLORS} are exported"
            )
        for index, mask in enumerate(self.masks):
            for name, value in mask.adjustments.to_dict().items():
                field_range = RANGES['exposure'] if name == 'local_exposure' else RANGES['local']
                if not field_range.contains(value):
                    warnings.append(f"masks[{index}].{name}={value} outside "
                                    f"[{field_range.min}, {field_range.max}], will be clamped")
        return warnings


_TEXT_FIELDS = frozenset(('camera_profile', 'preset_name', 'description', 'reasoning'))


def _parse_point_colors(raw) -> List[List[float]]:
    if not isinstance(raw, (list, tuple)):
        return []
    result = []
    for entry in raw:
        if isinstance(entry, (list, tuple)):
            result.append([float(v) for v in entry if is_number(v)])
    return result


def _field_ranges() -> Dict[str, FieldRange]:
    ranges = {'exposure': RANGES['exposure'],
              'temperature': RANGES['temperature'],
              'tint': RANGES['tint']}
    for name in ('contrast', 'highlights', 'shadows', 'whites', 'blacks', 'clarity',
                 'vibrance', 'saturation', 'brightness', 'color_grade_balance',
                 'parametric_shadows', 'parametric_darks', 'parametric_lights',
                 'parametric_highlights', 'vignette_amount', 'vignette_roundness'):
        ranges[name] = RANGES['tone']
    for bucket in HSL_BUCKETS:
        for prefix in ('hue', 'sat', 'lum', 'gray'):
            ranges[f'{prefix}_{bucket}'] = RANGES['tone']
    for zone in GRADING_ZONES:
        ranges[f'color_grade_{zone}_hue'] = RANGES['hue']
        ranges[f'color_grade_{zone}_sat'] = RANGES['percent']
        ranges[f'color_grade_{zone}_lum'] = RANGES['tone']
    for name in ('color_grade_blending', 'parametric_shadow_split', 'parametric_midtone_split',
                 'parametric_highlight_split', 'grain_amount', 'grain_size', 'grain_frequency',
                 'vignette_midpoint', 'vignette_feather', 'vignette_highlight_contrast'):
        ranges[name] = RANGES['percent']
    ranges['vignette_style'] = RANGES['vignette_style']
    ranges['confidence'] = RANGES['unit']
    return ranges


# Field name -> accepted range for every numeric record field
FIELD_RANGES: Dict[str, FieldRange] = _field_ranges()


def is_monochrome(record: AdjustmentRecord) -> bool:
    """
    Single predicate deciding whether a grade renders in black and white.

    True when the explicit flag is set, the treatment is monochrome, the
    camera profile hint names a monochrome profile, or saturation is fully
    removed.
    """
    if record.monochrome:
        return True
    if record.treatment == Treatment.MONOCHROME:
        return True
    if record.camera_profile and 'monochrome' in record.camera_profile.lower():
        return True
    return record.saturation is not None and record.saturation <= -100
