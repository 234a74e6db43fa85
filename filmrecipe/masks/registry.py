"""
Mask taxonomy registry for filmrecipe.

Maps the semantic mask vocabulary (face parts, landscape elements, subject,
geometric and range selectors) to the type/subtype codes each export format
understands, and back again.  Built once at import time and read-only
afterwards; every encoder and the decoder share the module-level ``REGISTRY``.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_MASK_TYPE = "subject"


class GeometryArchetype(Enum):
    """Shape a mask's spatial definition follows."""
    RADIAL = "radial"                    # bounding box + rotation
    LINEAR = "linear"                    # two endpoints
    REFERENCE_POINT = "reference_point"  # single point picked by the AI selector
    RANGE = "range"                      # color/luminance range selector


class MaskCategory(Enum):
    """Grouping used for camera profile heuristics."""
    FACE = "face"
    LANDSCAPE = "landscape"
    BACKGROUND = "background"
    SUBJECT = "subject"
    OTHER = "other"
    GEOMETRIC = "geometric"
    RANGE = "range"


class CaptureOneMaskType(Enum):
    """Capture One ``MaskType`` values."""
    BRUSH = 0
    GRADIENT = 1
    RADIAL = 2
    BACKGROUND = 3
    SUBJECT = 4


@dataclass(frozen=True)
class MaskCodes:
    """(type-code, subtype-code) pair in the raw-development preset format.

    AI masks use MaskSubType / MaskSubCategoryID.  Geometric and range masks
    use the ``crs:What`` suffix and, for range masks, the range ``Type``.
    """
    type_code: str
    subtype_code: str = ""

    def key(self) -> Tuple[str, str]:
        return (self.type_code, self.subtype_code)


@dataclass(frozen=True)
class MaskTypeConfig:
    """Registry entry for a single semantic mask type."""
    type: str
    codes: MaskCodes
    archetype: GeometryArchetype
    category: MaskCategory
    description: str
    display_name: str
    capture_one: CaptureOneMaskType = CaptureOneMaskType.SUBJECT
    capture_one_part: Optional[str] = None
    # False when the codes are shared with another entry that owns the reverse mapping
    reversible: bool = True


def _ai(type_: str, sub_type: str, sub_category: str, category: MaskCategory,
        description: str, display_name: str, **kwargs) -> MaskTypeConfig:
    return MaskTypeConfig(
        type=type_,
        codes=MaskCodes(sub_type, sub_category),
        archetype=GeometryArchetype.REFERENCE_POINT,
        category=category,
        description=description,
        display_name=display_name,
        **kwargs
    )


MASK_TYPE_CONFIGS: Tuple[MaskTypeConfig, ...] = (
    # Face and people parts (MaskSubType 3)
    _ai('face_skin', '3', '2', MaskCategory.FACE, 'Facial skin', 'Face Skin',
        capture_one_part='Face'),
    _ai('iris_pupil', '3', '3', MaskCategory.FACE, 'Iris and pupil', 'Eye Pop',
        capture_one_part='IrisAndPupil'),
    _ai('body_skin', '3', '4', MaskCategory.FACE, 'Body skin', 'Body Skin',
        capture_one_part='Body'),
    _ai('hair', '3', '5', MaskCategory.FACE, 'Hair', 'Hair',
        capture_one_part='Hair'),
    _ai('lips', '3', '6', MaskCategory.FACE, 'Lips', 'Lips',
        capture_one_part='Lips'),
    _ai('eye_whites', '3', '8', MaskCategory.FACE, 'Eye whites (sclera)', 'Eye Whites',
        capture_one_part='Sclera'),
    _ai('eyebrows', '3', '9', MaskCategory.FACE, 'Eyebrows', 'Eyebrows',
        capture_one_part='Eyebrows'),
    _ai('clothing', '3', '11', MaskCategory.FACE, 'Clothing', 'Clothing',
        capture_one_part='Clothes'),
    _ai('teeth', '3', '12', MaskCategory.FACE, 'Teeth', 'Teeth'),
    _ai('facial_hair', '3', '13', MaskCategory.FACE, 'Facial hair (beard, mustache)',
        'Facial Hair'),

    # Background and landscape elements (MaskSubType 0)
    _ai('background', '0', '22', MaskCategory.BACKGROUND, 'General background', 'Background',
        capture_one=CaptureOneMaskType.BACKGROUND),
    _ai('architecture', '0', '50001', MaskCategory.LANDSCAPE, 'Architecture and buildings',
        'Architecture'),
    _ai('mountains', '0', '50002', MaskCategory.LANDSCAPE, 'Mountains and mountain ranges',
        'Mountains'),
    _ai('artificial_ground', '0', '50003', MaskCategory.LANDSCAPE,
        'Artificial ground (pavement, roads)', 'Ground'),
    _ai('natural_ground', '0', '50004', MaskCategory.LANDSCAPE,
        'Natural ground (dirt, grass)', 'Ground'),
    _ai('vegetation', '0', '50005', MaskCategory.LANDSCAPE, 'Vegetation and plants',
        'Vegetation'),
    _ai('sky', '0', '50006', MaskCategory.LANDSCAPE, 'Sky', 'Sky'),
    _ai('water', '0', '50007', MaskCategory.LANDSCAPE, 'Water bodies', 'Water'),

    # Subject / people (MaskSubType 1)
    _ai('subject', '1', '0', MaskCategory.SUBJECT, 'Subject or person', 'Subject'),
    _ai('person', '1', '0', MaskCategory.SUBJECT, 'Person', 'Person', reversible=False),
    _ai('vehicle', '1', '', MaskCategory.OTHER, 'Vehicle', 'Vehicle', reversible=False),
    _ai('animal', '1', '', MaskCategory.OTHER, 'Animal', 'Animal', reversible=False),
    _ai('object', '1', '', MaskCategory.OTHER, 'General object', 'Object', reversible=False),

    # Geometric masks
    MaskTypeConfig('radial', MaskCodes('CircularGradient'), GeometryArchetype.RADIAL,
                   MaskCategory.GEOMETRIC, 'Radial gradient', 'Radial Mask',
                   capture_one=CaptureOneMaskType.RADIAL),
    MaskTypeConfig('linear', MaskCodes('Gradient'), GeometryArchetype.LINEAR,
                   MaskCategory.GEOMETRIC, 'Linear gradient', 'Linear Mask',
                   capture_one=CaptureOneMaskType.GRADIENT),

    # Range selectors
    MaskTypeConfig('range_color', MaskCodes('RangeMask', '1'), GeometryArchetype.RANGE,
                   MaskCategory.RANGE, 'Color range selection', 'Color Range',
                   capture_one=CaptureOneMaskType.BRUSH),
    MaskTypeConfig('range_luminance', MaskCodes('RangeMask', '2'), GeometryArchetype.RANGE,
                   MaskCategory.RANGE, 'Luminance range selection', 'Luminance Range',
                   capture_one=CaptureOneMaskType.BRUSH),
)

# Loosely-specified names seen in analysis output
MASK_TYPE_SYNONYMS: Dict[str, str] = {
    'face': 'face_skin',
    'skin': 'face_skin',
    'facial_skin': 'face_skin',
    'face skin': 'face_skin',
    'eye': 'iris_pupil',
    'eyes': 'iris_pupil',
    'iris': 'iris_pupil',
    'pupil': 'iris_pupil',
    'eye_white': 'eye_whites',
    'sclera': 'eye_whites',
    'tooth': 'teeth',
    'mouth': 'lips',
    'brows': 'eyebrows',
    'beard': 'facial_hair',
    'mustache': 'facial_hair',
    'clothes': 'clothing',
    'body': 'body_skin',
    'people': 'subject',
    'landscape': 'background',
    'building': 'architecture',
    'buildings': 'architecture',
    'mountain': 'mountains',
    'ground': 'natural_ground',
    'road': 'artificial_ground',
    'trees': 'vegetation',
    'foliage': 'vegetation',
    'sea': 'water',
    'ocean': 'water',
    'lake': 'water',
    'gradient': 'linear',
    'graduated': 'linear',
    'circular': 'radial',
    'color_range': 'range_color',
    'luminance_range': 'range_luminance',
    'luminosity': 'range_luminance',
}


class MaskRegistry:
    """
    Read-only lookup over the mask taxonomy.

    Forward lookups resolve a semantic type to its format codes; reverse
    lookups resolve codes back to the canonical type, defaulting to
    ``subject`` when nothing matches exactly.
    """

    def __init__(self, configs=MASK_TYPE_CONFIGS, synonyms=None):
        self._by_type: Dict[str, MaskTypeConfig] = {}
        self._by_codes: Dict[Tuple[str, str], str] = {}
        self._synonyms = dict(MASK_TYPE_SYNONYMS if synonyms is None else synonyms)

        for config in configs:
            if config.type in self._by_type:
                raise ValueError(f"Duplicate mask type in registry: {config.type}")
            self._by_type[config.type] = config
            if not config.reversible:
                continue
            key = config.codes.key()
            if key in self._by_codes:
                raise ValueError(
                    f"Mask codes {key} claimed by both {self._by_codes[key]} and {config.type}"
                )
            self._by_codes[key] = config.type

    def get(self, mask_type: str) -> Optional[MaskTypeConfig]:
        """Registry entry for a canonical type, or None."""
        return self._by_type.get(mask_type)

    def is_supported(self, mask_type: str) -> bool:
        return mask_type in self._by_type

    def all_types(self) -> List[str]:
        return list(self._by_type)

    def by_category(self, category: MaskCategory) -> List[MaskTypeConfig]:
        return [c for c in self._by_type.values() if c.category == category]

    def normalize(self, raw_type) -> str:
        """
        Map a loosely-specified type string to the canonical vocabulary.

        Args:
            raw_type: Any value; strings are lower-cased and trimmed

        Returns:
            Canonical mask type, ``subject`` when unrecognized
        """
        if not raw_type:
            return DEFAULT_MASK_TYPE
        key = str(raw_type).strip().lower()
        if key in self._by_type:
            return key
        synonym = self._synonyms.get(key) or self._synonyms.get(key.replace('-', '_'))
        if synonym:
            return synonym
        underscored = key.replace(' ', '_').replace('-', '_')
        if underscored in self._by_type:
            return underscored
        logger.debug(f"Unknown mask type {raw_type!r}, falling back to {DEFAULT_MASK_TYPE}")
        return DEFAULT_MASK_TYPE

    def resolve(self, raw_type) -> MaskTypeConfig:
        """Normalize then return the registry entry."""
        return self._by_type[self.normalize(raw_type)]

    def codes_for(self, mask_type: str) -> MaskCodes:
        """Forward lookup: semantic type to preset format codes."""
        return self.resolve(mask_type).codes

    def archetype_for(self, mask_type: str) -> GeometryArchetype:
        return self.resolve(mask_type).archetype

    def type_for_codes(self, type_code, subtype_code=None) -> str:
        """
        Reverse lookup: preset format codes to canonical type.

        Args:
            type_code: MaskSubType (AI masks) or What suffix (geometric/range)
            subtype_code: MaskSubCategoryID or range Type; None is treated as empty

        Returns:
            Canonical mask type, ``subject`` when no entry matches exactly
        """
        key = (str(type_code).strip() if type_code is not None else '',
               str(subtype_code).strip() if subtype_code is not None else '')
        mask_type = self._by_codes.get(key)
        if mask_type is None:
            logger.debug(f"No mask type for codes {key}, using {DEFAULT_MASK_TYPE}")
            return DEFAULT_MASK_TYPE
        return mask_type

    def capture_one_codes(self, mask_type: str) -> Tuple[CaptureOneMaskType, Optional[str]]:
        """Capture One (MaskType, subject part option) for a type."""
        config = self.resolve(mask_type)
        return config.capture_one, config.capture_one_part

    def display_name(self, mask_type: str, index: int = 0) -> str:
        """Human-readable default name for an unnamed mask."""
        config = self._by_type.get(mask_type)
        if config is None:
            return f"Mask {index + 1}"
        return config.display_name


REGISTRY = MaskRegistry()


def normalize_mask_type(raw_type) -> str:
    return REGISTRY.normalize(raw_type)


def get_mask_config(mask_type: str) -> Optional[MaskTypeConfig]:
    return REGISTRY.get(mask_type)


def get_mask_type_from_codes(type_code, subtype_code=None) -> str:
    return REGISTRY.type_for_codes(type_code, subtype_code)


def get_all_mask_types() -> List[str]:
    return REGISTRY.all_types()
