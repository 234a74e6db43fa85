"""
Minimal look/profile encoder and camera profile selection.

A look carries only white balance and basic tone at a reduced strength so
it can sit on top of whatever the photographer already applied.
"""

import logging
import re
import uuid
from typing import Dict, Any, Optional

from ..config import get_config_value, get_default_config
from ..masks.registry import REGISTRY, MaskCategory
from ..models import AdjustmentRecord, is_monochrome
from ..naming import clean_display_name
from ..scaling import ExportTarget, resolve_strength, scale_basic_tone
from .document import XMPDocument

logger = logging.getLogger(__name__)

ADOBE_COLOR = 'Adobe Color'
ADOBE_MONOCHROME = 'Adobe Monochrome'
ADOBE_PORTRAIT = 'Adobe Portrait'
ADOBE_LANDSCAPE = 'Adobe Landscape'

_PROFILE_PATTERNS = (
    (re.compile(r'mono|black\s*&?\s*white|b\s*&\s*w'), ADOBE_MONOCHROME),
    (re.compile(r'portrait|people|skin'), ADOBE_PORTRAIT),
    (re.compile(r'landscape|sky|mountain|nature'), ADOBE_LANDSCAPE),
)

PROFILE_TONE_TAGS = (
    ('contrast', 'Contrast2012'),
    ('highlights', 'Highlights2012'),
    ('shadows', 'Shadows2012'),
    ('whites', 'Whites2012'),
    ('blacks', 'Blacks2012'),
    ('clarity', 'Clarity2012'),
    ('vibrance', 'Vibrance'),
    ('saturation', 'Saturation'),
)


def normalize_camera_profile(hint: Optional[str]) -> Optional[str]:
    """
    Map a free-text profile hint onto Adobe's canonical profile names.

    Returns None for an empty hint; unknown hints become Adobe Color.
    """
    if not hint or not str(hint).strip():
        return None
    lowered = str(hint).lower()
    for pattern, profile in _PROFILE_PATTERNS:
        if pattern.search(lowered):
            return profile
    return ADOBE_COLOR


def auto_select_camera_profile(record: AdjustmentRecord) -> str:
    """Pick a profile from the rendering mode and the masks in the grade."""
    if is_monochrome(record):
        return ADOBE_MONOCHROME
    has_people = False
    has_scenery = False
    for mask in record.masks:
        config = REGISTRY.get(mask.type)
        category = config.category if config else None
        if category == MaskCategory.FACE or mask.type in ('subject', 'person'):
            has_people = True
        if category in (MaskCategory.LANDSCAPE, MaskCategory.BACKGROUND) or mask.type == 'sky':
            has_scenery = True
    if has_people:
        return ADOBE_PORTRAIT
    if has_scenery:
        return ADOBE_LANDSCAPE
    return ADOBE_COLOR


def select_camera_profile(record: AdjustmentRecord) -> str:
    """Explicit hint when given, otherwise the automatic choice."""
    return normalize_camera_profile(record.camera_profile) or auto_select_camera_profile(record)


def encode_profile(record: AdjustmentRecord, name: Optional[str] = None,
                   strength: Optional[float] = None,
                   config: Optional[Dict[str, Any]] = None) -> str:
    """
    Encode a record as a minimal look.

    Args:
        record: Grade to encode; never modified
        name: Look name; defaults to the record's preset name
        strength: Explicit strength; defaults to the profile strength
        config: Loaded configuration

    Returns:
        XMP packet text
    """
    config = config or get_default_config()
    strength = resolve_strength(ExportTarget.PROFILE, strength, config)
    monochrome = is_monochrome(record)
    look_name = clean_display_name(name or record.preset_name)
    basic = scale_basic_tone(record, strength)

    document = XMPDocument()
    description = document.description
    description.set_many([
        ('PresetType', 'Look'),
        ('UUID', uuid.uuid4().hex.upper()),
        ('SupportsAmount', True),
        ('SupportsColor', True),
        ('SupportsMonochrome', True),
        ('Cluster', get_config_value(config, 'export.cluster')),
        ('ProfileName', select_camera_profile(record)),
        ('Treatment', 'Black & White' if monochrome else 'Color'),
        ('ConvertToGrayscale', True if monochrome else None),
        ('Temperature', basic.get('temperature')),
        ('Tint', basic.get('tint')),
        ('Exposure2012', None if basic.get('exposure') is None else f"{basic['exposure']:.2f}"),
    ])
    description.set_many((tag, basic.get(field_name)) for field_name, tag in PROFILE_TONE_TAGS)
    if monochrome:
        description.set('Saturation', 0)

    description.add_alt('Name', look_name)
    description.add_alt('ShortName', look_name)
    description.add_alt('Group', get_config_value(config, 'export.group_name'))
    description.add_alt('Description', record.description)

    logger.debug(f"Encoded look {look_name!r} at strength {strength}")
    return document.to_string()
