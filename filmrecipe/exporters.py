"""
Export dispatch.

Turns an AdjustmentRecord into a named artifact for one of the supported
targets.  Nothing here touches the filesystem; callers decide where the
content goes.
"""

import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Any, List, Optional

from .config import get_config_value, get_default_config
from .lut import DEFAULT_SIZE, LUT_EXTENSIONS, generate_lut
from .masks.overrides import apply_mask_overrides
from .models import AdjustmentRecord
from .naming import clean_display_name, safe_filename
from .scaling import ExportTarget, resolve_strength
from .styles import StyleOptions, encode_style, encode_basic_style
from .utils.logging import StructuredLogger
from .xmp import PresetOptions, encode_preset, encode_profile

logger = StructuredLogger(__name__)


class ExportType(str, Enum):
    """Artifact kinds the exporter can produce"""
    LIGHTROOM_PRESET = "lightroom-preset"
    LIGHTROOM_PROFILE = "lightroom-profile"
    CAPTURE_ONE_STYLE = "capture-one-style"
    CAPTURE_ONE_BASIC_STYLE = "capture-one-basic-style"
    LUT = "lut"

    @classmethod
    def parse(cls, value) -> 'ExportType':
        """Accept an ExportType, its value, or its name in any case."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower().replace('_', '-')
        for member in cls:
            if member.value == text:
                return member
        raise ValueError(f"Unknown export type: {value}")


@dataclass(frozen=True)
class ExportArtifact:
    """A produced document and the file name it should be saved under."""
    filename: str
    content: str
    export_type: ExportType


def _lut_filename(base: str, size: int, dialect: str, strength: float) -> str:
    extension = LUT_EXTENSIONS.get(dialect.lower(), 'cube')
    suffix = '' if abs(strength - 1.0) < 1e-9 else f"-{round(strength * 100)}pct"
    return f"{base}-LUT-{size}{suffix}.{extension}"


def export(record: AdjustmentRecord, export_type, strength: Optional[float] = None,
           name: Optional[str] = None, config: Optional[Dict[str, Any]] = None,
           options: Optional[Dict[str, Any]] = None, lut_size: Optional[int] = None,
           lut_dialect: Optional[str] = None, workers: Optional[int] = None,
           mask_overrides: Optional[List[Dict[str, Any]]] = None) -> ExportArtifact:
    """
    Produce one export artifact.

    Args:
        record: Grade to export; never modified
        export_type: ExportType or its string value
        strength: Explicit strength; the target's default otherwise
        name: Display name override
        config: Loaded configuration
        options: Include flags for preset/style exports
        lut_size: Lattice size for LUT exports
        lut_dialect: cube, 3dl or davinci
        workers: Thread count for LUT sampling
        mask_overrides: Mask add/update/remove operations applied to a copy

    Returns:
        ExportArtifact

    Raises:
        ValueError: For an unknown export type or invalid LUT parameters
    """
    export_type = ExportType.parse(export_type)
    if mask_overrides:
        record = replace(record, masks=apply_mask_overrides(record.masks, mask_overrides))
    config = config or get_default_config()
    options = dict(options or {})
    display_name = clean_display_name(name or record.preset_name)
    base = safe_filename(display_name)
    log = logger.bind(export_type=export_type.value, name=display_name)
    started = time.time()

    if export_type == ExportType.LIGHTROOM_PRESET:
        preset_options = PresetOptions.from_dict({**options, 'strength': strength,
                                                  'name': display_name})
        artifact = ExportArtifact(f"{base}.xmp", encode_preset(record, preset_options, config),
                                  export_type)

    elif export_type == ExportType.LIGHTROOM_PROFILE:
        content = encode_profile(record, name=display_name, strength=strength, config=config)
        artifact = ExportArtifact(f"{base}-Profile.xmp", content, export_type)

    elif export_type == ExportType.CAPTURE_ONE_STYLE:
        known = StyleOptions.__dataclass_fields__
        style_options = StyleOptions(**{**{k: v for k, v in options.items() if k in known},
                                        'strength': strength, 'name': display_name})
        artifact = ExportArtifact(f"{base}.costyle", encode_style(record, style_options, config),
                                  export_type)

    elif export_type == ExportType.CAPTURE_ONE_BASIC_STYLE:
        content = encode_basic_style(record, config, strength=strength, name=display_name)
        artifact = ExportArtifact(f"{base}-Basic.costyle", content, export_type)

    else:
        size = lut_size or get_config_value(config, 'lut.size', DEFAULT_SIZE)
        dialect = lut_dialect or get_config_value(config, 'lut.dialect', 'cube')
        if workers is None:
            workers = get_config_value(config, 'lut.workers')
        lut_strength = resolve_strength(ExportTarget.LUT, strength, config)
        content = generate_lut(record, size, dialect, workers, lut_strength)
        artifact = ExportArtifact(_lut_filename(base, size, dialect, lut_strength), content,
                                  export_type)

    log.info("Generated artifact", filename=artifact.filename,
             bytes=len(artifact.content), seconds=round(time.time() - started, 4))
    return artifact
