"""
filmrecipe: color-adjustment preset codec

A format-agnostic model of a photographic grade with encoders and decoders
for Camera Raw presets and looks, Capture One styles and 3D LUTs.
"""

__version__ = "0.1.0"

# Core imports for easy access
from .config import load_config
from .models import AdjustmentRecord, Mask, is_monochrome
from .exporters import ExportType, ExportArtifact, export
from .xmp import parse_preset

__all__ = [
    "load_config",
    "AdjustmentRecord",
    "Mask",
    "is_monochrome",
    "ExportType",
    "ExportArtifact",
    "export",
    "parse_preset",
]
