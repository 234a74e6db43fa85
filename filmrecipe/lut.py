"""
3D lookup table sampling and serialization.

The lattice is evaluated with numpy one red slab at a time; slabs are
independent and may run on a thread pool.  Results are always assembled
back in lattice order.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

from .curves import apply_curves_to_rgb
from .models import AdjustmentRecord, RANGES, is_monochrome, is_number
from .scaling import ExportTarget, resolve_strength

logger = logging.getLogger(__name__)

DEFAULT_SIZE = 33
NEUTRAL_TEMPERATURE = 6500.0

# Rec. 601 luma weights
LUMA = np.array([0.299, 0.587, 0.114])

LUT_EXTENSIONS: Dict[str, str] = {
    'cube': 'cube',
    '3dl': '3dl',
    'davinci': 'lut',
    'lut': 'lut',
}


@dataclass(frozen=True)
class LUTParams:
    """Record values normalized for the color transform."""
    exposure: float = 0.0
    temperature: float = NEUTRAL_TEMPERATURE
    tint: float = 0.0
    contrast: float = 0.0
    highlights: float = 0.0
    shadows: float = 0.0
    vibrance: float = 0.0
    saturation: float = 0.0

    @classmethod
    def from_record(cls, record: AdjustmentRecord, strength: float = 1.0) -> 'LUTParams':
        """Monochrome records are fully desaturated whatever their saturation."""
        def value(v, default=0.0):
            return v if is_number(v) else default

        return cls(
            exposure=RANGES['exposure'].clamp(value(record.exposure) * strength),
            temperature=RANGES['temperature'].clamp(value(record.temperature, NEUTRAL_TEMPERATURE)),
            tint=RANGES['tint'].clamp(value(record.tint)),
            contrast=RANGES['tone'].clamp(value(record.contrast) * strength) / 100,
            highlights=RANGES['tone'].clamp(value(record.highlights) * strength) / 100,
            shadows=RANGES['tone'].clamp(value(record.shadows) * strength) / 100,
            vibrance=RANGES['tone'].clamp(value(record.vibrance) * strength) / 100,
            saturation=(-1.0 if is_monochrome(record)
                        else RANGES['tone'].clamp(value(record.saturation) * strength) / 100),
        )


def _blend_towards_gray(rgb: np.ndarray, factor) -> np.ndarray:
    gray = rgb @ LUMA
    return gray[..., None] + (rgb - gray[..., None]) * np.asarray(factor)[..., None]


def color_transform(rgb: np.ndarray, params: LUTParams) -> np.ndarray:
    """
    Apply the global grade to an (..., 3) array of 0-1 RGB values.

    White balance, exposure, contrast, highlight/shadow recovery,
    saturation then vibrance.  Output is not clamped.
    """
    rgb = np.array(rgb, dtype=np.float64)

    if params.temperature != NEUTRAL_TEMPERATURE or params.tint != 0:
        temp = max(-1.0, min(1.0, (params.temperature - NEUTRAL_TEMPERATURE) / 3000))
        tint = max(-1.0, min(1.0, params.tint / 150))
        if temp < 0:
            gains = np.array([1 + temp * 0.2, 1.0, 1 - temp * 0.1])
        else:
            gains = np.array([1 + temp * 0.1, 1 + temp * 0.05, 1 - temp * 0.1])
        if tint > 0:
            gains = gains * np.array([1 + tint * 0.05, 1 - tint * 0.05, 1 + tint * 0.05])
        else:
            gains = gains * np.array([1.0, 1 - tint * 0.05, 1.0])
        rgb = rgb * gains

    if params.exposure != 0:
        rgb = rgb * (2.0 ** params.exposure)

    if params.contrast != 0:
        power = 1 + params.contrast if params.contrast > 0 else 1 / (1 - params.contrast)
        rgb = np.power(np.maximum(rgb, 0.0), power)

    luminance = rgb @ LUMA
    if params.highlights != 0:
        mask = np.where(luminance > 0.5, ((luminance - 0.5) * 2) ** 2, 0.0)
        rgb = rgb * (1 + params.highlights * mask * 0.5)[..., None]
    if params.shadows != 0:
        mask = np.where(luminance < 0.5, ((0.5 - luminance) * 2) ** 2, 0.0)
        rgb = rgb * (1 + params.shadows * mask * 0.5)[..., None]

    if params.saturation != 0:
        rgb = _blend_towards_gray(rgb, 1 + params.saturation)

    if params.vibrance != 0:
        high = rgb.max(axis=-1)
        low = rgb.min(axis=-1)
        current = np.where(high > 0, (high - low) / np.where(high > 0, high, 1.0), 0.0)
        rgb = _blend_towards_gray(rgb, 1 + (1 - current) * params.vibrance * 0.5)

    return rgb


def _sample_slab(r_index: int, size: int, params: LUTParams, curves) -> np.ndarray:
    axis = np.linspace(0.0, 1.0, size)
    g, b = np.meshgrid(axis, axis, indexing='ij')
    r = np.full_like(g, axis[r_index])
    rgb = color_transform(np.stack([r, g, b], axis=-1), params)
    out_r, out_g, out_b = apply_curves_to_rgb(rgb[..., 0], rgb[..., 1], rgb[..., 2], curves)
    return np.stack([out_r, out_g, out_b], axis=-1)


def sample_lut(record: AdjustmentRecord, size: int = DEFAULT_SIZE,
               workers: Optional[int] = None, strength: Optional[float] = None) -> np.ndarray:
    """
    Sample the grade on an N x N x N lattice.

    Args:
        record: Grade to sample; never modified
        size: Lattice points per axis, at least 2
        workers: Thread count for red slabs; sequential when None or 1
        strength: Explicit strength; LUT default otherwise

    Returns:
        Array of shape (N, N, N, 3) indexed [r, g, b], values in 0-1

    Raises:
        ValueError: If size is below 2
    """
    if not isinstance(size, int) or isinstance(size, bool) or size < 2:
        raise ValueError(f"LUT size must be an integer >= 2, got {size!r}")

    params = LUTParams.from_record(record, resolve_strength(ExportTarget.LUT, strength))
    curves = record.curves()

    if workers and workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            slabs = list(executor.map(lambda i: _sample_slab(i, size, params, curves), range(size)))
    else:
        slabs = [_sample_slab(i, size, params, curves) for i in range(size)]
    return np.stack(slabs, axis=0)


def _entries(lattice: np.ndarray, red_fastest: bool) -> np.ndarray:
    """Flatten the lattice into rows in file order."""
    if red_fastest:
        # [b, g, r] ordering so red varies fastest
        return lattice.transpose(2, 1, 0, 3).reshape(-1, 3)
    return lattice.reshape(-1, 3)


def format_cube(lattice: np.ndarray, title: Optional[str] = None) -> str:
    size = lattice.shape[0]
    lines = ['# Created by filmrecipe']
    if title:
        lines.append(f'TITLE "{title}"')
    lines.extend([f'# LUT size: {size}', '', f'LUT_3D_SIZE {size}', ''])
    lines.extend(f'{r:.6f} {g:.6f} {b:.6f}' for r, g, b in _entries(lattice, True))
    return '\n'.join(lines) + '\n'


def format_3dl(lattice: np.ndarray, title: Optional[str] = None) -> str:
    size = lattice.shape[0]
    lines = ['3DMESH', f'Mesh {size} {size} {size}', '']
    values = np.floor(_entries(lattice, False) * 1023 + 0.5).astype(int)
    lines.extend(f'{r} {g} {b}' for r, g, b in values)
    return '\n'.join(lines) + '\n'


def format_davinci(lattice: np.ndarray, title: Optional[str] = None) -> str:
    size = lattice.shape[0]
    lines = ['# Created by filmrecipe', '# DaVinci Resolve LUT', f'# Size: {size}x{size}x{size}', '']
    lines.extend(f'{r:.6f} {g:.6f} {b:.6f}' for r, g, b in _entries(lattice, False))
    return '\n'.join(lines) + '\n'


FORMATTERS = {
    'cube': format_cube,
    '3dl': format_3dl,
    'davinci': format_davinci,
    'lut': format_davinci,
}


def generate_lut(record: AdjustmentRecord, size: int = DEFAULT_SIZE, dialect: str = 'cube',
                 workers: Optional[int] = None, strength: Optional[float] = None) -> str:
    """
    Sample a record and serialize it in a LUT dialect.

    Raises:
        ValueError: For an unsupported dialect or a size below 2
    """
    formatter = FORMATTERS.get(str(dialect).lower())
    if formatter is None:
        raise ValueError(f"Unsupported LUT format: {dialect}")
    lattice = sample_lut(record, size, workers, strength)
    logger.debug(f"Sampled {size}^3 LUT for dialect {dialect}")
    return formatter(lattice, record.preset_name)
