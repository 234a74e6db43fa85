"""
Tone curve utilities: normalization, XMP fragment (de)serialization and
resampling of point curves for the LUT sampler.
"""

import logging
import re
import xml.etree.ElementTree as ET
from typing import Dict, Any, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .models import CurvePoint, CurveSet, RANGES, is_number
from .scaling import round_half_up

logger = logging.getLogger(__name__)

CRS_NS = 'http://ns.adobe.com/camera-raw-settings/1.0/'
RDF_NS = 'http://www.w3.org/1999/02/22-rdf-syntax-ns#'

CURVE_TAGS: Dict[str, str] = {
    'tone_curve': 'ToneCurvePV2012',
    'tone_curve_red': 'ToneCurvePV2012Red',
    'tone_curve_green': 'ToneCurvePV2012Green',
    'tone_curve_blue': 'ToneCurvePV2012Blue',
}

_XML_DECL_RE = re.compile(r'^\s*<\?xml[^>]*\?>')


def _clamp_curve_value(value: float) -> int:
    return int(RANGES['curve'].clamp(round_half_up(value)))


def _point_values(point) -> Optional[Tuple[Any, Any]]:
    if isinstance(point, CurvePoint):
        return point.input, point.output
    if isinstance(point, dict):
        if 'input' in point or 'output' in point:
            return point.get('input'), point.get('output')
        return point.get('x'), point.get('y')
    if isinstance(point, (list, tuple)) and len(point) == 2:
        return point[0], point[1]
    return None


def normalize_curve(points) -> List[CurvePoint]:
    """
    Coerce raw curve data into CurvePoints.

    Entries that are not two finite numbers are dropped; coordinates are
    rounded half-up and clamped to 0-255.  Order is preserved.
    """
    if not isinstance(points, (list, tuple)):
        return []
    result = []
    for point in points:
        values = _point_values(point)
        if values is None or not (is_number(values[0]) and is_number(values[1])):
            logger.debug(f"Dropping invalid curve point {point!r}")
            continue
        result.append(CurvePoint(_clamp_curve_value(values[0]), _clamp_curve_value(values[1])))
    return result


def curve_items(points: Sequence[CurvePoint]) -> List[str]:
    """``"x, y"`` item strings as written inside the rdf:Seq."""
    return [f"{p.input}, {p.output}" for p in normalize_curve(list(points))]


def serialize_curve(tag: str, points: Sequence[CurvePoint]) -> str:
    """
    XMP fragment for one curve.

    Returns an empty string for an empty curve so callers can concatenate
    unconditionally.
    """
    items = curve_items(points)
    if not items:
        return ''
    lines = [f'<crs:{tag}>', '  <rdf:Seq>']
    lines.extend(f'    <rdf:li>{item}</rdf:li>' for item in items)
    lines.extend(['  </rdf:Seq>', f'</crs:{tag}>'])
    return '\n'.join(lines)


def parse_curve_items(items: Iterable[str]) -> List[CurvePoint]:
    """Parse ``"x, y"`` strings; anything that is not two numbers is skipped."""
    points = []
    for item in items:
        parts = (item or '').split(',')
        if len(parts) != 2:
            continue
        try:
            x, y = float(parts[0].strip()), float(parts[1].strip())
        except ValueError:
            continue
        if is_number(x) and is_number(y):
            points.append(CurvePoint(_clamp_curve_value(x), _clamp_curve_value(y)))
    return points


def curve_items_from_element(element: ET.Element) -> List[str]:
    return [li.text or '' for li in element.iter(f'{{{RDF_NS}}}li')]


def parse_curve(text: str, tag: Optional[str] = None) -> List[CurvePoint]:
    """
    Parse a serialized curve fragment or a document containing one.

    Args:
        text: XML text; namespace declarations may be missing
        tag: Curve tag to look for; first ToneCurve* element when omitted

    Returns:
        Curve points, empty when no curve is found or the text is not XML
    """
    if not text or not text.strip():
        return []
    body = _XML_DECL_RE.sub('', text)
    wrapped = f'<curves xmlns:crs="{CRS_NS}" xmlns:rdf="{RDF_NS}">{body}</curves>'
    try:
        root = ET.fromstring(wrapped)
    except ET.ParseError as e:
        logger.debug(f"Could not parse curve fragment: {e}")
        return []

    for element in root.iter():
        if not isinstance(element.tag, str) or not element.tag.startswith(f'{{{CRS_NS}}}'):
            continue
        local = element.tag.split('}', 1)[1]
        if (tag and local == tag) or (not tag and local.startswith('ToneCurve')):
            return parse_curve_items(curve_items_from_element(element))
    return []


def resample(value: float, points: Sequence[CurvePoint]) -> float:
    """
    Evaluate a point curve at ``value`` (0-1).

    Points are scanned in stored order and the first segment bracketing
    the input is interpolated; zero-width segments take the lower point's
    output.  When no segment brackets the input, inputs at or below the
    first point take its output and anything else takes the last point's
    output.  An empty curve is the identity.
    """
    if not points:
        return value
    x = value * 255.0
    for lower, upper in zip(points, points[1:]):
        if lower.input <= x <= upper.input:
            width = upper.input - lower.input
            if width == 0:
                return lower.output / 255.0
            t = (x - lower.input) / width
            return (lower.output + t * (upper.output - lower.output)) / 255.0
    if x <= points[0].input:
        return points[0].output / 255.0
    return points[-1].output / 255.0


def resample_array(values: np.ndarray, points: Sequence[CurvePoint]) -> np.ndarray:
    """Vectorized :func:`resample` with identical first-match semantics."""
    values = np.asarray(values, dtype=np.float64)
    if not points:
        return values.copy()
    x = values * 255.0
    inputs = np.array([p.input for p in points], dtype=np.float64)
    outputs = np.array([p.output for p in points], dtype=np.float64)

    result = values.copy()
    resolved = np.zeros(x.shape, dtype=bool)

    for i in range(len(points) - 1):
        lo, hi = inputs[i], inputs[i + 1]
        hit = ~resolved & (x >= lo) & (x <= hi)
        if not hit.any():
            continue
        width = hi - lo
        if width == 0:
            result[hit] = outputs[i] / 255.0
        else:
            t = (x[hit] - lo) / width
            result[hit] = (outputs[i] + t * (outputs[i + 1] - outputs[i])) / 255.0
        resolved |= hit

    below = ~resolved & (x <= inputs[0])
    result[below] = outputs[0] / 255.0
    result[~resolved & ~below] = outputs[-1] / 255.0
    return result


def apply_curves_to_rgb(r, g, b, curves: CurveSet):
    """
    Apply the master curve to every channel, then the per-channel curves,
    then clamp to 0-1.  Accepts scalars or numpy arrays.
    """
    channels = []
    for value, channel_curve in ((r, curves.red), (g, curves.green), (b, curves.blue)):
        scalar = np.ndim(value) == 0
        out = resample_array(np.asarray(value, dtype=np.float64), curves.master)
        out = resample_array(out, channel_curve)
        out = np.clip(out, 0.0, 1.0)
        channels.append(float(out) if scalar else out)
    return tuple(channels)
