"""
Display names and file-safe names for exported presets.
"""

import re
from datetime import datetime
from typing import Optional

_TECHNICAL_TERMS_RE = re.compile(r'\b(image\s*match|imagematch|match|target|base|ai|photo)\b',
                                 re.IGNORECASE)
_UNSAFE_RE = re.compile(r'[^A-Za-z0-9 _-]+')


def timestamp_name(prefix: str = 'Preset', now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return f"{prefix}-{now.strftime('%Y-%m-%dT%H-%M-%S')}"


def clean_display_name(raw: Optional[str], fallback: Optional[str] = None) -> str:
    """
    Strip workflow jargon ("AI", "match", "photo"...) from a preset name.

    Falls back to a timestamped name when nothing usable is left.
    """
    fallback = fallback or timestamp_name()
    if not raw or not str(raw).strip():
        return fallback
    cleaned = _TECHNICAL_TERMS_RE.sub('', str(raw))
    cleaned = re.sub(r'\s{2,}', ' ', cleaned).strip()
    return cleaned or fallback


def safe_filename(name: Optional[str], fallback: str = 'Custom-Recipe') -> str:
    """Filesystem-safe base name: ASCII letters, digits, dash and underscore."""
    base = _UNSAFE_RE.sub('', name or '')
    base = re.sub(r'\s+', ' ', base).strip().replace(' ', '-')
    return base or fallback
