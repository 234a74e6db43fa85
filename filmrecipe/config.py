"""
Configuration for filmrecipe

The packaged config.yaml mirrors get_default_config(); a user file only
needs the keys it changes.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"

ENV_REFERENCE = re.compile(r'\$\{([^}]+)\}')


def _resolve_env(node: Any) -> Any:
    """Substitute ${NAME} references from the environment, recursively."""
    if isinstance(node, dict):
        return {key: _resolve_env(value) for key, value in node.items()}
    if isinstance(node, list):
        return [_resolve_env(item) for item in node]
    if not isinstance(node, str):
        return node

    # Unset variables are left as written
    text = ENV_REFERENCE.sub(lambda m: os.environ.get(m.group(1), m.group(0)), node)
    if text == node:
        return node
    try:
        scalar = yaml.safe_load(text)
    except yaml.YAMLError:
        return text
    return scalar if isinstance(scalar, (bool, int, float)) else text


def _layer(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    result = dict(defaults)
    for key, value in overrides.items():
        current = result.get(key)
        result[key] = _layer(current, value) \
            if isinstance(current, dict) and isinstance(value, dict) else value
    return result


def get_default_config() -> Dict[str, Any]:
    """Fresh copy of the built-in settings."""
    return {
        'export': {
            'group_name': 'Film Recipe Wizard',
            'cluster': 'film-recipe-wizard',
            'max_masks': 3,
            'strength': {
                'preset': 1.0,
                'profile': 0.5,
                'mask': 0.35,
                'style': 1.0,
                'lut': 1.0,
            },
        },
        'lut': {
            'size': 33,
            'dialect': 'cube',
            'workers': None,  # sequential
        },
        'logging': {
            'level': 'INFO',
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        },
    }


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Read settings from a YAML file layered over the defaults.

    Args:
        config_path: YAML file; the packaged config.yaml when None

    Returns:
        Settings dictionary.  Defaults are returned when the file is
        missing, unreadable or not a mapping.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    if not path.is_file():
        logger.warning(f"No config at {path}, using built-in settings")
        return get_default_config()

    try:
        with path.open('r', encoding='utf-8') as handle:
            loaded = yaml.safe_load(handle)
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Could not read config {path}: {e}")
        return get_default_config()

    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        logger.error(f"Config {path} must hold a mapping, got {type(loaded).__name__}")
        return get_default_config()

    logger.debug(f"Using config {path}")
    return _layer(get_default_config(), _resolve_env(loaded))


def save_config(config: Dict[str, Any], config_path: Path) -> bool:
    """Write settings as YAML, creating parent directories.  False on failure."""
    path = Path(config_path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(config, default_flow_style=False, sort_keys=False),
                        encoding='utf-8')
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Could not write config {path}: {e}")
        return False
    logger.info(f"Wrote config {path}")
    return True


def get_config_value(config: Dict[str, Any], key_path: str, default: Any = None) -> Any:
    """Look up a dotted key such as ``export.strength.mask``."""
    node: Any = config
    for part in key_path.split('.'):
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return node


def update_config_value(config: Dict[str, Any], key_path: str, value: Any) -> None:
    """Set a dotted key in place, creating intermediate sections."""
    *sections, leaf = key_path.split('.')
    node = config
    for part in sections:
        child = node.get(part)
        if not isinstance(child, dict):
            child = node[part] = {}
        node = child
    node[leaf] = value
