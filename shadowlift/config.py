"""
Configuration management for ShadowLift

The bundled config.yaml holds the engine constants, presets and output
options. A user file only needs the keys it overrides; everything else comes
from DEFAULTS.
"""

import copy
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"

_ENV_PATTERN = re.compile(r'\$\{([^}]+)\}')

_NEUTRAL = {'exposure': 0, 'contrast': 0, 'highlights': 0, 'shadows': 0, 'whites': 0, 'blacks': 0}

DEFAULTS: Dict[str, Any] = {
    'engine': {
        'algorithm': 'classic',
        'adaptive_tuning': True,
        'workers': 1,
        'filter': {'radius_scale': 0.015, 'min_radius': 4, 'eps': 0.001},
        'reconstruction': {
            'luminance_epsilon': 0.0001,
            'max_lift_ratio': 64.0,
            'detail_damping': 0.35,
            'detail_floor': 0.35,
            'toe_lift_shadows': 0.0012,
            'toe_lift_blacks': 0.0024,
        },
    },
    'presets': {
        'default': {**_NEUTRAL, 'shadows': 70},
        'reset': dict(_NEUTRAL),
    },
    'preview': {'max_width': 1500},
    'output': {
        'quality': 95,
        'prefix': 'edited_',
        'archive_name': 'adjusted_photos_{date}.zip',
    },
    'history': {'max_entries': 100},
    'logging': {
        'level': 'INFO',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    },
}

PathLike = Union[str, Path]


def _expand_env_vars(value: Any) -> Any:
    """Substitute ${NAME} in strings; unset names are left as written"""
    if isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env_vars(v) for v in value]
    if isinstance(value, str):
        return _ENV_PATTERN.sub(lambda m: os.environ.get(m.group(1), m.group(0)), value)
    return value


def _merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def get_default_config() -> Dict[str, Any]:
    """Fresh copy of the built-in defaults"""
    return copy.deepcopy(DEFAULTS)


def load_config(config_path: Optional[PathLike] = None) -> Dict[str, Any]:
    """
    Load a YAML config merged over the defaults

    A missing or unreadable file is logged and the defaults are returned.

    Args:
        config_path: YAML file; the bundled config.yaml when None

    Returns:
        Configuration dictionary
    """
    path = DEFAULT_CONFIG_PATH if config_path is None else Path(config_path)

    if not path.exists():
        logger.warning(f"Config file not found: {path}, using built-in defaults")
        return get_default_config()

    try:
        with path.open('r') as f:
            overrides = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Could not read config {path}: {e}")
        return get_default_config()

    if not isinstance(overrides, dict):
        logger.error(f"Config {path} must be a mapping, got {type(overrides).__name__}")
        return get_default_config()

    logger.debug(f"Loaded configuration from {path}")
    return _merge(get_default_config(), _expand_env_vars(overrides))


def save_config(config: Dict[str, Any], config_path: PathLike) -> bool:
    """Write config as YAML; returns False (and logs) on failure"""
    try:
        with open(config_path, 'w') as f:
            yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Could not write config {config_path}: {e}")
        return False
    logger.info(f"Saved configuration to {config_path}")
    return True


def get_config_value(config: Dict[str, Any], key_path: str, default: Any = None) -> Any:
    """
    Look up a dotted key such as 'engine.filter.eps'

    Returns default when any part of the path is missing.
    """
    node = config
    for key in key_path.split('.'):
        if not isinstance(node, dict) or key not in node:
            return default
        node = node[key]
    return node


def update_config_value(config: Dict[str, Any], key_path: str, value: Any) -> None:
    """Set a dotted key, creating intermediate sections"""
    *parents, leaf = key_path.split('.')
    node = config
    for key in parents:
        node = node.setdefault(key, {})
    node[leaf] = value


def get_preset(config: Dict[str, Any], name: str):
    """
    ToneSettings for a named preset

    Raises:
        KeyError: if the preset is not defined
    """
    from .processing.tone.models import ToneSettings

    presets = get_config_value(config, 'presets', {}) or {}
    if name not in presets:
        raise KeyError(f"Unknown preset '{name}'. Available: {', '.join(sorted(presets))}")
    return ToneSettings.from_dict(presets[name])
