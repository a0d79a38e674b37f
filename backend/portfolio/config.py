"""
Application configuration module for the portfolio backend.

Tunables (gallery timings, preload margins, image host endpoint, seeding
delay) are loaded from a YAML file and merged over built-in defaults.
Settings are cached after the first load.
"""

import copy
import yaml
import logging
from pathlib import Path
from django.conf import settings
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

# Config lives next to manage.py in containers, at the repository root otherwise
if (settings.BASE_DIR / 'config').exists():
    CONFIG_DIR = settings.BASE_DIR / 'config'
else:
    CONFIG_DIR = settings.BASE_DIR.parent / 'config'
SETTINGS_FILE = CONFIG_DIR / 'settings.yaml'

DEFAULT_SETTINGS = {
    'image_host': {
        'api_base': 'https://api.cloudflare.com/client/v4',
        'delivery_base': 'https://imagedelivery.net',
        'timeout': 30,
    },
    'scroll': {
        'duration': 1.2,
        'wheel_debounce': 0.05,
        'wheel_threshold': 50,
        'swipe_threshold': 30,
        'desktop_breakpoint': 768,
    },
    'transition': {
        'open_duration': 0.35,
        'close_duration': 0.3,
        'easing': [0.4, 0.0, 0.2, 1.0],
        'mobile_reveal_delay': 0.8,
    },
    'preload': {
        'root_margin': 400,
        'indicator_threshold': 0.5,
        'timeout': 15,
    },
    'seeding': {
        'delay': 0.2,
        'source': 'https://picsum.photos',
    },
    'logging': {
        'level': 'INFO',
    },
}

# Cached settings - loaded once on first access
_settings_cache: Optional[Dict[str, Any]] = None


def _load_yaml_file(file_path: Path) -> Optional[Dict[str, Any]]:
    """Load and parse a YAML file safely."""
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f)
    except FileNotFoundError:
        logger.warning(f"File not found: {file_path}")
        return None
    except yaml.YAMLError as e:
        logger.error(f"Error parsing YAML file {file_path}: {e}")
        return None


def deep_merge(default: Dict, loaded: Dict) -> Dict:
    result = copy.deepcopy(default)
    for key, value in loaded.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_settings_from_file() -> Dict[str, Any]:
    """Load settings from YAML file with fallback to defaults."""
    settings_data = _load_yaml_file(SETTINGS_FILE)

    if not settings_data:
        logger.warning(f"Settings file not found or empty at {SETTINGS_FILE}, using defaults")
        return copy.deepcopy(DEFAULT_SETTINGS)

    merged_settings = deep_merge(DEFAULT_SETTINGS, settings_data)
    logger.info(f"Settings loaded successfully from {SETTINGS_FILE}")
    return merged_settings


def get_settings() -> Dict[str, Any]:
    """
    Get application settings. Settings are cached after first load.

    Returns:
        Dict containing all application settings
    """
    global _settings_cache

    if _settings_cache is None:
        _settings_cache = _load_settings_from_file()

    return _settings_cache


def reload_settings() -> Dict[str, Any]:
    """Force reload settings from file. Useful for testing or configuration changes."""
    global _settings_cache
    _settings_cache = None
    return get_settings()


def get_section(name: str) -> Dict[str, Any]:
    return get_settings().get(name, DEFAULT_SETTINGS.get(name, {}))


def get_image_host_config() -> Dict[str, Any]:
    """Image host endpoint plus the account credentials from the environment."""
    config = dict(get_section('image_host'))
    config['account_id'] = settings.CLOUDFLARE_ACCOUNT_ID
    config['api_token'] = settings.CLOUDFLARE_API_TOKEN
    return config


def get_scroll_config() -> Dict[str, Any]:
    return get_section('scroll')


def get_transition_config() -> Dict[str, Any]:
    return get_section('transition')


def get_preload_config() -> Dict[str, Any]:
    return get_section('preload')


def get_seeding_config() -> Dict[str, Any]:
    return get_section('seeding')
