"""Configuration and logging setup.

Configuration is a nested dict, looked up as config['corpus']['terminator'].
A JSON file may override any subset of DEFAULT_CONFIG.
"""

import copy
import json
import logging
from typing import Any, Dict, Optional

DEFAULT_CONFIG: Dict[str, Dict[str, Any]] = {
    'corpus': {
        'terminator': 'BREAK!',       # sentinel line ending the corpus
        'end_of_phones': '//',        # token ending a record's phone list
        'grapheme_separator': '-',
        'lowercase': True,
        'show_progress': False,
    },
    'decoding': {
        'separator': '-',             # joins graphemes on input, phonemes on output
        'lowercase': True,
    },
    'evaluation': {
        'show_progress': False,
    },
    'interactive': {
        'quit_command': 'quit',
        'example': 'wh-a-t',
    },
    'logging': {
        'level': 'INFO',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    },
}


def _merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def get_config(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Get a fresh copy of the default configuration with overrides applied.

    Args:
        overrides: Nested dict of values replacing the defaults

    Returns:
        Configuration dict
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    if overrides:
        _merge(config, overrides)
    return config


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load a JSON configuration file on top of the defaults.

    Args:
        path: Path to a JSON file, or None for the defaults

    Returns:
        Configuration dict
    """
    if path is None:
        return get_config()
    with open(path, 'r') as f:
        overrides = json.load(f)
    return get_config(overrides)


def setup_logging(config: Optional[Dict[str, Any]] = None,
                  level: Optional[str] = None) -> None:
    """Setup logging."""
    config = config or DEFAULT_CONFIG
    logging.basicConfig(
        level=getattr(logging, (level or config['logging']['level']).upper()),
        format=config['logging']['format']
    )
