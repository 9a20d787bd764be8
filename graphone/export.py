"""Export and reload trained models.

An exported model directory contains:
- `model.json`: emission and transition graphs plus unigram counts
- `config.json`: configuration the model was built with
"""

import json
import logging
import os
from typing import Any, Dict, Optional

from .config import get_config
from .corpus import G2PModel
from .errors import InvalidInputError, InvalidStateError, MalformedModelError
from .graph import WeightedDirectedGraph

logger = logging.getLogger(__name__)

MODEL_FILE = "model.json"
CONFIG_FILE = "config.json"
FORMAT_VERSION = 1
MODEL_SECTIONS = ("emission", "transitions", "grapheme_counts", "phoneme_counts")


def export_model(model: G2PModel,
                 output_dir: str,
                 config: Optional[Dict[str, Any]] = None) -> Dict[str, str]:
    """Write a trained model and its configuration to a directory.

    Args:
        model: Trained model
        output_dir: Output directory, created if missing
        config: Configuration dict

    Returns:
        Dictionary mapping component name to written path
    """
    os.makedirs(output_dir, exist_ok=True)

    model_path = os.path.join(output_dir, MODEL_FILE)
    model_data = {
        'format_version': FORMAT_VERSION,
        'emission': model.emission.to_dict(),
        'transitions': model.transitions.to_dict(),
        'grapheme_counts': dict(model.grapheme_counts),
        'phoneme_counts': dict(model.phoneme_counts),
    }
    with open(model_path, 'w') as f:
        json.dump(model_data, f, indent=2)

    config_path = os.path.join(output_dir, CONFIG_FILE)
    with open(config_path, 'w') as f:
        json.dump(config or get_config(), f, indent=2)

    logger.info(f"Model exported to {output_dir}")
    return {'model': model_path, 'config': config_path}


def load_model(model_dir: str) -> G2PModel:
    """Load a model written by export_model().

    Args:
        model_dir: Directory containing model.json

    Returns:
        Trained G2PModel

    Raises:
        MalformedModelError: If the file is not a readable model export
    """
    model_path = os.path.join(model_dir, MODEL_FILE)
    try:
        with open(model_path, 'r') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise MalformedModelError(f"Invalid model file {model_path}: {e}") from e

    if not isinstance(data, dict) or data.get('format_version') != FORMAT_VERSION:
        version = data.get('format_version') if isinstance(data, dict) else None
        raise MalformedModelError(
            f"Unsupported model format {version!r} in {model_path}"
        )

    invalid = [s for s in MODEL_SECTIONS if not isinstance(data.get(s), dict)]
    if invalid:
        raise MalformedModelError(
            f"Sections {invalid} of {model_path} are missing or not mappings"
        )

    try:
        model = G2PModel(
            WeightedDirectedGraph.from_dict(data['emission']),
            WeightedDirectedGraph.from_dict(data['transitions']),
            data['grapheme_counts'],
            data['phoneme_counts'],
        )
    except (KeyError, TypeError, AttributeError, ValueError,
            InvalidInputError, InvalidStateError) as e:
        raise MalformedModelError(f"Invalid model file {model_path}: {e}") from e

    logger.info(f"Model loaded from {model_dir}: {model.summary()}")
    return model
