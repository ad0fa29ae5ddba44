# src/tasks/quality_scores/config.py
"""
Configuration loading for quality score runs.
YAML files are merged over built-in defaults with OmegaConf.
"""

import logging
from pathlib import Path
from typing import Optional

from omegaconf import DictConfig, OmegaConf

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "configs/quality_scores.yaml"

DEFAULTS = {
    "data": {
        "input_path": "data/example_quality_assessment.csv",
        "sheet_name": 0,
        "study_column": "Study",
        "section_label": "Section",
        "domain_label": "Domain",
        "weight_label": "Importance",
        "missing_values": ["", "NA", "N/A", "n/a", "na"],
    },
    "output": {
        "base_dir": "results",
        "timestamped": True,
    },
    "plots": {
        "enabled": True,
        "dpi": 300,
        "colors": {},
    },
}


def load_config(config_path: Optional[str] = None) -> DictConfig:
    """
    Load configuration, falling back to defaults for anything not set.

    Args:
        config_path: YAML file; DEFAULT_CONFIG_PATH is used if it exists and none is given

    Returns:
        Merged DictConfig
    """
    config = OmegaConf.create(DEFAULTS)

    if config_path is None:
        if not Path(DEFAULT_CONFIG_PATH).exists():
            logger.debug("No configuration file found, using defaults")
            return config
        config_path = DEFAULT_CONFIG_PATH

    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    user_config = OmegaConf.load(path)
    for section in list(user_config):
        if section not in DEFAULTS:
            logger.warning(f"Unknown config section ignored: {section}")
            del user_config[section]

    merged = OmegaConf.merge(config, user_config)
    logger.info(f"Loaded configuration from {path}")
    return merged
