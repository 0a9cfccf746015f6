"""
Application configuration settings for Formtagger UI and services
"""
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

# Project directories
# Support bundled mode via environment variable override
PROJECT_ROOT = Path(os.environ.get('FORMTAGGER_ROOT', Path(__file__).parent.parent))
DATA_DIR = PROJECT_ROOT / "data"
EXPORTS_DIR = DATA_DIR / "exports"

# Drawing settings
MIN_BOX_SIZE = 10  # Pixels per axis; smaller boxes are discarded by the UI

# Export settings
DEFAULT_FORM_TYPE = ""
DEFAULT_PAGE_NUMBER = 1
EXPORT_FILENAME_PREFIX = "annotation"

# Logging
LOG_LEVEL = os.getenv('FORMTAGGER_LOG_LEVEL', 'INFO').upper()

# Optional YAML settings file overriding the defaults above
SETTINGS_PATH = os.getenv('FORMTAGGER_CONFIG')

DEFAULT_SETTINGS: Dict[str, Any] = {
    "min_box_size": MIN_BOX_SIZE,
    "default_form_type": DEFAULT_FORM_TYPE,
    "default_page_number": DEFAULT_PAGE_NUMBER,
    "exports_dir": str(EXPORTS_DIR),
    "log_level": LOG_LEVEL,
}


def load_config(config_path: Path) -> Dict[str, Any]:
    """
    Load settings from a YAML file.

    Args:
        config_path: Path to the configuration file

    Returns:
        Configuration dictionary
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r") as f:
        config = yaml.safe_load(f)

    return config or {}


def save_config(config: Dict[str, Any], output_path: Path) -> None:
    """Save settings to a YAML file."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w") as f:
        yaml.dump(config, f, default_flow_style=False)


def get_settings(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Get effective settings

    Args:
        config_path: YAML file to merge over the defaults
            (default: $FORMTAGGER_CONFIG, if set)

    Returns:
        Dict with every key of DEFAULT_SETTINGS
    """
    settings = dict(DEFAULT_SETTINGS)
    config_path = config_path or SETTINGS_PATH
    if config_path:
        overrides = load_config(Path(config_path))
        settings.update({k: v for k, v in overrides.items() if k in DEFAULT_SETTINGS})
    return settings
