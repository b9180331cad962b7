"""
Configuration loading for advisory curation.

Configuration is a YAML file whose sections are merged over DEFAULT_CONFIG.
The trust tier and flagged ecosystems live here rather than in code so
deployments (and tests) can substitute their own.
"""
import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from advisories.exporter import EXPORT_FORMATS
from matching.trust import DEFAULT_TRUSTED_CPE_SOURCES, CpeTrustArbiter
from matching.validator import (
    DEFAULT_EXEMPT_PACKAGES,
    DEFAULT_FLAGGED_ECOSYSTEMS,
    DEFAULT_UNKNOWN_CONSTRAINTS,
    MatchValidator,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config.yaml"

DEFAULT_CONFIG: Dict[str, Any] = {
    "advisories": {
        "repo_dirs": [],
    },
    "index": {
        "max_workers": 4,
    },
    "export": {
        "default_format": "csv",
    },
    "database": {
        "path": "advisories.duckdb",
    },
    "matching": {
        "trusted_cpe_sources": list(DEFAULT_TRUSTED_CPE_SOURCES),
        "flagged_ecosystems": list(DEFAULT_FLAGGED_ECOSYSTEMS),
        "unknown_constraints": list(DEFAULT_UNKNOWN_CONSTRAINTS),
        "exempt_packages": [{"type": t, "name": n} for t, n in DEFAULT_EXEMPT_PACKAGES],
    },
}

_LIST_KEYS = {
    ("advisories", "repo_dirs"),
    ("matching", "trusted_cpe_sources"),
    ("matching", "flagged_ecosystems"),
    ("matching", "unknown_constraints"),
    ("matching", "exempt_packages"),
}


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration, falling back to defaults.

    Args:
        path: Explicit config path. When None, config.yaml is used if it
            exists and defaults otherwise.

    Returns:
        Merged and validated configuration dictionary

    Raises:
        FileNotFoundError: If an explicit path does not exist
        ValueError: If the configuration is invalid
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    config_path = Path(path or DEFAULT_CONFIG_PATH)
    if not config_path.exists():
        if path is not None:
            raise FileNotFoundError(f"Config file not found: {path}")
        logger.debug("No config file found, using defaults")
        return config

    with open(config_path) as f:
        loaded = yaml.safe_load(f) or {}

    if not isinstance(loaded, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")

    for section, values in loaded.items():
        if section not in config:
            raise ValueError(f"Unknown config section: {section}")
        if not isinstance(values, dict):
            raise ValueError(f"Config section {section} must be a mapping")
        config[section].update(values)

    validate_config(config)
    logger.info(f"Loaded config: {config_path}")
    return config


def validate_config(config: Dict[str, Any]) -> None:
    for section, key in _LIST_KEYS:
        if not isinstance(config[section].get(key), list):
            raise ValueError(f"Config key {section}.{key} must be a list")

    fmt = config["export"].get("default_format")
    if fmt not in EXPORT_FORMATS:
        raise ValueError(
            f"Invalid export.default_format {fmt!r}. Valid formats are: [{', '.join(EXPORT_FORMATS)}]"
        )

    workers = config["index"].get("max_workers")
    if workers is not None and (not isinstance(workers, int) or workers < 1):
        raise ValueError("Config key index.max_workers must be a positive integer")

    for entry in config["matching"]["exempt_packages"]:
        if not isinstance(entry, dict) or "type" not in entry or "name" not in entry:
            raise ValueError("matching.exempt_packages entries need 'type' and 'name'")


def build_validator(config: Dict[str, Any]) -> MatchValidator:
    """Construct a MatchValidator from the matching config section."""
    matching = config["matching"]
    return MatchValidator(
        arbiter=CpeTrustArbiter(matching["trusted_cpe_sources"]),
        flagged_ecosystems=matching["flagged_ecosystems"],
        unknown_constraints=matching["unknown_constraints"],
        exempt_packages=[(e["type"], e["name"]) for e in matching["exempt_packages"]],
    )
