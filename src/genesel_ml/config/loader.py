"""
Configuration loading and merging logic.

Supports:
1. Loading from YAML files (with `_base` inheritance)
2. CLI argument overrides (dot-notation: e.g., aggregation.top_n=50)
3. Validation via pydantic
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from genesel_ml.config.defaults import DEFAULT_AGGREGATION_CONFIG, DEFAULT_OUTPUT_CONFIG
from genesel_ml.config.schema import RunConfig


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *overlay* into *base* (overlay wins on leaf conflicts).

    Returns a new dict; neither input is mutated.
    """
    merged = base.copy()
    for key, value in overlay.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_yaml(file_path: str | Path) -> dict[str, Any]:
    """Load configuration from YAML file.

    Supports a ``_base`` key: if present, the referenced YAML file is loaded
    first and the current file's values are deep-merged on top. The ``_base``
    path is resolved relative to the directory containing *file_path*.
    """
    file_path = Path(file_path).resolve()
    if not file_path.exists():
        raise FileNotFoundError(f"Config file not found: {file_path}")

    with open(file_path) as f:
        config_dict = yaml.safe_load(f) or {}

    base_ref = config_dict.pop("_base", None)
    if base_ref is not None:
        base_path = (file_path.parent / base_ref).resolve()
        base_dict = load_yaml(base_path)
        config_dict = _deep_merge(base_dict, config_dict)

    return config_dict


def apply_overrides(config_dict: dict[str, Any], overrides: list[str]) -> dict[str, Any]:
    """
    Apply CLI overrides to config dictionary.

    Supports dot-notation for nested keys:
        aggregation.top_n=50 -> config_dict['aggregation']['top_n'] = 50

    Args:
        config_dict: Base configuration dictionary
        overrides: List of "key=value" or "nested.key=value" strings

    Returns:
        Updated config dictionary
    """
    # Keys that should always be strings (not parsed as int/float/bool)
    STRING_KEYS = {
        "scoring",
        "snapshot_name",
    }

    for override in overrides:
        if "=" not in override:
            raise ValueError(f"Invalid override format: {override}. Expected 'key=value'")

        key_path, value_str = override.split("=", 1)
        keys = key_path.split(".")

        target = config_dict
        for key in keys[:-1]:
            if key not in target:
                target[key] = {}
            target = target[key]

        final_key = keys[-1]
        target[final_key] = _parse_value(value_str, force_string=final_key in STRING_KEYS)

    return config_dict


def _parse_value(value_str: str, force_string: bool = False) -> Any:
    """
    Parse string value to appropriate Python type.

    Args:
        value_str: String to parse
        force_string: If True, always return a string (skip int/float parsing)
    """
    if force_string:
        return value_str

    if value_str.lower() in ("true", "yes"):
        return True
    if value_str.lower() in ("false", "no"):
        return False

    if value_str.lower() in ("none", "null"):
        return None

    try:
        return int(value_str)
    except ValueError:
        pass

    try:
        return float(value_str)
    except ValueError:
        pass

    return value_str


def load_run_config(
    config_file: str | Path | None = None,
    overrides: list[str] | None = None,
) -> RunConfig:
    """
    Load run configuration from file and CLI overrides.

    Args:
        config_file: Path to YAML config file (optional)
        overrides: List of CLI overrides in "key=value" format (optional)

    Returns:
        Validated RunConfig instance
    """
    config_dict: dict[str, Any] = {
        "aggregation": DEFAULT_AGGREGATION_CONFIG.copy(),
        "output": DEFAULT_OUTPUT_CONFIG.copy(),
    }

    if config_file is not None:
        config_file_path = Path(config_file)
        file_config = load_yaml(config_file_path)

        # Relative output dirs are resolved against the config file location
        outdir = file_config.get("output", {}).get("outdir")
        if outdir is not None and not Path(outdir).is_absolute():
            file_config["output"]["outdir"] = str(config_file_path.resolve().parent / outdir)

        config_dict = _deep_merge(config_dict, file_config)

    if overrides:
        config_dict = apply_overrides(config_dict, overrides)

    try:
        return RunConfig(**config_dict)
    except ValidationError as e:
        raise ValueError(f"Invalid run configuration:\n{e}") from e


def save_config(config: RunConfig, output_path: str | Path):
    """Save configuration to YAML file."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    config_dict = config.model_dump(mode="json")

    with open(output_path, "w") as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)


def log_config_summary(config: RunConfig, logger: logging.Logger):
    """Log a human-readable configuration summary."""
    lines = ["=" * 80, "Configuration Summary", "=" * 80]

    def format_dict(d, indent=0):
        result = []
        for key, value in d.items():
            if isinstance(value, dict):
                result.append(f"{'  ' * indent}{key}:")
                result.extend(format_dict(value, indent + 1))
            else:
                result.append(f"{'  ' * indent}{key}: {value}")
        return result

    lines.extend(format_dict(config.model_dump(mode="json")))
    lines.append("=" * 80)

    for line in lines:
        logger.info(line)
