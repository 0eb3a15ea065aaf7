"""Configuration management for Quote Calc.

Configuration is split into two files:

1. settings.json - Machine-specific settings
   - pricing: path to pricing.yaml (optional, if not colocated)

2. pricing.yaml - Rate overrides
   - Any subset of PricingConfig, e.g. bookkeeping.base_fee: 175
   - Deep-merged onto the standard rates, then validated

Config directory resolution:
1. QUOTE_CALC_CONFIG_PATH environment variable (if set)
2. ~/.config/quote-calc/ (XDG_CONFIG_HOME fallback)

Pricing file resolution:
1. Explicit path argument
2. settings.json "pricing" key (if set via CLI)
3. pricing.yaml in the config directory

A missing default pricing.yaml is not an error: the standard rates apply.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from .schemas import PricingConfig

logger = logging.getLogger(__name__)

APP_NAME = "quote-calc"
SETTINGS_FILENAME = "settings.json"
PRICING_FILENAME = "pricing.yaml"


class ConfigNotFoundError(Exception):
    """Raised when an explicitly configured pricing file does not exist."""
    pass


class PricingConfigError(Exception):
    """Raised when a pricing file cannot be parsed or fails validation."""
    pass


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Resolution order:
    1. QUOTE_CALC_CONFIG_PATH environment variable
    2. ~/.config/quote-calc/ (XDG_CONFIG_HOME)

    Returns:
        Path to the configuration directory
    """
    env_path = os.environ.get("QUOTE_CALC_CONFIG_PATH")
    if env_path:
        return Path(env_path)

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
    return Path(xdg_config_home) / APP_NAME


# =============================================================================
# settings.json
# =============================================================================


def get_settings_path() -> Path:
    """Get the path to settings.json (may not exist yet)."""
    return get_config_dir() / SETTINGS_FILENAME


def load_settings() -> dict:
    """Load machine-specific settings.

    Returns:
        Settings dictionary (empty dict if file doesn't exist)
    """
    settings_file = get_settings_path()

    if not settings_file.exists():
        return {}

    with open(settings_file, "r") as f:
        return json.load(f)


def save_settings(settings: dict) -> Path:
    """Save machine-specific settings to settings.json.

    Returns:
        Path to the saved settings file
    """
    config_dir = get_config_dir()
    config_dir.mkdir(parents=True, exist_ok=True)

    settings_file = config_dir / SETTINGS_FILENAME

    with open(settings_file, "w") as f:
        json.dump(settings, f, indent=2)

    return settings_file


def get_setting(key: str, default: Any = None) -> Any:
    """Get a setting value from settings.json."""
    return load_settings().get(key, default)


def set_setting(key: str, value: Any) -> Path:
    """Set a setting value in settings.json. A value of None removes the key."""
    settings = load_settings()
    if value is None:
        settings.pop(key, None)
    else:
        settings[key] = value
    return save_settings(settings)


# =============================================================================
# pricing.yaml
# =============================================================================


def get_pricing_path(require_exists: bool = False) -> Path:
    """Get the path to the pricing file.

    Args:
        require_exists: If True, raises ConfigNotFoundError when the file is missing

    Returns:
        Path to pricing.yaml (may not exist)

    Raises:
        ConfigNotFoundError: If require_exists=True and the file is missing,
            or settings.json points at a file that does not exist
    """
    custom = get_setting("pricing")
    if custom:
        pricing_path = Path(custom)
        if not pricing_path.exists():
            raise ConfigNotFoundError(
                f"Pricing file not found at configured path: {pricing_path}\n\n"
                f"Update with: quote-calc settings pricing-path /path/to/pricing.yaml\n"
                f"Or clear it: quote-calc settings pricing-path --clear"
            )
        return pricing_path

    pricing_path = get_config_dir() / PRICING_FILENAME
    if require_exists and not pricing_path.exists():
        raise ConfigNotFoundError(
            f"No pricing file at {pricing_path}\n\n"
            f"Create one with: quote-calc config init"
        )
    return pricing_path


def deep_merge(base: dict, overrides: dict) -> dict:
    """Return base with overrides merged in, recursing into nested dicts."""
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_pricing_overrides(path: Optional[Union[str, Path]] = None) -> dict:
    """Load the raw overrides from a pricing file.

    Args:
        path: Pricing file; defaults to get_pricing_path()

    Returns:
        Overrides dict (empty if the default file doesn't exist)

    Raises:
        ConfigNotFoundError: If an explicit path does not exist
        PricingConfigError: If the file is not a YAML mapping
    """
    if path is not None:
        pricing_path = Path(path)
        if not pricing_path.exists():
            raise ConfigNotFoundError(f"Pricing file not found: {pricing_path}")
    else:
        pricing_path = get_pricing_path()
        if not pricing_path.exists():
            return {}

    try:
        with open(pricing_path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise PricingConfigError(f"Invalid YAML in {pricing_path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise PricingConfigError(
            f"Pricing file must be a mapping, got {type(data).__name__}: {pricing_path}"
        )
    return data


def build_pricing_config(overrides: dict, source: str = "overrides") -> PricingConfig:
    """Validate overrides merged onto the standard rates.

    Raises:
        PricingConfigError: If the merged config fails validation
    """
    merged = deep_merge(PricingConfig().model_dump(), overrides)
    try:
        return PricingConfig.model_validate(merged)
    except ValidationError as e:
        raise PricingConfigError(f"Invalid pricing config ({source}):\n{e}")


def load_pricing_config(path: Optional[Union[str, Path]] = None) -> PricingConfig:
    """Load the effective PricingConfig.

    Args:
        path: Pricing file; defaults to get_pricing_path()

    Returns:
        Standard rates with the file's overrides applied

    Raises:
        ConfigNotFoundError: If an explicit or configured path does not exist
        PricingConfigError: If the file is invalid
    """
    overrides = load_pricing_overrides(path)
    source = str(path) if path is not None else str(get_pricing_path())
    if overrides:
        logger.debug(f"Loaded pricing overrides from {source}: {sorted(overrides)}")
    return build_pricing_config(overrides, source)


def save_pricing_config(
    pricing: Union[PricingConfig, dict], path: Optional[Union[str, Path]] = None
) -> Path:
    """Write a pricing file.

    Args:
        pricing: Full PricingConfig, or an overrides dict
        path: Optional custom path (uses get_pricing_path() if not specified)

    Returns:
        Path to the saved pricing file
    """
    if path is None:
        path = get_pricing_path()
    path = Path(path)

    data = pricing.model_dump() if isinstance(pricing, PricingConfig) else pricing
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    return path


def init_pricing_config(force: bool = False) -> Path:
    """Write the standard rates to the pricing file as a starting point.

    Raises:
        FileExistsError: If the file exists and force is False
    """
    path = get_pricing_path()
    if path.exists() and not force:
        raise FileExistsError(f"Pricing file already exists: {path}")
    return save_pricing_config(PricingConfig(), path)


def _key_part(container: dict, part: str) -> Any:
    """Dict key for a dot-notation part; numeric parts match int keys."""
    if part not in container and part.lstrip("-").isdigit() and int(part) in container:
        return int(part)
    return part


def get_pricing_value(key: str, default: Any = None, path: Optional[Union[str, Path]] = None) -> Any:
    """Get an effective pricing value by dot-notation key.

    Args:
        key: Dot-notation key (e.g., "bookkeeping.base_fee", "cfo_advisory.bundle_rates.8")
        default: Default value if key not found

    Returns:
        Pricing value (a section returns a dict) or default
    """
    value: Any = load_pricing_config(path).model_dump()

    for part in key.split("."):
        if isinstance(value, dict):
            part_key = _key_part(value, part)
            if part_key in value:
                value = value[part_key]
                continue
        return default

    return value


def set_pricing_value(key: str, value: Any, path: Optional[Union[str, Path]] = None) -> Path:
    """Set a pricing override by dot-notation key.

    The file keeps only overrides; the result is validated before saving,
    so an unknown key or invalid value leaves the file untouched.

    Raises:
        PricingConfigError: If the resulting config is invalid
    """
    overrides = load_pricing_overrides(path)

    parts = key.split(".")
    current = overrides

    for part in parts[:-1]:
        part_key = _key_part(current, part)
        if not isinstance(current.get(part_key), dict):
            current[part_key] = {}
        current = current[part_key]

    current[_key_part(current, parts[-1])] = value

    build_pricing_config(overrides, f"setting {key}")
    return save_pricing_config(overrides, path)
