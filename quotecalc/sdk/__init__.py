"""Quote Calc SDK - Core functionality for service-fee quotes."""

from .config import (
    get_config_dir,
    get_settings_path,
    load_settings,
    save_settings,
    get_setting,
    set_setting,
    # Pricing file
    get_pricing_path,
    load_pricing_overrides,
    load_pricing_config,
    save_pricing_config,
    init_pricing_config,
    get_pricing_value,
    set_pricing_value,
    ConfigNotFoundError,
    PricingConfigError,
)

from .schemas import (
    SERVICE_KEYS,
    PricingConfig,
    PricingInput,
    FeeResult,
    CombinedFees,
    FeeBreakdown,
    LineItem,
)

from .pricing import (
    normalize_input,
    compute_quote,
    build_line_items,
    round_up_to_step,
    SERVICE_CALCULATORS,
)

__all__ = [
    # Config
    "get_config_dir",
    "get_settings_path",
    "load_settings",
    "save_settings",
    "get_setting",
    "set_setting",
    "get_pricing_path",
    "load_pricing_overrides",
    "load_pricing_config",
    "save_pricing_config",
    "init_pricing_config",
    "get_pricing_value",
    "set_pricing_value",
    "ConfigNotFoundError",
    "PricingConfigError",
    # Schemas
    "SERVICE_KEYS",
    "PricingConfig",
    "PricingInput",
    "FeeResult",
    "CombinedFees",
    "FeeBreakdown",
    "LineItem",
    # Pricing
    "normalize_input",
    "compute_quote",
    "build_line_items",
    "round_up_to_step",
    "SERVICE_CALCULATORS",
]
