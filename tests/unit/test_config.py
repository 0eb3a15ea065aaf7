"""Tests for configuration and pricing file handling.

Uses isolated directories via tmp_path and QUOTE_CALC_CONFIG_PATH
to avoid touching real configuration.
"""

import json

import pytest
import yaml

from quotecalc.sdk import config as sdk_config
from quotecalc.sdk import (
    ConfigNotFoundError,
    PricingConfig,
    PricingConfigError,
    get_pricing_value,
    init_pricing_config,
    load_pricing_config,
    load_settings,
    set_pricing_value,
    set_setting,
)


# === FIXTURES ===


@pytest.fixture
def isolated_env(tmp_path, monkeypatch):
    """Point the SDK at an empty config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    monkeypatch.setenv("QUOTE_CALC_CONFIG_PATH", str(config_dir))

    return {"config_dir": config_dir, "tmp_path": tmp_path}


def write_pricing(path, data):
    path.write_text(yaml.dump(data))
    return path


# === TESTS ===


class TestConfigDir:
    """Tests for config directory resolution."""

    def test_env_var_wins(self, isolated_env):
        assert sdk_config.get_config_dir() == isolated_env["config_dir"]

    def test_xdg_fallback(self, tmp_path, monkeypatch):
        monkeypatch.delenv("QUOTE_CALC_CONFIG_PATH", raising=False)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

        assert sdk_config.get_config_dir() == tmp_path / "quote-calc"


class TestSettings:
    """Tests for settings.json."""

    def test_missing_settings_is_empty(self, isolated_env):
        assert load_settings() == {}

    def test_set_and_clear(self, isolated_env):
        set_setting("pricing", "/tmp/rates.yaml")
        assert load_settings() == {"pricing": "/tmp/rates.yaml"}

        set_setting("pricing", None)
        assert load_settings() == {}
        assert json.loads((isolated_env["config_dir"] / "settings.json").read_text()) == {}


class TestLoadPricingConfig:
    """Tests for load_pricing_config()."""

    def test_no_file_uses_standard_rates(self, isolated_env):
        assert load_pricing_config() == PricingConfig()

    def test_partial_override_merges(self, isolated_env):
        """Overridden values apply; everything else keeps the standard rate."""
        write_pricing(isolated_env["config_dir"] / "pricing.yaml", {
            "bookkeeping": {"base_fee": 200},
            "industry_multipliers": {"Brewery": 1.4},
        })

        pricing = load_pricing_config()

        assert pricing.bookkeeping.base_fee == 200
        assert pricing.bookkeeping.setup_multiplier == 0.25
        assert pricing.bookkeeping.revenue_multipliers["25K-75K"] == 2.2
        assert pricing.industry_multipliers["Brewery"] == 1.4
        assert pricing.industry_multipliers["Software/SaaS"] == 1.0

    def test_empty_file_is_standard_rates(self, isolated_env):
        (isolated_env["config_dir"] / "pricing.yaml").write_text("")

        assert load_pricing_config() == PricingConfig()

    def test_unknown_key_rejected(self, isolated_env):
        """A typo is an error, not a silent default."""
        write_pricing(isolated_env["config_dir"] / "pricing.yaml", {"bookkeeping": {"base_fees": 200}})

        with pytest.raises(PricingConfigError):
            load_pricing_config()

    def test_non_mapping_rejected(self, isolated_env):
        write_pricing(isolated_env["config_dir"] / "pricing.yaml", [1, 2, 3])

        with pytest.raises(PricingConfigError):
            load_pricing_config()

    def test_bad_yaml_rejected(self, isolated_env):
        (isolated_env["config_dir"] / "pricing.yaml").write_text("bookkeeping: [unclosed")

        with pytest.raises(PricingConfigError):
            load_pricing_config()

    def test_explicit_missing_path(self, isolated_env):
        with pytest.raises(ConfigNotFoundError):
            load_pricing_config(isolated_env["tmp_path"] / "nope.yaml")

    def test_explicit_path(self, isolated_env):
        path = write_pricing(isolated_env["tmp_path"] / "rates.yaml", {"qbo": {"monthly_fee": 75}})

        assert load_pricing_config(path).qbo.monthly_fee == 75

    def test_settings_pricing_path(self, isolated_env):
        """settings.json 'pricing' points at a file outside the config dir."""
        path = write_pricing(isolated_env["tmp_path"] / "shared.yaml", {"payroll": {"base_fee": 120}})
        set_setting("pricing", str(path))

        assert load_pricing_config().payroll.base_fee == 120

    def test_settings_pricing_path_missing(self, isolated_env):
        set_setting("pricing", str(isolated_env["tmp_path"] / "gone.yaml"))

        with pytest.raises(ConfigNotFoundError):
            load_pricing_config()


class TestPricingValues:
    """Tests for dot-notation get/set."""

    def test_get_standard_value(self, isolated_env):
        assert get_pricing_value("bookkeeping.base_fee") == 150
        assert get_pricing_value("cfo_advisory.bundle_rates.8") == 295
        assert get_pricing_value("bookkeeping.nope", default="x") == "x"

    def test_set_writes_only_override(self, isolated_env):
        path = set_pricing_value("bookkeeping.base_fee", 175)

        assert yaml.safe_load(path.read_text()) == {"bookkeeping": {"base_fee": 175}}
        assert get_pricing_value("bookkeeping.base_fee") == 175
        assert get_pricing_value("taas.base_fee") == 150

    def test_set_bundle_rate(self, isolated_env):
        set_pricing_value("cfo_advisory.bundle_rates.8", 300)

        assert load_pricing_config().cfo_advisory.bundle_rates[8] == 300

    def test_set_service_switch(self, isolated_env):
        set_pricing_value("services.qbo", False)

        assert load_pricing_config().services.qbo is False

    def test_invalid_value_leaves_file_untouched(self, isolated_env):
        pricing_file = isolated_env["config_dir"] / "pricing.yaml"

        with pytest.raises(PricingConfigError):
            set_pricing_value("bookkeeping.base_fee", "lots")
        with pytest.raises(PricingConfigError):
            set_pricing_value("bookkeeping.base_fees", 200)

        assert not pricing_file.exists()


class TestInitPricingConfig:
    """Tests for init_pricing_config()."""

    def test_writes_standard_rates(self, isolated_env):
        path = init_pricing_config()

        assert path == isolated_env["config_dir"] / "pricing.yaml"
        assert load_pricing_config() == PricingConfig()

    def test_refuses_overwrite_without_force(self, isolated_env):
        init_pricing_config()

        with pytest.raises(FileExistsError):
            init_pricing_config()

        init_pricing_config(force=True)
