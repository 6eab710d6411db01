"""
Configuration loader for the Budget Import Engine.

Loads settings from budget_engine_config.yaml and provides typed access
to all configuration sections.
"""
import os
from pathlib import Path
from typing import Any, Optional
from functools import lru_cache

import yaml


# Default config ships inside the package
DEFAULT_CONFIG_PATH = Path(__file__).parent / "budget_engine_config.yaml"

# Environment variable that overrides the default config location
CONFIG_ENV_VAR = "BUDGET_ENGINE_CONFIG"

SHEET_VALUE_POLICIES = ("recompute", "prefer_sheet")


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""
    pass


class BudgetEngineConfig:
    """
    Configuration manager for the Budget Import Engine.

    Loads YAML configuration and provides typed access to all sections.
    Use get_config() to obtain the singleton instance.
    """

    def __init__(self, config_path: Optional[Path] = None):
        env_path = os.environ.get(CONFIG_ENV_VAR)
        self._config_path = config_path or (Path(env_path) if env_path else DEFAULT_CONFIG_PATH)
        self._config: dict = {}
        self._load()

    def _load(self) -> None:
        """Load configuration from YAML file."""
        if not self._config_path.exists():
            raise ConfigurationError(f"Config file not found: {self._config_path}")

        try:
            with open(self._config_path, 'r') as f:
                self._config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in config file: {e}")

        if not isinstance(self._config, dict):
            raise ConfigurationError("Config file must contain a YAML mapping")

    def reload(self) -> None:
        """Reload configuration from disk."""
        self._load()
        # Clear the cached singleton to force reload on next get_config()
        get_config.cache_clear()

    @property
    def path(self) -> Path:
        """Path the configuration was loaded from."""
        return self._config_path

    @property
    def version(self) -> str:
        """Configuration file version."""
        return self._config.get("version", "unknown")

    # =========================================================================
    # Formulas
    # =========================================================================

    @property
    def formulas(self) -> dict:
        """Formula engine configuration."""
        return self._config.get("formulas", {})

    @property
    def labor_rate(self) -> str:
        """
        Per-hour labor rate as a decimal string.

        Raises:
            ConfigurationError: If the rate is missing or not a number
        """
        rate = self.formulas.get("labor_rate")
        if rate is None or isinstance(rate, bool):
            raise ConfigurationError("formulas.labor_rate must be set to a number")
        try:
            float(str(rate))
        except ValueError:
            raise ConfigurationError(f"formulas.labor_rate is not a number: {rate!r}")
        return str(rate)

    @property
    def sheet_value_policy(self) -> str:
        """Whether derived columns trust the sheet ('prefer_sheet') or are recomputed."""
        policy = self.formulas.get("sheet_values", "recompute")
        if policy not in SHEET_VALUE_POLICIES:
            raise ConfigurationError(
                f"formulas.sheet_values must be one of {SHEET_VALUE_POLICIES}, got {policy!r}"
            )
        return policy

    # =========================================================================
    # Cost Codes
    # =========================================================================

    @property
    def cost_codes(self) -> list[dict]:
        """All cost code definitions ({name, aliases})."""
        return self._config.get("cost_codes", [])

    def get_cost_code_names(self) -> list[str]:
        """Get list of canonical cost code names, in configured order."""
        return [c.get("name") for c in self.cost_codes if c.get("name")]

    def get_cost_code_aliases(self, name: str) -> list[str]:
        """Get list of aliases for a canonical cost code."""
        for code in self.cost_codes:
            if code.get("name") == name:
                return code.get("aliases", [])
        return []

    # =========================================================================
    # Layouts
    # =========================================================================

    @property
    def layouts(self) -> dict:
        """Raw column layout definitions keyed by layout name."""
        return self._config.get("layouts", {})

    @property
    def default_layout_name(self) -> str:
        """Name of the layout used when none is requested."""
        return self._config.get("default_layout", "template")

    def get_layout_definition(self, name: str) -> Optional[dict]:
        """Get the raw definition for a layout, or None if not configured."""
        return self.layouts.get(name)

    # =========================================================================
    # Validation
    # =========================================================================

    @property
    def validation(self) -> dict:
        """Validator configuration."""
        return self._config.get("validation", {})

    @property
    def validation_layout_name(self) -> str:
        """Layout whose column indices the validator reads."""
        return self.validation.get("layout", self.default_layout_name)

    @property
    def numeric_columns(self) -> list[str]:
        """Fields the validator checks for number format."""
        return self.validation.get("numeric_columns", [])

    # =========================================================================
    # Import
    # =========================================================================

    @property
    def import_settings(self) -> dict:
        """Import pipeline configuration."""
        return self._config.get("import", {})

    @property
    def preferred_sheets(self) -> list[str]:
        """Sheet names tried in order before falling back to the first sheet."""
        return self.import_settings.get("preferred_sheets", ["full location", "Line Items"])

    @property
    def cost_code_suggestion_threshold(self) -> int:
        """Minimum fuzzy score for a cost code suggestion."""
        return self.import_settings.get("cost_code_suggestion_threshold", 80)

    @property
    def layout_detection_threshold(self) -> int:
        """Minimum average header score for automatic layout detection."""
        return self.import_settings.get("layout_detection_threshold", 70)

    # =========================================================================
    # Raw Access
    # =========================================================================

    def get(self, key: str, default: Any = None) -> Any:
        """Get a top-level config value by key."""
        return self._config.get(key, default)

    def __getitem__(self, key: str) -> Any:
        """Dictionary-style access to config."""
        return self._config[key]

    def __contains__(self, key: str) -> bool:
        """Check if key exists in config."""
        return key in self._config


@lru_cache(maxsize=1)
def get_config(config_path: Optional[str] = None) -> BudgetEngineConfig:
    """
    Get the singleton configuration instance.

    Args:
        config_path: Optional path to config file. Only used on first call.

    Returns:
        BudgetEngineConfig singleton instance
    """
    path = Path(config_path) if config_path else None
    return BudgetEngineConfig(path)


def reload_config() -> BudgetEngineConfig:
    """Reload configuration from disk and return new instance."""
    get_config.cache_clear()
    return get_config()
