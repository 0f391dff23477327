'''
Configuration management for the HP Trend Toolbox.

Settings are resolved in layers:
1. Defaults built into the dataclasses below
2. A JSON file in the user configuration directory
3. Environment variables named HPTREND_<SECTION>_<OPTION>
4. Runtime changes through set_config()

The filter defaults (smoothing parameter, discard count, diffuse prior
variance) are read from the ``filters`` section whenever a caller does not
pass them explicitly, so a site-wide change of, say, the default lambda for
monthly data needs no code change.
'''

import os
import json
import logging
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, get_type_hints

from .exceptions import ConfigurationError
from .types import ConfigDict, LogLevel

logger = logging.getLogger("hptrend.core.config")

CONFIG_ENV_PREFIX = "HPTREND_"
DEFAULT_CONFIG_FILENAME = "hptrend_config.json"
USER_CONFIG_DIR_ENV = "HPTREND_CONFIG_DIR"


class ConfigSection(Enum):
    """Enumeration of configuration sections."""
    FILTERS = "filters"
    NUMERICAL = "numerical"
    OUTPUT = "output"
    LOGGING = "logging"


@dataclass
class FiltersConfig:
    """
    Defaults for the HP filters.

    Attributes:
        default_lambda: Smoothing parameter used when none is given
            (1600 is the customary value for quarterly data)
        default_discard: Leading one-sided rows dropped when none is given
        diffuse_variance: Diagonal of the default initial state covariance
        min_observations: Minimum series length accepted by both filters
        use_steady_state: Freeze the Kalman gain once the covariance converges
        steady_state_tol: Relative change in the predicted covariance that
            counts as converged
    """
    default_lambda: float = 1600.0
    default_discard: int = 0
    diffuse_variance: float = 1e5
    min_observations: int = 4
    use_steady_state: bool = True
    steady_state_tol: float = 1e-12


@dataclass
class NumericalConfig:
    """
    Numerical tolerances.

    Attributes:
        symmetry_tolerance: Tolerance used when checking user covariances
    """
    symmetry_tolerance: float = 1e-8


@dataclass
class OutputConfig:
    """
    Output formatting.

    Attributes:
        float_precision: Number of decimal places in summaries
        plot_figsize: Default figure size for result plots
    """
    float_precision: int = 4
    plot_figsize: Tuple[int, int] = (12, 8)


@dataclass
class LoggingConfig:
    """
    Logging settings applied to the ``hptrend`` logger.

    Attributes:
        log_level: Logging level
        log_file: Path to log file (None for no file logging)
        log_format: Format string for log messages
        log_date_format: Format string for log message timestamps
        console_logging: Whether to log to the console
        file_logging: Whether to log to log_file
    """
    log_level: LogLevel = "WARNING"
    log_file: Optional[Path] = None
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_date_format: str = "%Y-%m-%d %H:%M:%S"
    console_logging: bool = True
    file_logging: bool = False


@dataclass
class HPTrendConfig:
    """Complete configuration, one attribute per section."""
    filters: FiltersConfig = field(default_factory=FiltersConfig)
    numerical: NumericalConfig = field(default_factory=NumericalConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


_SECTION_TYPES = {
    "filters": FiltersConfig,
    "numerical": NumericalConfig,
    "output": OutputConfig,
    "logging": LoggingConfig,
}


class ConfigManager:
    """
    Holds the active configuration and applies the layered overrides.

    Attributes:
        _config: The current configuration object
        _initialized: Whether initialize() has run
        _config_file: Path to the user configuration file
        _modified_keys: Options changed at runtime, as "section.option"
    """

    def __init__(self):
        self._config = HPTrendConfig()
        self._initialized = False
        self._config_file: Optional[Path] = None
        self._modified_keys = set()

    def initialize(self) -> None:
        """
        Load the user file, apply environment overrides, configure logging
        and validate. Calling it again is a no-op.
        """
        if self._initialized:
            return

        self._config_file = self.get_user_config_dir() / DEFAULT_CONFIG_FILENAME
        self._load_user_config()
        self._apply_env_overrides()
        self._validate_config()
        self._setup_logging()

        self._initialized = True
        logger.debug("Configuration manager initialized")

    def _load_user_config(self) -> None:
        if not self._config_file or not self._config_file.exists():
            logger.debug("No user configuration file found")
            return

        try:
            with open(self._config_file, 'r') as f:
                user_config = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load user configuration: {e}")
            return

        self._update_from_dict(user_config)
        logger.debug(f"Loaded user configuration from {self._config_file}")

    def _apply_env_overrides(self) -> None:
        """Apply HPTREND_<SECTION>_<OPTION> environment variables."""
        for env_var, value in os.environ.items():
            if not env_var.startswith(CONFIG_ENV_PREFIX) or env_var == USER_CONFIG_DIR_ENV:
                continue

            key = env_var[len(CONFIG_ENV_PREFIX):]
            parts = key.lower().split('_', 1)
            if len(parts) != 2:
                continue

            section, option = parts
            section_obj = getattr(self._config, section, None)
            if section not in _SECTION_TYPES or not hasattr(section_obj, option):
                continue

            try:
                typed_value = self._coerce(getattr(section_obj, option), value)
            except (TypeError, ValueError) as e:
                logger.warning(f"Failed to apply environment override {env_var}: {e}")
                continue

            setattr(section_obj, option, typed_value)
            logger.debug(f"Applied environment override: {env_var}={value}")

    @staticmethod
    def _coerce(current_value: Any, value: Any) -> Any:
        """Convert value to the type of current_value."""
        if isinstance(current_value, bool):
            if isinstance(value, str):
                return value.lower() in ('true', 'yes', '1', 'y')
            return bool(value)
        if isinstance(current_value, int):
            return int(value)
        if isinstance(current_value, float):
            return float(value)
        if isinstance(current_value, tuple):
            parts = value.split(',') if isinstance(value, str) else list(value)
            if len(parts) != len(current_value):
                raise ValueError(f"expected {len(current_value)} values, got {len(parts)}")
            return tuple(int(p) for p in parts)
        if current_value is None or isinstance(current_value, Path):
            # Optional[Path] options
            return Path(value) if isinstance(value, str) else value
        return value

    def _setup_logging(self) -> None:
        """Configure the ``hptrend`` logger from the logging section."""
        package_logger = logging.getLogger("hptrend")

        for handler in package_logger.handlers[:]:
            package_logger.removeHandler(handler)

        package_logger.setLevel(getattr(logging, self._config.logging.log_level))

        formatter = logging.Formatter(
            fmt=self._config.logging.log_format,
            datefmt=self._config.logging.log_date_format
        )

        if self._config.logging.console_logging:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(formatter)
            package_logger.addHandler(console_handler)

        if self._config.logging.file_logging and self._config.logging.log_file:
            try:
                log_file = Path(self._config.logging.log_file)
                log_file.parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.FileHandler(log_file)
                file_handler.setFormatter(formatter)
                package_logger.addHandler(file_handler)
            except OSError as e:
                logger.warning(f"Failed to set up file logging: {e}")

    def _validate_config(self) -> None:
        """Replace invalid values with defaults, logging each replacement."""
        for section_name in _SECTION_TYPES:
            self._validate_section(getattr(self._config, section_name), section_name)

    def _validate_section(self, section: Any, section_name: str) -> None:
        hints = get_type_hints(type(section))
        defaults = type(section)()

        for attr_name in hints:
            value = getattr(section, attr_name)
            if not self._is_valid(attr_name, value):
                default = getattr(defaults, attr_name)
                logger.warning(
                    f"Invalid {section_name}.{attr_name}: {value!r}, using {default!r}"
                )
                setattr(section, attr_name, default)

    @staticmethod
    def _is_valid(attr_name: str, value: Any) -> bool:
        if attr_name == "default_lambda":
            return isinstance(value, (int, float)) and value >= 0
        if attr_name == "default_discard":
            return isinstance(value, int) and not isinstance(value, bool) and value >= 0
        if attr_name in ("diffuse_variance", "steady_state_tol", "symmetry_tolerance"):
            return isinstance(value, (int, float)) and value > 0
        if attr_name == "min_observations":
            return isinstance(value, int) and value >= 4
        if attr_name == "float_precision":
            return isinstance(value, int) and 0 <= value <= 16
        if attr_name == "log_level":
            return value in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
        return True

    def _update_from_dict(self, config_dict: Dict[str, Any]) -> None:
        for section_name, section_dict in config_dict.items():
            if section_name not in _SECTION_TYPES:
                logger.warning(f"Unknown configuration section: {section_name}")
                continue

            section = getattr(self._config, section_name)
            for option_name, option_value in section_dict.items():
                if not hasattr(section, option_name):
                    logger.warning(f"Unknown configuration option: {section_name}.{option_name}")
                    continue
                try:
                    option_value = self._coerce(getattr(section, option_name), option_value)
                except (TypeError, ValueError) as e:
                    logger.warning(f"Failed to set {section_name}.{option_name}: {e}")
                    continue
                setattr(section, option_name, option_value)

    def save_user_config(self) -> Path:
        """
        Write the current configuration to the user configuration file.

        Returns:
            Path of the written file

        Raises:
            ConfigurationError: If the file cannot be written
        """
        config_file = self._config_file or self.get_user_config_dir() / DEFAULT_CONFIG_FILENAME
        try:
            config_file.parent.mkdir(parents=True, exist_ok=True)
            with open(config_file, 'w') as f:
                json.dump(self.to_dict(), f, indent=2)
        except OSError as e:
            raise ConfigurationError(
                "Failed to save user configuration",
                config_file=config_file,
                issue=str(e)
            ) from e

        logger.debug(f"Saved user configuration to {config_file}")
        return config_file

    def to_dict(self) -> ConfigDict:
        """Return the configuration as a JSON-serializable dictionary."""
        result = {}
        for section_name in _SECTION_TYPES:
            section = getattr(self._config, section_name)
            section_dict = {}
            for f in fields(section):
                value = getattr(section, f.name)
                if isinstance(value, Path):
                    value = str(value)
                elif isinstance(value, tuple):
                    value = list(value)
                section_dict[f.name] = value
            result[section_name] = section_dict
        return result

    def get(self, section: str, option: str, default: Any = None) -> Any:
        """Get a configuration value, or default if it does not exist."""
        if section not in _SECTION_TYPES:
            return default
        return getattr(getattr(self._config, section), option, default)

    def set(self, section: str, option: str, value: Any) -> None:
        """
        Set a configuration value, converting it to the option's type.

        Raises:
            ConfigurationError: If the section or option is unknown, or the
                value cannot be converted or is invalid
        """
        section_obj = self.get_section(section)

        if not hasattr(section_obj, option):
            raise ConfigurationError(
                f"Unknown configuration option: {section}.{option}",
                setting=f"{section}.{option}",
                value=value,
                issue="Option not found"
            )

        try:
            typed_value = self._coerce(getattr(section_obj, option), value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Failed to set configuration option: {section}.{option}",
                setting=f"{section}.{option}",
                value=value,
                issue=str(e)
            ) from e

        if not self._is_valid(option, typed_value):
            raise ConfigurationError(
                f"Invalid value for configuration option: {section}.{option}",
                setting=f"{section}.{option}",
                value=value,
                issue="Value violates option constraint"
            )

        setattr(section_obj, option, typed_value)
        self._modified_keys.add(f"{section}.{option}")
        logger.debug(f"Set configuration option: {section}.{option}={value}")

        if section == ConfigSection.LOGGING.value:
            self._setup_logging()

    def reset(self, section: Optional[str] = None, option: Optional[str] = None) -> None:
        """
        Reset configuration to defaults.

        Args:
            section: Section to reset, or None to reset everything
            option: Option to reset, or None to reset the whole section

        Raises:
            ConfigurationError: If the section or option is unknown
        """
        if section is None:
            self._config = HPTrendConfig()
            self._modified_keys.clear()
            logger.debug("Reset all configuration to defaults")
            return

        section_obj = self.get_section(section)
        defaults = _SECTION_TYPES[section]()

        if option is None:
            setattr(self._config, section, defaults)
            self._modified_keys = {k for k in self._modified_keys
                                   if not k.startswith(f"{section}.")}
            logger.debug(f"Reset configuration section {section} to defaults")
            return

        if not hasattr(section_obj, option):
            raise ConfigurationError(
                f"Unknown configuration option: {section}.{option}",
                setting=f"{section}.{option}",
                issue="Option not found"
            )

        setattr(section_obj, option, getattr(defaults, option))
        self._modified_keys.discard(f"{section}.{option}")
        logger.debug(f"Reset configuration option {section}.{option} to default")

    def get_section(self, section: str) -> Any:
        """
        Get a configuration section object.

        Raises:
            ConfigurationError: If the section is unknown
        """
        if section not in _SECTION_TYPES:
            raise ConfigurationError(
                f"Unknown configuration section: {section}",
                setting=section,
                issue="Section not found"
            )
        return getattr(self._config, section)

    def get_sections(self) -> List[str]:
        return list(_SECTION_TYPES)

    def get_modified_options(self) -> Dict[str, Any]:
        """Return the options changed at runtime with their current values."""
        modified = {}
        for key in sorted(self._modified_keys):
            section, option = key.split(".", 1)
            modified[key] = self.get(section, option)
        return modified

    def get_user_config_dir(self) -> Path:
        env_config_dir = os.environ.get(USER_CONFIG_DIR_ENV)
        if env_config_dir:
            return Path(env_config_dir)
        return Path.home() / ".hptrend"

    def get_config_file(self) -> Optional[Path]:
        return self._config_file


# Module-level singleton
_config_manager = ConfigManager()


def initialize_config() -> None:
    """Initialize the configuration system."""
    _config_manager.initialize()


def get_config_manager() -> ConfigManager:
    """Get the initialized configuration manager instance."""
    if not _config_manager._initialized:
        initialize_config()
    return _config_manager


def get_config(section: str, option: str, default: Any = None) -> Any:
    """
    Get a configuration value.

    Args:
        section: The configuration section
        option: The configuration option
        default: Default value if the option is not found

    Returns:
        The configuration value, or the default if not found
    """
    return get_config_manager().get(section, option, default)


def set_config(section: str, option: str, value: Any) -> None:
    """
    Set a configuration value.

    Raises:
        ConfigurationError: If the section or option is not found
    """
    get_config_manager().set(section, option, value)


def reset_config(section: Optional[str] = None, option: Optional[str] = None) -> None:
    """Reset configuration to default values."""
    get_config_manager().reset(section, option)


def save_config() -> Path:
    """Save the current configuration to the user configuration file."""
    return get_config_manager().save_user_config()


def get_filters_config() -> FiltersConfig:
    """Get the filters configuration section."""
    return get_config_manager().get_section("filters")


def get_numerical_config() -> NumericalConfig:
    """Get the numerical configuration section."""
    return get_config_manager().get_section("numerical")


def get_output_config() -> OutputConfig:
    """Get the output configuration section."""
    return get_config_manager().get_section("output")
