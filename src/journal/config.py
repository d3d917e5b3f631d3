"""Configuration management for the journal CLI.

This module provides configuration loading, validation, and management
for the journal CLI, including the database location, default exit fees
and market data credentials.
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = "~/.wheel_journal/journal.db"


class ConfigurationError(Exception):
    """Exception raised for configuration errors."""

    pass


class JournalConfig:
    """Configuration for the journal CLI.

    Manages configuration from files, environment variables, and defaults.

    Attributes:
        db_path: SQLite database path
        default_exit_fee_per_contract: Exit fee suggested per contract on close
        finnhub_api_key: Finnhub key for quote refresh (optional)
        request_timeout: Market data request timeout in seconds
        verbose: Enable verbose logging
        json_output: Output in JSON format
    """

    def __init__(
        self,
        db_path: str = DEFAULT_DB_PATH,
        default_exit_fee_per_contract: float = 0.65,
        finnhub_api_key: str = "",
        request_timeout: int = 10,
        verbose: bool = False,
        json_output: bool = False,
    ):
        """Initialize configuration.

        Args:
            db_path: SQLite database path
            default_exit_fee_per_contract: Exit fee per contract
            finnhub_api_key: Finnhub API key
            request_timeout: Market data request timeout in seconds
            verbose: Enable verbose logging
            json_output: Output in JSON format

        Example:
            >>> config = JournalConfig(default_exit_fee_per_contract=0.50)
        """
        self.db_path = db_path
        self.default_exit_fee_per_contract = default_exit_fee_per_contract
        self.finnhub_api_key = finnhub_api_key
        self.request_timeout = request_timeout
        self.verbose = verbose
        self.json_output = json_output

        self._validate()

    def _validate(self):
        """Validate configuration values.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if not self.db_path:
            raise ConfigurationError("db_path must not be empty")

        if self.default_exit_fee_per_contract < 0:
            raise ConfigurationError("default_exit_fee_per_contract cannot be negative")

        if self.request_timeout <= 0:
            raise ConfigurationError("request_timeout must be positive")

    @classmethod
    def get_default_config_path(cls) -> Path:
        """Get default configuration file path.

        Returns:
            Path to default config file (~/.wheel_journal/config.yaml)
        """
        return Path.home() / ".wheel_journal" / "config.yaml"

    @classmethod
    def load_from_file(cls, path: Optional[Path] = None) -> "JournalConfig":
        """Load configuration from YAML file.

        If the file doesn't exist, returns default configuration. Merges
        file configuration with environment variable overrides.

        Args:
            path: Optional path to config file (default: ~/.wheel_journal/config.yaml)

        Returns:
            Configuration instance

        Raises:
            ConfigurationError: If configuration file is invalid
        """
        config_path = path or cls.get_default_config_path()

        config_dict: dict[str, Any] = {}

        if config_path.exists():
            try:
                with open(config_path) as f:
                    file_config = yaml.safe_load(f)
                    if file_config:
                        config_dict = file_config
                logger.debug(f"Loaded configuration from {config_path}")
            except yaml.YAMLError as e:
                raise ConfigurationError(
                    f"Invalid YAML in configuration file: {e}"
                ) from e
            except OSError as e:
                raise ConfigurationError(
                    f"Failed to load configuration file: {e}"
                ) from e
        else:
            logger.debug(f"Configuration file not found at {config_path}, using defaults")

        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration file must contain a mapping")

        return cls.merge_with_defaults(config_dict)

    @classmethod
    def merge_with_defaults(cls, config_dict: dict[str, Any]) -> "JournalConfig":
        """Merge configuration dictionary with defaults and environment variables.

        Precedence order (highest to lowest):
        1. Environment variables
        2. Config file values
        3. Default values

        Args:
            config_dict: Configuration dictionary from file

        Returns:
            Configuration instance

        Raises:
            ConfigurationError: If configuration is invalid

        Example:
            >>> config = JournalConfig.merge_with_defaults({
            ...     "storage": {"db_path": "/tmp/journal.db"}
            ... })
        """
        storage_config = config_dict.get("storage", {}) or {}
        trading_config = config_dict.get("trading", {}) or {}
        market_config = config_dict.get("market_data", {}) or {}
        cli_config = config_dict.get("cli", {}) or {}

        try:
            db_path = os.getenv(
                "JOURNAL_DB_PATH",
                storage_config.get("db_path", DEFAULT_DB_PATH),
            )
            exit_fee = float(
                os.getenv(
                    "JOURNAL_EXIT_FEE",
                    trading_config.get("exit_fee_per_contract", 0.65),
                )
            )
            finnhub_api_key = os.getenv(
                "FINNHUB_API_KEY",
                market_config.get("finnhub_api_key", ""),
            )
            request_timeout = int(
                os.getenv(
                    "JOURNAL_REQUEST_TIMEOUT",
                    market_config.get("timeout", 10),
                )
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

        verbose = os.getenv("JOURNAL_VERBOSE") is not None or cli_config.get("verbose", False)
        json_output = os.getenv("JOURNAL_JSON_OUTPUT") is not None or cli_config.get(
            "json_output", False
        )

        return cls(
            db_path=db_path,
            default_exit_fee_per_contract=exit_fee,
            finnhub_api_key=finnhub_api_key or "",
            request_timeout=request_timeout,
            verbose=bool(verbose),
            json_output=bool(json_output),
        )

    def save_to_file(self, path: Optional[Path] = None):
        """Save configuration to YAML file.

        Args:
            path: Optional path to save to (default: ~/.wheel_journal/config.yaml)

        Raises:
            ConfigurationError: If save fails
        """
        config_path = path or self.get_default_config_path()
        config_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(config_path, "w") as f:
                yaml.dump(self.to_dict(), f, default_flow_style=False)
            logger.info(f"Configuration saved to {config_path}")
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to the nested file layout."""
        return {
            "storage": {"db_path": self.db_path},
            "trading": {"exit_fee_per_contract": self.default_exit_fee_per_contract},
            "market_data": {
                "finnhub_api_key": self.finnhub_api_key,
                "timeout": self.request_timeout,
            },
            "cli": {
                "verbose": self.verbose,
                "json_output": self.json_output,
            },
        }

    def __repr__(self) -> str:
        return (
            f"JournalConfig("
            f"db_path={self.db_path!r}, "
            f"default_exit_fee_per_contract={self.default_exit_fee_per_contract}, "
            f"finnhub_api_key={'***' if self.finnhub_api_key else ''!r}, "
            f"request_timeout={self.request_timeout}, "
            f"verbose={self.verbose}, "
            f"json_output={self.json_output}"
            ")"
        )


def load_config(config_path: Optional[Path] = None) -> JournalConfig:
    """Load configuration from file or defaults."""
    return JournalConfig.load_from_file(config_path)
