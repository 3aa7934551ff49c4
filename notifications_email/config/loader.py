"""Configuration loader for the email notification processor."""

from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import ValidationError

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .models import AppConfig, EmailProcessorConfig
from .validators import check_for_warnings, emit_warnings

# Key path of the processor section inside the host configuration tree
PROCESSOR_CONFIG_PATH = ("notifications", "processors", "email")

_VALIDATION_SUGGESTIONS = [
    "Review config.example.yaml for correct format",
    "Check that transport.transport is one of: smtp, ses, sendmail",
    "Verify field types match the expected schema",
]


def extract_processor_section(config_tree: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Return the ``notifications.processors.email`` section of a config tree.

    Args:
        config_tree: Parsed host configuration

    Returns:
        The processor section as a plain dictionary

    Raises:
        ConfigurationError: If the section is missing or not a mapping
    """
    section: Any = config_tree
    for key in PROCESSOR_CONFIG_PATH:
        if not isinstance(section, Mapping) or key not in section:
            raise ConfigurationError(
                f"Missing configuration section: {'.'.join(PROCESSOR_CONFIG_PATH)}",
                suggestions=[
                    "Add a notifications.processors.email section to your config file",
                ],
            )
        section = section[key]

    if not isinstance(section, Mapping):
        raise ConfigurationError(
            f"Configuration section {'.'.join(PROCESSOR_CONFIG_PATH)} must be a mapping"
        )
    return dict(section)


def load_processor_config(config_tree: Mapping[str, Any]) -> EmailProcessorConfig:
    """
    Validate the email processor section of an already-parsed config tree.

    Args:
        config_tree: Parsed host configuration containing
            ``notifications.processors.email``

    Returns:
        Validated EmailProcessorConfig

    Raises:
        ConfigurationError: If the section is missing or invalid
    """
    section = extract_processor_section(config_tree)

    warnings = check_for_warnings(section)
    if warnings:
        emit_warnings(warnings)

    try:
        return EmailProcessorConfig.model_validate(section)
    except ValidationError as e:
        raise ConfigurationError.from_validation_error(
            "Email processor configuration validation failed",
            e,
            suggestions=_VALIDATION_SUGGESTIONS,
        ) from e


def load_config(config_path: Optional[Path] = None) -> tuple[AppConfig, EnvironmentConfig]:
    """
    Load and validate configuration from YAML file and environment variables.

    Implements fallback logic for config file location:
    1. Use provided config_path if given
    2. Try config.yaml in current directory
    3. Try ./config/config.yaml
    4. Fail with helpful error message

    Environment values are merged before validation: CATALOG_BASE_URL
    overrides catalog.base_url, and SMTP_USERNAME/SMTP_PASSWORD fill in
    SMTP credentials the file leaves unset.

    Args:
        config_path: Optional path to configuration file

    Returns:
        Tuple of (AppConfig, EnvironmentConfig) with validated configuration

    Raises:
        ConfigurationError: If configuration is invalid or file not found
    """
    config_file = _find_config_file(config_path)
    config_dict = _read_yaml(config_file)

    env_config = load_environment_config()

    section = extract_processor_section(config_dict)
    warnings = check_for_warnings(section)
    if warnings:
        emit_warnings(warnings)

    raw_config = {
        "email": _apply_smtp_credentials(section, env_config),
        "catalog": dict(config_dict.get("catalog") or {}),
        "logging": dict(config_dict.get("logging") or {}),
    }
    if env_config.catalog_base_url:
        raw_config["catalog"]["base_url"] = env_config.catalog_base_url
        raw_config["catalog"].pop("baseUrl", None)

    try:
        app_config = AppConfig.model_validate(raw_config)
    except ValidationError as e:
        raise ConfigurationError.from_validation_error(
            "Configuration validation failed",
            e,
            suggestions=_VALIDATION_SUGGESTIONS,
        ) from e

    return app_config, env_config


def _apply_smtp_credentials(
    section: Dict[str, Any], env_config: EnvironmentConfig
) -> Dict[str, Any]:
    """Fill SMTP credentials from the environment when the file has none."""
    transport = section.get("transport")
    if (
        not env_config.has_smtp_credentials
        or not isinstance(transport, Mapping)
        or transport.get("transport") != "smtp"
        or transport.get("username")
        or transport.get("password")
    ):
        return section

    return {
        **section,
        "transport": {
            **transport,
            "username": env_config.smtp_username,
            "password": env_config.smtp_password,
        },
    }


def _read_yaml(config_file: Path) -> Dict[str, Any]:
    """Read a YAML file into a dictionary, translating failures."""
    try:
        with open(config_file, "r") as f:
            config_dict = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(
            f"Configuration file not found: {config_file}",
            suggestions=[
                "Copy config.example.yaml to config.yaml",
                f"Ensure {config_file} exists and is readable",
            ],
        )
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse YAML configuration: {e}",
            suggestions=[
                "Check YAML syntax in your config file",
                "Ensure proper indentation (use spaces, not tabs)",
            ],
        )
    except OSError as e:
        raise ConfigurationError(
            f"Failed to read configuration file: {e}",
            suggestions=[
                f"Ensure {config_file} is readable",
                "Check file permissions",
            ],
        )

    if not config_dict:
        raise ConfigurationError(
            "Configuration file is empty",
            suggestions=[
                "Copy config.example.yaml to config.yaml",
                "Add a notifications.processors.email section to your config file",
            ],
        )

    if not isinstance(config_dict, dict):
        raise ConfigurationError(
            "Configuration file must contain a mapping at the top level",
        )

    return config_dict


def _find_config_file(config_path: Optional[Path] = None) -> Path:
    """
    Find configuration file using fallback logic.

    Args:
        config_path: Optional explicit path to config file

    Returns:
        Path to configuration file

    Raises:
        ConfigurationError: If no config file is found
    """
    if config_path:
        if not config_path.exists():
            raise ConfigurationError(
                f"Specified configuration file not found: {config_path}",
                suggestions=[
                    f"Ensure {config_path} exists",
                    "Copy config.example.yaml to config.yaml",
                ],
            )
        return config_path

    candidates = [
        Path("config.yaml"),
        Path("config") / "config.yaml",
    ]

    for candidate in candidates:
        if candidate.exists():
            return candidate

    raise ConfigurationError(
        "Configuration file not found",
        errors=[
            "Tried: config.yaml",
            "Tried: config/config.yaml",
        ],
        suggestions=[
            "Copy config.example.yaml to config.yaml",
            "Create a config.yaml file in the current directory",
        ],
    )


def validate_config_file(config_path: Path) -> bool:
    """
    Validate a configuration file without loading environment variables.

    Useful for testing or pre-deployment validation.

    Args:
        config_path: Path to configuration file

    Returns:
        True if valid, False otherwise (errors printed to stdout)
    """
    try:
        config_dict = _read_yaml(config_path)
        load_processor_config(config_dict)
        print(f"✓ Configuration file {config_path} is valid")
        return True

    except ConfigurationError as e:
        print(f"✗ Configuration validation failed:\n{e}")
        return False
