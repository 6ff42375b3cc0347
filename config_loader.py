"""Configuration loader with YAML support and environment variable substitution."""

import copy
import os
import re
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlparse

import yaml


class ConfigurationError(ValueError):
    """Raised when required settings are missing or invalid."""
    pass


# Environment variables recognised as direct overrides, mapped to config paths
ENV_OVERRIDES = {
    'DB_NAME': 'source.database',
    'COLLECTION': 'source.collection',
    'BASE_URL': 'source.base_url',
    'TARGET_BASE_DIR': 'export.output_directory',
    'POSTS_DIR': 'export.posts_directory',
    'IMG_DIR': 'export.images_directory',
    'AUTHOR_NAME': 'export.author',
    'HTML_OUTPUT': 'export.html_output',
}

BOOLEAN_PATHS = {'export.html_output', 'advanced.verify_ssl', 'advanced.progress_bars'}


class ConfigLoader:
    """Handles loading and validation of configuration files."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')

    @classmethod
    def load(cls, config_path: str, required: bool = True) -> Dict[str, Any]:
        """
        Load configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to YAML configuration file
            required: Whether a missing file is an error; if False an empty
                configuration is returned instead

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If a required config file doesn't exist
            ConfigurationError: If the file does not contain a mapping
            yaml.YAMLError: If YAML parsing fails
        """
        if not os.path.exists(config_path):
            if required:
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return {}

        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f)

        if config_data is None:
            return {}

        if not isinstance(config_data, dict):
            raise ConfigurationError("Configuration file must contain a dictionary")

        return cls.substitute_env_vars(config_data)

    @classmethod
    def apply_env_overrides(cls, config: Dict[str, Any], environ: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """
        Overlay the well-known environment variables onto a configuration.

        Empty variables are ignored, so an unset POSTS_DIR keeps the file value.

        Args:
            config: Base configuration dictionary
            environ: Environment mapping (defaults to os.environ)

        Returns:
            New configuration dictionary with overrides applied
        """
        environ = os.environ if environ is None else environ
        merged = copy.deepcopy(config)

        for var_name, path in ENV_OVERRIDES.items():
            value = environ.get(var_name)
            if value is None or value == '':
                continue
            if path in BOOLEAN_PATHS:
                value = parse_bool(value)
            set_nested(merged, path, value)

        return merged

    @classmethod
    def merge_with_args(cls, config: Dict[str, Any], args) -> Dict[str, Any]:
        """
        Merge configuration with CLI arguments.
        CLI arguments take precedence over config file and environment values.

        Args:
            config: Base configuration dictionary
            args: CLI arguments with attributes matching config keys

        Returns:
            Merged configuration dictionary
        """
        merged = copy.deepcopy(config)

        if getattr(args, 'database', None):
            set_nested(merged, 'source.database', args.database)

        if getattr(args, 'collection', None):
            set_nested(merged, 'source.collection', args.collection)

        if getattr(args, 'base_url', None):
            set_nested(merged, 'source.base_url', args.base_url)

        if getattr(args, 'output_dir', None):
            set_nested(merged, 'export.output_directory', args.output_dir)

        if getattr(args, 'author', None):
            set_nested(merged, 'export.author', args.author)

        if getattr(args, 'html_output', None) is not None:
            set_nested(merged, 'export.html_output', args.html_output)

        if getattr(args, 'log_file', None):
            set_nested(merged, 'logging.file', args.log_file)

        return merged

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> None:
        """
        Validate configuration for required fields and correct values.

        Args:
            config: Configuration dictionary to validate

        Raises:
            ConfigurationError: If validation fails
        """
        cls._validate_required_field(config, 'source.database')
        cls._validate_required_field(config, 'source.base_url')
        cls._validate_required_field(config, 'export.output_directory')

        cls._validate_url(get_nested(config, 'source.base_url'), 'source.base_url')

        output_dir = get_nested(config, 'export.output_directory')
        if os.path.exists(output_dir) and not os.path.isdir(output_dir):
            raise ConfigurationError(f"export.output_directory '{output_dir}' is not a directory")

        for path in ('export.posts_directory', 'export.images_directory'):
            value = get_nested(config, path)
            if value is not None and os.path.isabs(str(value)):
                raise ConfigurationError(f"{path} must be relative to export.output_directory: {value}")

        for path in BOOLEAN_PATHS:
            value = get_nested(config, path)
            if value is not None and not isinstance(value, bool):
                raise ConfigurationError(f"{path} must be a boolean")

        timeout = get_nested(config, 'advanced.request_timeout', 30)
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ConfigurationError("advanced.request_timeout must be a positive number")

        max_retries = get_nested(config, 'advanced.max_retries', 3)
        if isinstance(max_retries, bool) or not isinstance(max_retries, int) or max_retries < 0:
            raise ConfigurationError("advanced.max_retries must be a non-negative integer")

    @classmethod
    def substitute_env_vars(cls, data: Any, environ: Optional[Mapping[str, str]] = None) -> Any:
        """
        Replace ``${VAR}`` references in every string of a parsed configuration.

        Unknown variables are left in place so validation can name them.
        """
        environ = os.environ if environ is None else environ

        if isinstance(data, dict):
            return {key: cls.substitute_env_vars(value, environ) for key, value in data.items()}
        if isinstance(data, list):
            return [cls.substitute_env_vars(item, environ) for item in data]
        if isinstance(data, str):
            return cls.ENV_VAR_PATTERN.sub(lambda m: environ.get(m.group(1), m.group(0)), data)
        return data

    @staticmethod
    def _validate_required_field(config: dict, field: str) -> None:
        value = get_nested(config, field)
        if value is None or value == '':
            raise ConfigurationError(f"Missing required configuration: {field}")

        unresolved = ConfigLoader.ENV_VAR_PATTERN.findall(value) if isinstance(value, str) else []
        if unresolved:
            raise ConfigurationError(
                f"{field} refers to unset environment variable(s) {', '.join(unresolved)}; "
                f"set them or give the value directly"
            )

    @staticmethod
    def _validate_url(url: str, field_name: str) -> None:
        """Validate URL format."""
        parsed = urlparse(url)
        if not parsed.scheme or parsed.scheme not in ['http', 'https']:
            raise ConfigurationError(f"{field_name} must use http or https scheme: {url}")
        if not parsed.netloc:
            raise ConfigurationError(f"{field_name} missing hostname: {url}")


def get_nested(config: dict, path: str, default: Any = None) -> Any:
    """Safely retrieve nested configuration values using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "source.base_url")
        default: Default value if path doesn't exist

    Returns:
        Value at the nested path or default
    """
    keys = path.split('.')
    value = config

    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value


def set_nested(config: dict, path: str, value: Any) -> None:
    """Set a nested configuration value using dot notation, creating sections as needed."""
    keys = path.split('.')
    section = config

    for key in keys[:-1]:
        if not isinstance(section.get(key), dict):
            section[key] = {}
        section = section[key]

    section[keys[-1]] = value


def parse_bool(value: Any) -> bool:
    """Interpret common truthy strings ('true', '1', 'yes', 'on')."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


__all__ = ['ConfigLoader', 'ConfigurationError', 'get_nested', 'set_nested', 'parse_bool']
