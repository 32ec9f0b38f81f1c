"""Configuration loader for declarative flow definitions.

Flow definitions are loaded from:
- Files (JSON, YAML)
- Dictionaries

String values of the form ``${VAR}``, ``${VAR:-default}`` and
``${VAR:?message}`` are resolved from the environment before validation.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Union

import yaml
from pydantic import ValidationError

from dataknobs_flow.config.schema import FlowConfig, validate_config
from dataknobs_flow.exceptions import FlowConfigurationError

logger = logging.getLogger(__name__)

# Fields holding activity or condition identifiers
_IDENTIFIER_KEYS = frozenset({"id", "start", "to", "when", "otherwise"})


class FlowConfigLoader:
    """Load and validate flow definitions from various sources.

    Args:
        env_prefix: Prefix tried when a referenced environment variable is
            not set under its plain name.
    """

    def __init__(self, env_prefix: str = "FLOW_"):
        self._env_prefix = env_prefix

    def load_from_file(
        self,
        file_path: Union[str, Path],
        resolve_env: bool = True,
    ) -> FlowConfig:
        """Load a flow definition from a file.

        Args:
            file_path: Path to a JSON or YAML file.
            resolve_env: Whether to resolve environment variables.

        Returns:
            Validated FlowConfig instance.

        Raises:
            FlowConfigurationError: If the file is missing, has an
                unsupported format, cannot be parsed or fails validation.
        """
        file_path = Path(file_path)

        if not file_path.exists():
            raise FlowConfigurationError("Configuration file not found", source=str(file_path))

        raw_config = self._load_file(file_path)
        if not isinstance(raw_config, dict):
            raise FlowConfigurationError(
                "Configuration must be a mapping at the top level", source=str(file_path)
            )
        logger.debug("Loaded flow configuration from %s", file_path)

        return self._finalize_config(raw_config, resolve_env, str(file_path))

    def load_from_dict(
        self,
        config_dict: Dict[str, Any],
        resolve_env: bool = True,
    ) -> FlowConfig:
        """Load a flow definition from a dictionary.

        Args:
            config_dict: Configuration dictionary.
            resolve_env: Whether to resolve environment variables.

        Returns:
            Validated FlowConfig instance.

        Raises:
            FlowConfigurationError: If the configuration fails validation.
        """
        return self._finalize_config(dict(config_dict), resolve_env, None)

    def _load_file(self, file_path: Path) -> Any:
        suffix = file_path.suffix.lower()
        if suffix not in (".json", ".yaml", ".yml"):
            raise FlowConfigurationError(
                f"Unsupported file format: {suffix}", source=str(file_path)
            )

        try:
            with open(file_path, encoding="utf-8") as f:
                if suffix == ".json":
                    return json.load(f)
                return yaml.safe_load(f)
        except (json.JSONDecodeError, yaml.YAMLError, UnicodeDecodeError) as e:
            raise FlowConfigurationError(
                f"Cannot parse configuration: {e}", source=str(file_path)
            ) from e
        except OSError as e:
            raise FlowConfigurationError(
                f"Cannot read configuration: {e.strerror or e}", source=str(file_path)
            ) from e

    def _finalize_config(
        self, config: Dict[str, Any], resolve_env: bool, source: str | None
    ) -> FlowConfig:
        if resolve_env:
            config = self._resolve_environment_vars(config)
        try:
            return validate_config(config)
        except ValidationError as e:
            raise FlowConfigurationError(
                f"Invalid flow configuration: {e}",
                source=source,
                details={"errors": e.errors(include_url=False)},
            ) from e

    def _resolve_environment_vars(self, config: Any, key: str | None = None) -> Any:
        """Resolve environment variables in configuration.

        Supports:
        - ${VAR_NAME} - Required variable
        - ${VAR_NAME:-default} - Variable with default value
        - ${VAR_NAME:?error message} - Required with custom error

        Values substituted into identifier fields are read like plain YAML
        scalars, so ``start: "${FIRST:-1}"`` gives the integer 1.
        """
        if isinstance(config, str):
            if config.startswith("${") and config.endswith("}"):
                value = self._substitute(config[2:-1])
                if key in _IDENTIFIER_KEYS:
                    return _as_identifier(value)
                return value
            return config

        elif isinstance(config, dict):
            return {
                name: self._resolve_environment_vars(value, name) for name, value in config.items()
            }

        elif isinstance(config, list):
            return [self._resolve_environment_vars(item) for item in config]

        return config

    def _substitute(self, var_expr: str) -> str:
        if ":-" in var_expr:
            var_name, default_value = var_expr.split(":-", 1)
            return self._lookup(var_name, default_value)

        if ":?" in var_expr:
            var_name, error_msg = var_expr.split(":?", 1)
            value = self._lookup(var_name)
            if value is None:
                raise FlowConfigurationError(
                    f"Required environment variable {var_name}: {error_msg}"
                )
            return value

        value = self._lookup(var_expr)
        if value is None:
            raise FlowConfigurationError(f"Environment variable not found: {var_expr}")
        return value

    def _lookup(self, var_name: str, default: str | None = None) -> str | None:
        if var_name in os.environ:
            return os.environ[var_name]
        prefixed_var = f"{self._env_prefix}{var_name}"
        if prefixed_var in os.environ:
            return os.environ[prefixed_var]
        return default


def _as_identifier(value: str) -> Any:
    """Read a substituted identifier the way YAML reads a plain scalar."""
    try:
        parsed = yaml.safe_load(value)
    except yaml.YAMLError:
        return value
    if isinstance(parsed, int) and not isinstance(parsed, bool):
        return parsed
    return value
