"""Configuration management for unhooker.

Configuration Discovery Precedence (Highest to Lowest Priority):
===============================================================

1. **UNHOOKER_CONFIG_DIR Environment Variable** (Highest Priority)
   - Looks for: `${UNHOOKER_CONFIG_DIR}/unhooker.yaml`
   - Use case: Development, testing, per-deployment batches

2. **~/.unhooker Directory** (Fallback)
   - Looks for: `~/.unhooker/unhooker.yaml`
   - Use case: Default user installations

If no `unhooker.yaml` is found, default configuration is applied.
Scalar settings can also come from `UNHOOKER_*` environment variables.

Example unhooker.yaml:
---------------------
unhooker:
  default_priority: 10
  batches:
    - name: quiet-admin
      operation: set_values
      entries:
        show_admin_bar: false
    - name: legacy-init
      operation: remove_methods
      hook: plugins_loaded
      strict_matching: true
      entries:
        - hook: init
          class_name: LegacyPlugin
          method_name: register
          priority: 5
"""

import logging
import os
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from unhooker.exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "unhooker.yaml"

Operation = Literal["remove_callbacks", "set_values", "remove_methods"]

SCALAR_SETTINGS = ("debug", "default_priority", "hook_priority", "strict_matching", "case_sensitive")


class BatchConfig(BaseModel):
    """One batch of queued modifications."""

    name: str = ""
    """Label used in logs and CLI output"""

    operation: Operation
    """Which operation every entry in the batch performs"""

    entries: dict[str, Any] | list[Any] = Field(default_factory=list)
    """Simple map or list of structured entries"""

    hook: str | None = None
    """Defer the batch until this hook is dispatched"""

    hook_priority: int | None = None
    """Priority of the deferred binding (falls back to the global setting)"""

    condition: str | list[str] | None = None
    """Import path(s) of the global condition; a list means all must hold"""

    default_priority: int | None = None
    """Priority for entries without one (falls back to the global setting)"""

    strict_matching: bool | None = None
    """remove_methods only: require exact class names"""

    case_sensitive: bool | None = None
    """remove_methods only: compare class names without casefolding"""

    @property
    def label(self) -> str:
        return self.name or self.operation

    def load_condition(self) -> Callable[[], bool] | None:
        """Resolve the batch's global condition.

        Raises:
            ValueError: If an import path cannot be resolved
        """
        from unhooker.builders import resolve_import_path
        from unhooker.queue.conditions import all_of

        if self.condition is None:
            return None
        if isinstance(self.condition, str):
            return resolve_import_path(self.condition)
        return all_of(*(resolve_import_path(path) for path in self.condition))


class UnhookerConfig(BaseSettings):
    """Main configuration for unhooker that reads from unhooker.yaml."""

    model_config = SettingsConfigDict(
        env_prefix="UNHOOKER_",
        case_sensitive=False,
        extra="ignore",
    )

    # Core settings
    debug: bool = False
    default_priority: int = 10
    hook_priority: int = 10

    # Class-method matching defaults
    strict_matching: bool = False
    case_sensitive: bool = False

    # Batch definitions
    batches: list[BatchConfig] = Field(default_factory=list)

    # Path the configuration was loaded from
    config_path: Path | None = None

    def build_queues(
        self,
        registry: Any = None,
        error_callback: Callable[[Exception], Any] | None = None,
    ) -> dict[str, Any]:
        """Build and commit a queue for every configured batch.

        Batches that fail to build are logged and mapped to None.

        Args:
            registry: Host registry (process-wide default if None)
            error_callback: Receives errors for skipped entries and failed batches

        Returns:
            Dict mapping batch label to its committed queue (or None)
        """
        from unhooker.builders import build_queue

        queues: dict[str, Any] = {}
        for batch in self.batches:
            try:
                condition = batch.load_condition()
            except ValueError as e:
                logger.error(f"Failed to load condition for batch '{batch.label}': {e}")
                if error_callback is not None:
                    error_callback(e)
                queues[batch.label] = None
                continue

            queues[batch.label] = build_queue(
                batch.operation,
                batch.entries,
                registry=registry,
                default_priority=batch.default_priority,
                global_condition=condition,
                error_callback=error_callback,
                hook=batch.hook,
                hook_priority=batch.hook_priority,
                strict_matching=batch.strict_matching,
                case_sensitive=batch.case_sensitive,
                config=self,
            )
            logger.debug(f"Built batch '{batch.label}' ({batch.operation})")
        return queues

    def apply_logging(self) -> None:
        """Raise the unhooker loggers to DEBUG when debug is enabled."""
        if not self.debug:
            return
        unhooker_logger = logging.getLogger("unhooker")
        unhooker_logger.setLevel(logging.DEBUG)
        if not unhooker_logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter("%(name)s:%(levelname)s: %(message)s"))
            unhooker_logger.addHandler(handler)

    @classmethod
    def from_yaml(cls, yaml_path: Path, **kwargs: Any) -> "UnhookerConfig":
        """Load configuration from an unhooker.yaml file.

        Args:
            yaml_path: Path to the unhooker.yaml file
            **kwargs: Additional keyword arguments

        Returns:
            UnhookerConfig instance

        Raises:
            ConfigError: If the file cannot be parsed or validated
        """
        if not yaml_path.exists():
            return cls(config_path=yaml_path, **kwargs)

        try:
            with yaml_path.open() as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {yaml_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Expected a mapping at the top of {yaml_path}")

        unhooker_data = data.get("unhooker", {}) or {}
        if not isinstance(unhooker_data, dict):
            raise ConfigError(f"Expected a mapping under 'unhooker' in {yaml_path}")

        # Apply basic settings
        settings = {key: unhooker_data[key] for key in SCALAR_SETTINGS if key in unhooker_data}
        try:
            instance = cls(config_path=yaml_path, **{**settings, **kwargs})
        except ValidationError as e:
            raise ConfigError(f"Invalid settings in {yaml_path}: {e}") from e

        # Load batches
        batches_data = unhooker_data.get("batches", []) or []
        batches: list[BatchConfig] = []
        for index, batch_data in enumerate(batches_data):
            if not isinstance(batch_data, dict):
                logger.warning(f"Ignoring batch #{index} in {yaml_path}: expected a mapping")
                continue
            try:
                batches.append(BatchConfig(**batch_data))
            except ValidationError as e:
                raise ConfigError(f"Invalid batch #{index} in {yaml_path}: {e}") from e
        instance.batches = batches

        return instance


# Global configuration instance
_config_instance: UnhookerConfig | None = None
_config_lock = threading.Lock()


def get_config() -> UnhookerConfig:
    """Get the configuration instance."""
    global _config_instance

    if _config_instance is None:
        with _config_lock:
            # Double-check locking pattern
            if _config_instance is None:
                _config_instance = _discover_config()

    return _config_instance


def _discover_config() -> UnhookerConfig:
    # Priority 1: Environment variable
    env_config_dir = os.environ.get("UNHOOKER_CONFIG_DIR")
    if env_config_dir:
        config_path = Path(env_config_dir) / CONFIG_FILENAME
        if config_path.exists():
            logger.info(f"Loading unhooker config from: {config_path} (source: ENV:UNHOOKER_CONFIG_DIR)")
            return UnhookerConfig.from_yaml(config_path)
        logger.info(f"{CONFIG_FILENAME} not found at {config_path}, using default config")
        return UnhookerConfig(config_path=config_path)

    # Priority 2: Fallback to ~/.unhooker directory
    fallback_path = Path.home() / ".unhooker" / CONFIG_FILENAME
    if fallback_path.exists():
        logger.info(f"Using fallback config: {fallback_path}")
        return UnhookerConfig.from_yaml(fallback_path)

    logger.debug("No unhooker.yaml found in any location, using defaults")
    return UnhookerConfig()


def set_config_instance(config: UnhookerConfig) -> None:
    """Set the global configuration instance (for testing)."""
    global _config_instance
    _config_instance = config


def clear_config_instance() -> None:
    """Clear the global configuration instance (for testing)."""
    global _config_instance
    _config_instance = None
