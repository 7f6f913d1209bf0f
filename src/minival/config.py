"""Configuration management for minival using Pydantic models."""

import json
import re
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_MAX_DEPTH = 32
CONFIG_FILE_NAME = ".minival.json"


class NamingPolicy(str, Enum):
    """Case transformations applied to error keys."""
    CAMEL = "camel"
    PASCAL = "pascal"
    SNAKE = "snake"
    KEBAB = "kebab"

    def convert(self, name: str) -> str:
        """Convert a single member name according to this policy."""
        if not name:
            return name
        words = _split_words(name)
        if not words:
            return name
        if self is NamingPolicy.CAMEL:
            return words[0].lower() + "".join(w[:1].upper() + w[1:].lower() for w in words[1:])
        if self is NamingPolicy.PASCAL:
            return "".join(w[:1].upper() + w[1:].lower() for w in words)
        if self is NamingPolicy.SNAKE:
            return "_".join(w.lower() for w in words)
        return "-".join(w.lower() for w in words)


_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z]|\d|\b|_)|[A-Z]?[a-z]+|[A-Z]+|\d+")


def _split_words(name: str) -> list[str]:
    return _WORD_RE.findall(name)


class LogLevel(str, Enum):
    """Logging levels."""
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"


class ValidateOptions(BaseModel):
    """Options for a validator instance.

    Instances are immutable; use ``with_changes`` to derive a modified copy.
    """
    max_depth: int = Field(alias="maxDepth", default=DEFAULT_MAX_DEPTH)
    disable_recursion: bool = Field(alias="disableRecursion", default=False)
    allow_async_validation: bool = Field(alias="allowAsyncValidation", default=False)
    services: Any = Field(default=None, exclude=True)
    naming_policy: NamingPolicy | Callable[[str], str] | None = Field(alias="namingPolicy", default=None)

    @field_validator("max_depth")
    @classmethod
    def validate_max_depth(cls, v):
        if v < 0:
            raise ValueError("max_depth must be >= 0")
        return v

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        arbitrary_types_allowed=True,
        extra="forbid",
    )

    def with_changes(self, **changes: Any) -> "ValidateOptions":
        """Return a copy with the given fields replaced."""
        return self.model_copy(update=changes)

    def convert_key_segment(self, name: str) -> str:
        """Apply the configured naming policy to one member name."""
        if self.naming_policy is None:
            return name
        if isinstance(self.naming_policy, NamingPolicy):
            return self.naming_policy.convert(name)
        return self.naming_policy(name)


class LoggingConfig(BaseModel):
    """Logging configuration section."""
    level: LogLevel = LogLevel.WARN

    model_config = ConfigDict(use_enum_values=True)


class MinivalConfig(BaseModel):
    """Complete minival configuration model."""
    validation: ValidateOptions = Field(default_factory=ValidateOptions)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(extra="forbid")


def load_config(config_path: str | Path | None = None) -> MinivalConfig:
    """Load configuration from file with fallback to defaults.

    Args:
        config_path: Optional path to configuration file. If None, searches
                    current directory and parents for .minival.json

    Returns:
        MinivalConfig: Loaded and validated configuration

    Raises:
        ValueError: If configuration is invalid or an explicit path does not exist
    """
    if config_path is None:
        config_path = find_config_file()
    else:
        config_path = Path(config_path)
        if not config_path.exists():
            raise ValueError(f"Config file not found: {config_path}")

    if config_path and config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                config_data = json.load(f)
            return MinivalConfig(**config_data)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in config file {config_path}: {e}")
        except Exception as e:
            raise ValueError(f"Failed to load config from {config_path}: {e}")
    else:
        return create_default_config()


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Find .minival.json configuration file by searching up directory tree.

    Args:
        start_dir: Directory to start search from (default: current directory)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_dir is None:
        start_dir = Path.cwd()

    current = Path(start_dir).resolve()

    while True:
        config_file = current / CONFIG_FILE_NAME
        if config_file.exists():
            return config_file

        parent = current.parent
        if parent == current:  # Reached root directory
            break
        current = parent

    return None


def create_default_config() -> MinivalConfig:
    """Create default configuration."""
    return MinivalConfig()
