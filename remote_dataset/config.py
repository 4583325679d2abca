"""
Configuration for remotely backed datasets.

Configuration can be provided directly, via environment variables or
from a YAML settings file:

    ```yaml
    remote_dataset:
      name: "organization"
      options_copy: deep      # or "shallow"
      max_concurrency: 4      # omit or null for unbounded
    ```

Environment Variables:
    REMOTE_DATASET_NAME: Label used in log records
    REMOTE_DATASET_OPTIONS_COPY: How flush options are copied per setter (deep/shallow)
    REMOTE_DATASET_MAX_CONCURRENCY: Max concurrent remote calls per batch
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigurationError

CONFIG_SECTION = "remote_dataset"


class OptionsCopyMode(Enum):
    """How the flush options payload is isolated between setter calls."""

    DEEP = "deep"  # Nested structures are copied too
    SHALLOW = "shallow"  # Only the top-level container is copied

    def copy(self, options: Any) -> Any:
        if self is OptionsCopyMode.SHALLOW:
            return copy.copy(options)
        return copy.deepcopy(options)


@dataclass
class DatasetConfig:
    """Configuration for a RemotelyBackedDataset.

    Attributes:
        name: Optional label attached to log records
        options_copy: Isolation of the options payload passed to each setter
        max_concurrency: Upper bound on concurrent getter or setter calls
            within one batch, None for unbounded
    """

    name: str | None = None
    options_copy: OptionsCopyMode = OptionsCopyMode.DEEP
    max_concurrency: int | None = None

    def __post_init__(self) -> None:
        if isinstance(self.options_copy, str):
            self.options_copy = _parse_copy_mode(self.options_copy)
        if self.max_concurrency is not None and self.max_concurrency < 1:
            raise ConfigurationError(
                "max_concurrency", "must be >= 1", str(self.max_concurrency)
            )

    @classmethod
    def from_environment(cls) -> DatasetConfig:
        """Create configuration from environment variables."""
        copy_mode_str = os.environ.get("REMOTE_DATASET_OPTIONS_COPY", "deep")
        try:
            options_copy = OptionsCopyMode(copy_mode_str.lower())
        except ValueError:
            options_copy = OptionsCopyMode.DEEP

        return cls(
            name=os.environ.get("REMOTE_DATASET_NAME") or None,
            options_copy=options_copy,
            max_concurrency=_parse_concurrency(os.environ.get("REMOTE_DATASET_MAX_CONCURRENCY")),
        )

    @classmethod
    def from_file(cls, path: Path | str) -> DatasetConfig:
        """Load configuration from the ``remote_dataset`` section of a YAML file.

        A missing file or section yields the defaults.
        """
        config_path = Path(path)
        if not config_path.exists():
            return cls()

        try:
            with open(config_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(str(config_path), f"invalid YAML: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(str(config_path), "top level must be a mapping")

        section = data.get(CONFIG_SECTION) or {}
        if not isinstance(section, dict):
            raise ConfigurationError(CONFIG_SECTION, "must be a mapping")

        return cls.from_dict(section)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DatasetConfig:
        """Create from dictionary."""
        unknown = set(data) - {"name", "options_copy", "max_concurrency"}
        if unknown:
            raise ConfigurationError(CONFIG_SECTION, f"unknown keys {sorted(unknown)}")

        max_concurrency = data.get("max_concurrency")
        if max_concurrency is not None:
            max_concurrency = _parse_concurrency(str(max_concurrency))

        return cls(
            name=data.get("name"),
            options_copy=_parse_copy_mode(str(data.get("options_copy", "deep"))),
            max_concurrency=max_concurrency,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "options_copy": self.options_copy.value,
            "max_concurrency": self.max_concurrency,
        }


def _parse_copy_mode(value: str) -> OptionsCopyMode:
    try:
        return OptionsCopyMode(value.lower())
    except ValueError:
        raise ConfigurationError("options_copy", "expected 'deep' or 'shallow'", value) from None


def _parse_concurrency(value: str | None) -> int | None:
    if value is None or value.strip() == "":
        return None
    try:
        parsed = int(value)
    except ValueError:
        raise ConfigurationError("max_concurrency", "must be an integer", value) from None
    if parsed < 1:
        raise ConfigurationError("max_concurrency", "must be >= 1", value)
    return parsed
