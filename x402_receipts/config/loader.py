"""
Configuration management and loading.

Handles storage location and display settings for the receipt store.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict

import yaml

from x402_receipts.storage.files import DEFAULT_RECEIPTS_FILE

DEFAULT_RECENT_LIMIT = 20


@dataclass(frozen=True)
class StorageConfig:
    """Where and how the receipts document is written."""
    path: Path = DEFAULT_RECEIPTS_FILE
    atomic_writes: bool = True


@dataclass(frozen=True)
class DisplayConfig:
    """Defaults for dashboard listings."""
    recent_limit: int = DEFAULT_RECENT_LIMIT

    def __post_init__(self):
        """Validate the listing size is positive."""
        if self.recent_limit <= 0:
            raise ValueError("recent_limit must be > 0")


@dataclass(frozen=True)
class ReceiptsConfig:
    """Complete receipts configuration."""
    storage: StorageConfig = field(default_factory=StorageConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)


def load_receipts_config(path: str) -> ReceiptsConfig:
    """Load and validate receipts configuration from a YAML file.

    A relative ``storage.path`` is resolved against the directory holding
    the configuration file, not the working directory.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated ReceiptsConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
        ValueError: If configuration is invalid
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Receipts config file not found: {path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in config file {path}: {e}")

    # An empty file means "all defaults"
    if raw_config is None:
        return ReceiptsConfig()
    if not isinstance(raw_config, dict):
        raise ValueError("Configuration must be a mapping")

    allowed_top_keys = {'storage', 'display'}
    unknown_keys = set(raw_config.keys()) - allowed_top_keys
    if unknown_keys:
        raise ValueError(f"Unknown configuration keys: {unknown_keys}")

    storage = _parse_storage_config(raw_config.get('storage', {}), config_path.parent)
    display = _parse_display_config(raw_config.get('display', {}))

    return ReceiptsConfig(storage=storage, display=display)


def _parse_storage_config(data: Dict, base_dir: Path) -> StorageConfig:
    """Parse and validate the ``storage`` section.

    Raises:
        ValueError: If the section is invalid
    """
    if not isinstance(data, dict):
        raise ValueError("'storage' must be a dictionary")

    allowed_keys = {'path', 'atomic_writes'}
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in storage: {unknown_keys}")

    store_path = DEFAULT_RECEIPTS_FILE
    if 'path' in data:
        if not isinstance(data['path'], str) or not data['path'].strip():
            raise ValueError("'path' in storage must be a non-empty string")
        store_path = Path(data['path']).expanduser()
        if not store_path.is_absolute():
            store_path = base_dir / store_path

    atomic_writes = data.get('atomic_writes', True)
    if not isinstance(atomic_writes, bool):
        raise ValueError("'atomic_writes' in storage must be a boolean")

    return StorageConfig(path=store_path, atomic_writes=atomic_writes)


def _parse_display_config(data: Dict) -> DisplayConfig:
    """Parse and validate the ``display`` section."""
    if not isinstance(data, dict):
        raise ValueError("'display' must be a dictionary")

    allowed_keys = {'recent_limit'}
    unknown_keys = set(data.keys()) - allowed_keys
    if unknown_keys:
        raise ValueError(f"Unknown keys in display: {unknown_keys}")

    recent_limit = data.get('recent_limit', DEFAULT_RECENT_LIMIT)
    # bool is an int subclass; reject it explicitly
    if not isinstance(recent_limit, int) or isinstance(recent_limit, bool):
        raise ValueError("'recent_limit' in display must be an integer")

    return DisplayConfig(recent_limit=recent_limit)
