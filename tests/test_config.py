"""
Unit tests for configuration loading and validation.

Tests strict validation and error handling for receipts configs.
"""

import os
import tempfile
from pathlib import Path

import pytest
import yaml

from x402_receipts.config.loader import (
    DisplayConfig,
    ReceiptsConfig,
    StorageConfig,
    load_receipts_config,
)
from x402_receipts.storage.files import DEFAULT_RECEIPTS_FILE
from x402_receipts.storage.repository import ReceiptRepository


class TestConfigLoading:
    """Test configuration loading and validation."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        """Clean up test environment."""
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write_config(self, config_data, filename: str = "config.yaml") -> str:
        """Write configuration data to temporary file."""
        config_path = os.path.join(self.temp_dir, filename)
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(config_data, f)
        return config_path

    def test_valid_config_loads_correctly(self):
        """Test that a valid configuration loads correctly."""
        config_path = self._write_config({
            "storage": {"path": "/var/lib/x402/receipts.json", "atomic_writes": False},
            "display": {"recent_limit": 50},
        })

        config = load_receipts_config(config_path)

        assert config.storage.path == Path("/var/lib/x402/receipts.json")
        assert config.storage.atomic_writes is False
        assert config.display.recent_limit == 50

    def test_relative_path_resolves_against_config_dir(self):
        """Test that storage paths are relative to the config file."""
        config_path = self._write_config({"storage": {"path": "data/receipts.json"}})

        config = load_receipts_config(config_path)

        assert config.storage.path == Path(self.temp_dir) / "data" / "receipts.json"

    def test_empty_mapping_uses_defaults(self):
        """Test that omitted sections fall back to defaults."""
        config = load_receipts_config(self._write_config({}))

        assert config == ReceiptsConfig()
        assert config.storage.path == DEFAULT_RECEIPTS_FILE
        assert config.storage.atomic_writes is True
        assert config.display.recent_limit == 20

    def test_empty_file_uses_defaults(self):
        """Test that a blank file is accepted."""
        config_path = os.path.join(self.temp_dir, "blank.yaml")
        Path(config_path).write_text("", encoding="utf-8")

        assert load_receipts_config(config_path) == ReceiptsConfig()

    def test_missing_file_raises_error(self):
        """Test that missing config file raises error."""
        with pytest.raises(FileNotFoundError, match="Receipts config file not found"):
            load_receipts_config("nonexistent.yaml")

    def test_invalid_yaml_raises_error(self):
        """Test that invalid YAML raises error."""
        config_path = os.path.join(self.temp_dir, "invalid.yaml")
        with open(config_path, 'w', encoding='utf-8') as f:
            f.write("storage: [unclosed\n")

        with pytest.raises(yaml.YAMLError, match="Invalid YAML"):
            load_receipts_config(config_path)

    def test_non_mapping_raises_error(self):
        """Test that a top-level list is rejected."""
        with pytest.raises(ValueError, match="must be a mapping"):
            load_receipts_config(self._write_config(["storage"]))

    def test_unknown_top_level_key_raises_error(self):
        with pytest.raises(ValueError, match="Unknown configuration keys"):
            load_receipts_config(self._write_config({"storage": {}, "extra": 1}))

    def test_unknown_storage_key_raises_error(self):
        with pytest.raises(ValueError, match="Unknown keys in storage"):
            load_receipts_config(self._write_config({"storage": {"locking": True}}))

    def test_unknown_display_key_raises_error(self):
        with pytest.raises(ValueError, match="Unknown keys in display"):
            load_receipts_config(self._write_config({"display": {"colors": True}}))

    def test_storage_must_be_mapping(self):
        with pytest.raises(ValueError, match="'storage' must be a dictionary"):
            load_receipts_config(self._write_config({"storage": "receipts.json"}))

    def test_empty_path_raises_error(self):
        with pytest.raises(ValueError, match="non-empty string"):
            load_receipts_config(self._write_config({"storage": {"path": "  "}}))

    def test_atomic_writes_must_be_boolean(self):
        with pytest.raises(ValueError, match="must be a boolean"):
            load_receipts_config(self._write_config({"storage": {"atomic_writes": "yes please"}}))

    @pytest.mark.parametrize("limit", [0, -5])
    def test_non_positive_limit_raises_error(self, limit):
        with pytest.raises(ValueError, match="recent_limit must be > 0"):
            load_receipts_config(self._write_config({"display": {"recent_limit": limit}}))

    @pytest.mark.parametrize("limit", ["ten", 2.5, True])
    def test_non_integer_limit_raises_error(self, limit):
        with pytest.raises(ValueError, match="must be an integer"):
            load_receipts_config(self._write_config({"display": {"recent_limit": limit}}))

    def test_repository_from_config(self):
        """Test building a repository from loaded configuration."""
        config_path = self._write_config({
            "storage": {"path": "store.json", "atomic_writes": False}
        })

        repository = ReceiptRepository.from_config(load_receipts_config(config_path))

        assert repository.path == Path(self.temp_dir) / "store.json"
        assert repository.atomic_writes is False


class TestConfigObjects:
    """Test configuration dataclasses directly."""

    def test_display_config_validates(self):
        with pytest.raises(ValueError):
            DisplayConfig(recent_limit=0)

    def test_defaults(self):
        assert StorageConfig().atomic_writes is True
        assert DisplayConfig().recent_limit == 20
