"""
⚠️ DRAFT — requires crypto review before production use

Unit tests for configuration module.

Tests protocol constants, deployment parameters and YAML loading.
"""

import pytest

from shielded_access_poc.shielded import config
from shielded_access_poc.shielded.config import DeploymentConfig, load_config
from shielded_access_poc.shielded.exceptions import ConfigurationError


class TestConfigParameters:
    """Test configuration parameters are set correctly."""

    def test_hash_function(self):
        """Test persistent hash is SHA-256 over 32-byte fields."""
        assert config.HASH_FUNCTION == "SHA256"
        assert config.FIELD_SIZE_BYTES == 32

    def test_integer_encoding(self):
        """Test integers are little-endian."""
        assert config.INTEGER_BYTE_ORDER == "little"

    def test_default_tree_depth(self):
        """Test default role tree holds 1024 slots."""
        assert config.DEFAULT_TREE_DEPTH == 10

    def test_domain_tags_fit_one_field(self):
        """Test every domain tag fits in a field and is unique."""
        for tag in config.DOMAIN_TAGS.values():
            assert len(tag.encode("ascii")) <= config.FIELD_SIZE_BYTES
        assert len(set(config.DOMAIN_TAGS.values())) == len(config.DOMAIN_TAGS)

    def test_validate_config(self):
        """Test module constants validate."""
        assert config.validate_config() is True


class TestDeploymentConfig:
    """Test per-deployment parameters."""

    def test_defaults(self):
        """Test defaults match module constants."""
        cfg = DeploymentConfig()
        assert cfg.tree_depth == config.DEFAULT_TREE_DEPTH
        assert cfg.instance_salt == config.DEFAULT_INSTANCE_SALT

    @pytest.mark.parametrize("depth", [0, 33, "10", True])
    def test_invalid_depth(self, depth):
        """Test out-of-range or non-int depths are rejected."""
        with pytest.raises(ConfigurationError):
            DeploymentConfig(tree_depth=depth)

    def test_invalid_salt_length(self):
        """Test the salt must be one field."""
        with pytest.raises(ConfigurationError, match="32 bytes"):
            DeploymentConfig(instance_salt=b"\x01" * 16)

    def test_from_dict_hex_salt(self):
        """Test hex salts are decoded."""
        cfg = DeploymentConfig.from_dict(
            {"tree_depth": 4, "instance_salt": "0x" + "ab" * 32}
        )
        assert cfg.tree_depth == 4
        assert cfg.instance_salt == b"\xab" * 32

    def test_from_dict_bad_hex(self):
        """Test malformed hex salts are rejected."""
        with pytest.raises(ConfigurationError, match="not valid hex"):
            DeploymentConfig.from_dict({"instance_salt": "zz"})

    def test_from_dict_unknown_key(self):
        """Test unknown keys are rejected."""
        with pytest.raises(ConfigurationError, match="Unknown config keys: depth"):
            DeploymentConfig.from_dict({"depth": 4})

    def test_to_dict(self):
        """Test export gives YAML-friendly values."""
        cfg = DeploymentConfig(tree_depth=5, instance_salt=b"\x01" * 32)
        assert cfg.to_dict() == {"tree_depth": 5, "instance_salt": "01" * 32}
        assert DeploymentConfig.from_dict(cfg.to_dict()) == cfg


class TestLoadConfig:
    """Test YAML loading."""

    def test_no_path_no_env(self, monkeypatch):
        """Test defaults without a file."""
        monkeypatch.delenv(config.CONFIG_ENV_VAR, raising=False)
        assert load_config() == DeploymentConfig()

    def test_load_from_file(self, tmp_path):
        """Test values are read from YAML."""
        path = tmp_path / "deploy.yaml"
        path.write_text(f'tree_depth: 6\ninstance_salt: "{"cd" * 32}"\n')
        cfg = load_config(path)
        assert cfg.tree_depth == 6
        assert cfg.instance_salt == b"\xcd" * 32

    def test_load_from_env(self, tmp_path, monkeypatch):
        """Test the environment variable names the file."""
        path = tmp_path / "deploy.yaml"
        path.write_text("tree_depth: 3\n")
        monkeypatch.setenv(config.CONFIG_ENV_VAR, str(path))
        assert load_config().tree_depth == 3

    def test_empty_file_gives_defaults(self, tmp_path):
        """Test an empty document falls back to defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == DeploymentConfig()

    def test_missing_file(self, tmp_path):
        """Test unreadable files raise ConfigurationError."""
        with pytest.raises(ConfigurationError, match="Cannot read config"):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        """Test malformed YAML raises ConfigurationError."""
        path = tmp_path / "bad.yaml"
        path.write_text("tree_depth: [1, 2\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(path)

    def test_invalid_values(self, tmp_path):
        """Test bad values in a valid document are rejected."""
        path = tmp_path / "deploy.yaml"
        path.write_text("tree_depth: 99\n")
        with pytest.raises(ConfigurationError, match="tree_depth"):
            load_config(path)
