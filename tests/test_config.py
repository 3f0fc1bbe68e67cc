"""
Smoke tests for configuration loading and validation.
"""

import os

import pytest

from main import _deep_merge, load_config, validate_config
from models.config import Config, PresenceConfig

REPO_CONFIG_DIR = os.path.join(os.path.dirname(__file__), "..", "config")


class TestValidateConfig:
    """Tests for validate_config function."""

    def test_valid_config_passes(self, valid_config):
        """A complete valid config passes validation."""
        is_valid, error = validate_config(valid_config)

        assert is_valid is True
        assert error is None

    @pytest.mark.parametrize("section", ["source", "model", "suppression", "log_path", "log_level"])
    def test_missing_required_section(self, valid_config, section):
        del valid_config[section]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert section in error

    def test_missing_model_path(self, valid_config):
        valid_config["model"]["path"] = ""

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "model.path" in error

    def test_invalid_log_level(self, valid_config):
        valid_config["log_level"] = "VERBOSE"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "log_level" in error

    def test_device_id_as_url(self, valid_config):
        valid_config["source"]["device_id"] = "rtsp://10.0.0.5/live"

        is_valid, _ = validate_config(valid_config)

        assert is_valid is True

    def test_negative_device_id(self, valid_config):
        valid_config["source"]["device_id"] = -1

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "device_id" in error

    def test_image_backend_needs_path(self, valid_config):
        valid_config["source"] = {"backend": "image"}

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "image_path" in error

    def test_iou_threshold_out_of_range(self, valid_config):
        valid_config["suppression"]["iou_threshold"] = 1.5

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "iou_threshold" in error

    def test_negative_max_output_size(self, valid_config):
        valid_config["suppression"]["max_output_size"] = -1

        is_valid, _ = validate_config(valid_config)

        assert is_valid is False

    def test_bad_input_shape(self, valid_config):
        valid_config["model"]["input_shape"] = [640, 640]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "input_shape" in error

    def test_unknown_absence_mode(self, valid_config):
        valid_config["presence"]["absence_mode"] = "forever"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "absence_mode" in error

    def test_bad_memory_budget(self, valid_config):
        valid_config["driver"] = {"memory_budget_mb": 0}

        is_valid, _ = validate_config(valid_config)

        assert is_valid is False

    def test_bad_web_port(self, valid_config):
        valid_config["web"] = {"port": 70000}

        is_valid, _ = validate_config(valid_config)

        assert is_valid is False

    def test_checked_in_defaults_are_valid(self):
        config = load_config(os.path.join(REPO_CONFIG_DIR, "default.yaml"))

        is_valid, error = validate_config(config)

        assert is_valid is True, error


class TestLoadConfig:
    """Tests for layered config loading."""

    def test_defaults_only(self, temp_config_dir):
        config = load_config(str(temp_config_dir / "config.yaml"))

        assert config["source"]["device_id"] == 0
        assert config["suppression"]["iou_threshold"] == 0.45

    def test_local_overrides_merge(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("""
source:
  device_id: "video.mp4"
suppression:
  score_threshold: 0.5
""")

        config = load_config(str(temp_config_dir / "config.yaml"))

        assert config["source"]["device_id"] == "video.mp4"
        assert config["source"]["fps"] == 30
        assert config["suppression"]["score_threshold"] == 0.5
        assert config["suppression"]["iou_threshold"] == 0.45

    def test_explicit_file_applied_last(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("log_level: WARNING\n")
        explicit = temp_config_dir / "site.yaml"
        explicit.write_text("log_level: DEBUG\n")

        config = load_config(str(explicit))

        assert config["log_level"] == "DEBUG"

    def test_deep_merge(self):
        merged = _deep_merge({"a": {"b": 1, "c": 2}}, {"a": {"c": 3}, "d": 4})

        assert merged == {"a": {"b": 1, "c": 3}, "d": 4}


class TestTypedConfig:
    def test_defaults(self):
        cfg = Config.from_dict({})

        assert cfg.suppression.max_output_size == 500
        assert cfg.suppression.iou_threshold == 0.45
        assert cfg.suppression.score_threshold == 0.2
        assert cfg.presence.key_prefix == "person_"
        assert cfg.presence.evict_after_ms is None
        assert cfg.web.enabled is False

    def test_from_dict(self, valid_config):
        cfg = Config.from_dict(valid_config)

        assert cfg.source.device_id == 0
        assert cfg.model.input_shape == [1, 640, 640, 3]
        assert cfg.log_path == "logs/test.log"

    def test_to_dict_round_trip(self, valid_config):
        cfg = Config.from_dict(valid_config)

        assert Config.from_dict(cfg.to_dict()) == cfg

    def test_presence_optional_fields_omitted(self):
        assert "evict_after_ms" not in PresenceConfig().to_dict()
