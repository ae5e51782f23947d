"""Tests for runtime settings and request options."""

from pathlib import Path

import pytest
from pydantic import ValidationError

import routeweave
from routeweave.schemas import ConversionOptions, ConversionSettings
from routeweave.setting import CONFIG_PATH, RouteweaveSettings, load_settings


ENV_NAMES = ("ROUTEWEAVE_MAX_WORKERS", "ROUTEWEAVE_MAX_FILE_SIZE_KB", "ROUTEWEAVE_LOG_LEVEL")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


# =========================================================================
# Tests: Settings loading
# =========================================================================

class TestLoadSettings:
    def test_yaml_values(self, tmp_path):
        path = tmp_path / "routeweave.yaml"
        path.write_text("routeweave:\n  max_workers: 8\n  log_level: debug\n")
        settings = load_settings(path)
        assert settings.max_workers == 8
        assert settings.log_level == "DEBUG"
        assert settings.max_file_size_kb == 512

    def test_missing_file_uses_defaults(self, tmp_path):
        assert load_settings(tmp_path / "absent.yaml") == RouteweaveSettings()

    def test_bundled_config_lives_in_package(self):
        package_dir = Path(routeweave.__file__).parent
        assert CONFIG_PATH.is_file()
        assert package_dir in CONFIG_PATH.parents

    def test_bundled_config_loaded_by_default(self):
        settings = load_settings()
        assert "storybook-static" in settings.skip_directories
        assert settings.max_workers == 4

    def test_environment_overrides_yaml(self, tmp_path, monkeypatch):
        path = tmp_path / "routeweave.yaml"
        path.write_text("routeweave:\n  max_workers: 8\n")
        monkeypatch.setenv("ROUTEWEAVE_MAX_WORKERS", "2")
        monkeypatch.setenv("ROUTEWEAVE_MAX_FILE_SIZE_KB", "64")
        settings = load_settings(path)
        assert settings.max_workers == 2
        assert settings.max_file_size_kb == 64

    def test_invalid_values_fall_back(self, tmp_path):
        path = tmp_path / "routeweave.yaml"
        path.write_text("routeweave:\n  max_workers: 0\n")
        assert load_settings(path) == RouteweaveSettings()

    def test_unknown_log_level_falls_back(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ROUTEWEAVE_LOG_LEVEL", "chatty")
        assert load_settings(tmp_path / "absent.yaml").log_level == "INFO"

    @pytest.mark.parametrize("content", ["routeweave: [\n", "- just\n- a list\n"])
    def test_malformed_yaml_uses_defaults(self, tmp_path, content):
        path = tmp_path / "routeweave.yaml"
        path.write_text(content)
        assert load_settings(path) == RouteweaveSettings()


# =========================================================================
# Tests: Request options
# =========================================================================

class TestConversionOptions:
    def test_camel_case_aliases(self):
        options = ConversionOptions.model_validate({"appDir": True, "includeExamples": True})
        assert options.app_dir
        assert options.include_examples
        assert not options.typescript

    def test_field_names_accepted(self):
        assert ConversionOptions(app_dir=True).app_dir

    def test_resolved_settings_frozen(self):
        settings = ConversionSettings(app_dir=True)
        with pytest.raises(ValidationError):
            settings.app_dir = False
