"""Tests for configuration loading and validation."""

import pytest
import yaml

from devcrew import config as config_module
from devcrew.config import (
    Config,
    ModelPreset,
    validate_bool,
    validate_enum,
    validate_float_range,
    validate_int_range,
)


class TestConfigLoad:
    """Config.load() from YAML files."""

    def test_load_from_yaml(self, config_yaml_file, tmp_dir):
        config = Config.load(str(tmp_dir))
        assert config.active_model == "local"
        assert config.commit_prefix == "test: "
        assert config.theme == "no_color"
        assert config.command_timeout == 30
        assert config.project_root == str(tmp_dir.resolve())
        assert config.summary()["Config"] == str(config_yaml_file.resolve())

    def test_load_models(self, config_yaml_file, tmp_dir):
        config = Config.load(str(tmp_dir))
        preset = config.models["local"]
        assert isinstance(preset, ModelPreset)
        assert preset.provider == "local"
        assert preset.model == "openai/model"
        assert preset.api_base == "http://localhost:8080/v1"
        assert preset.max_tokens == 8192

    def test_load_orchestration_section(self, config_yaml_file, tmp_dir):
        config = Config.load(str(tmp_dir))
        assert config.orchestration_config == {
            "strategy": "parallel",
            "max-concurrency": 2,
            "retry-on-failure": False,
            "cross-validation": True,
        }

    def test_load_defaults_when_no_config(self, tmp_dir):
        config = Config.load(str(tmp_dir))
        assert config.active_model == "anthropic"
        assert {"anthropic", "openai", "local"} <= set(config.models)
        assert config.orchestration_config == {}
        assert config.summary()["Config"] == "(defaults)"

    def test_global_config_fallback(self, tmp_dir, isolated_home, sample_config_data):
        config_module.CONFIG_FILE.parent.mkdir(parents=True)
        sample_config_data["commit-prefix"] = "global: "
        with open(config_module.CONFIG_FILE, "w") as f:
            yaml.dump(sample_config_data, f)

        config = Config.load(str(tmp_dir))
        assert config.commit_prefix == "global: "

    def test_broken_yaml_uses_defaults(self, tmp_dir):
        (tmp_dir / ".devcrew.yml").write_text("models: [unclosed\n", encoding="utf-8")
        config = Config.load(str(tmp_dir))
        assert "anthropic" in config.models

    def test_invalid_values_are_coerced(self, tmp_dir, sample_config_data):
        sample_config_data.update({"theme": "neon", "command-timeout": 1, "verbose": "yes"})
        with open(tmp_dir / ".devcrew.yml", "w") as f:
            yaml.dump(sample_config_data, f)

        config = Config.load(str(tmp_dir))
        assert config.theme == "dark"
        assert config.command_timeout == 5
        assert config.verbose is True

    def test_env_overrides(self, config_yaml_file, tmp_dir, monkeypatch):
        monkeypatch.setenv("DEVCREW_MODEL", "other")
        monkeypatch.setenv("DEVCREW_VERBOSE", "1")
        monkeypatch.setenv("DEVCREW_STRATEGY", "sequential")
        monkeypatch.setenv("DEVCREW_MAX_CONCURRENCY", "7")

        config = Config.load(str(tmp_dir))
        assert config.active_model == "other"
        assert config.verbose is True
        assert config.orchestration_config["strategy"] == "sequential"
        assert config.orchestration_config["max-concurrency"] == "7"
        assert config.orchestration_config["cross-validation"] is True


class TestActivePreset:
    """Preset selection."""

    def test_set_active_model(self, config_yaml_file, tmp_dir):
        config = Config.load(str(tmp_dir))
        assert config.set_active_model("local") is True
        assert config.set_active_model("missing") is False
        assert config.active_model == "local"

    def test_unknown_active_falls_back_to_first(self):
        config = Config(active_model="ghost", models={"a": ModelPreset(name="a", provider="openai", model="m")})
        assert config.get_active_preset().name == "a"

    def test_no_models(self):
        preset = Config(models={}).get_active_preset()
        assert preset.model == "openai/model"


class TestModelPreset:
    """ModelPreset key resolution."""

    def test_resolve_api_key_direct(self):
        preset = ModelPreset(name="t", provider="openai", model="m", api_key="sk-1")
        assert preset.resolve_api_key() == "sk-1"

    def test_resolve_api_key_env(self, monkeypatch):
        monkeypatch.setenv("MY_KEY", "secret")
        preset = ModelPreset(name="t", provider="openai", model="m", api_key_env="MY_KEY")
        assert preset.resolve_api_key() == "secret"

    def test_resolve_api_key_provider_default(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "ak")
        preset = ModelPreset(name="t", provider="anthropic", model="m")
        assert preset.resolve_api_key() == "ak"

    def test_get_llm_kwargs(self):
        preset = ModelPreset(name="t", provider="local", model="openai/x",
                             api_base="http://h", api_key="k", temperature=0.5, max_tokens=100)
        assert preset.get_llm_kwargs() == {
            "model": "openai/x", "temperature": 0.5, "max_tokens": 100,
            "api_base": "http://h", "api_key": "k",
        }


class TestValidators:
    """(valid, value, message) validators."""

    def test_int_range(self):
        assert validate_int_range("4", 1, 10) == (True, 4, "")
        valid, value, msg = validate_int_range(40, 1, 10)
        assert (valid, value) == (False, 10)
        assert "between 1 and 10" in msg
        assert validate_int_range("x", 1, 10)[0] is False

    def test_float_range(self):
        assert validate_float_range("2.5", 0, 10) == (True, 2.5, "")
        assert validate_float_range(-1, 0, 10)[0] is False
        assert validate_float_range(None, 0, 10)[0] is False

    def test_enum(self):
        assert validate_enum(" Parallel ", {"parallel"}) == (True, "parallel", "")
        assert validate_enum("other", {"parallel"})[0] is False

    @pytest.mark.parametrize("raw,expected", [
        (True, True), ("yes", True), ("ON", True), ("0", False), ("off", False),
    ])
    def test_bool(self, raw, expected):
        assert validate_bool(raw) == (True, expected, "")

    def test_bool_invalid(self):
        assert validate_bool("maybe")[0] is False
        assert validate_bool(1)[0] is False
