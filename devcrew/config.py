"""
Configuration: model presets plus project-level orchestration settings.

Loading priority:
  1. Project dir .devcrew.yml
  2. Git root .devcrew.yml
  3. Global ~/.devcrew/config.yml

The ``orchestration:`` section is kept raw here and parsed by
``devcrew.crew.crew.OrchestrationConfig``.
"""

import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, List, Any

import yaml
from dotenv import load_dotenv

from .logger import get_logger

_log = get_logger(__name__)

CONFIG_DIR = Path.home() / ".devcrew"
CONFIG_FILE = CONFIG_DIR / "config.yml"
PROJECT_CONFIG_NAME = ".devcrew.yml"

STRATEGY_TYPES = {"sequential", "parallel", "hierarchical", "collaborative"}
THEMES = {"dark", "light", "no_color"}

DEFAULT_BLOCKED_COMMANDS = [
    "rm -rf /", "rm -rf /*", "mkfs", "dd if=", "> /dev/sda",
    "sudo ", "chmod 777", "curl|sh", "curl|bash", "wget|sh",
    ":(){:|:&};:",  # fork bomb
]


# ── Value validation ──


def validate_int_range(value: Any, min_val: int, max_val: int) -> tuple[bool, int, str]:
    """Validate integer within range."""
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return False, 0, "Must be an integer"
    if parsed < min_val or parsed > max_val:
        return False, max(min_val, min(max_val, parsed)), f"Must be between {min_val} and {max_val}"
    return True, parsed, ""


def validate_float_range(value: Any, min_val: float, max_val: float) -> tuple[bool, float, str]:
    """Validate float within range."""
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return False, 0.0, "Must be a number"
    if parsed < min_val or parsed > max_val:
        return False, max(min_val, min(max_val, parsed)), f"Must be between {min_val} and {max_val}"
    return True, parsed, ""


def validate_enum(value: Any, valid_values: set) -> tuple[bool, str, str]:
    """Validate value is in allowed set."""
    val_str = str(value).strip().lower()
    if val_str not in valid_values:
        return False, "", f"Must be one of: {', '.join(sorted(valid_values))}"
    return True, val_str, ""


def validate_bool(value: Any) -> tuple[bool, bool, str]:
    """Validate boolean value."""
    if isinstance(value, bool):
        return True, value, ""
    if isinstance(value, str):
        val_lower = value.strip().lower()
        if val_lower in ("1", "true", "yes", "on"):
            return True, True, ""
        if val_lower in ("0", "false", "no", "off"):
            return True, False, ""
    return False, False, "Must be true/false, yes/no, on/off, or 1/0"


@dataclass
class ModelPreset:
    name: str
    provider: str
    model: str
    api_base: Optional[str] = None
    api_key: Optional[str] = None
    api_key_env: Optional[str] = None
    temperature: float = 0.0
    max_tokens: int = 4096
    description: str = ""

    def resolve_api_key(self) -> Optional[str]:
        if self.api_key:
            return self.api_key
        if self.api_key_env:
            return os.environ.get(self.api_key_env)
        env_map = {
            "openai": "OPENAI_API_KEY", "anthropic": "ANTHROPIC_API_KEY",
            "gemini": "GEMINI_API_KEY", "xai": "XAI_API_KEY",
        }
        env_var = env_map.get(self.provider)
        return os.environ.get(env_var) if env_var else None

    def get_llm_kwargs(self) -> dict:
        """Return kwargs dict for LLMAdapter constructor, direct, no env vars."""
        return {
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "api_base": self.api_base,
            "api_key": self.resolve_api_key(),
        }


@dataclass
class Config:
    active_model: str = "anthropic"
    models: Dict[str, ModelPreset] = field(default_factory=dict)
    commit_prefix: str = "devcrew: "
    theme: str = "dark"
    blocked_commands: List[str] = field(default_factory=lambda: list(DEFAULT_BLOCKED_COMMANDS))
    command_timeout: int = 30
    verbose: bool = False
    use_unicode: bool = True
    orchestration_config: Dict = field(default_factory=dict)  # orchestration: section from YAML
    project_root: Optional[str] = None
    _config_source: str = ""

    @classmethod
    def load(cls, project_dir: str = ".") -> "Config":
        config = cls()
        project_path = Path(project_dir).resolve()

        for env_path in [CONFIG_DIR / ".env", project_path / ".env"]:
            if env_path.exists():
                load_dotenv(env_path, override=False)

        git_root = cls._find_git_root(project_path)
        config_loaded = False
        for candidate in [
            project_path / PROJECT_CONFIG_NAME,
            (git_root / PROJECT_CONFIG_NAME) if git_root and git_root != project_path else None,
            CONFIG_FILE,
        ]:
            if candidate and candidate.exists():
                config._load_yaml(candidate)
                config._config_source = str(candidate)
                config_loaded = True
                break

        if not config_loaded:
            config._add_default_presets()

        config._apply_env()
        config.project_root = str(project_path)
        return config

    @classmethod
    def get_default_presets(cls) -> Dict[str, ModelPreset]:
        return {
            "anthropic": ModelPreset(
                name="anthropic", provider="anthropic",
                model="anthropic/claude-sonnet-4-20250514",
                api_key_env="ANTHROPIC_API_KEY",
                description="Anthropic Claude Sonnet 4",
                max_tokens=8192,
            ),
            "openai": ModelPreset(
                name="openai", provider="openai",
                model="openai/gpt-4-turbo",
                api_key_env="OPENAI_API_KEY",
                description="OpenAI GPT-4 Turbo",
            ),
            "google": ModelPreset(
                name="google", provider="gemini",
                model="gemini/gemini-pro",
                api_key_env="GOOGLE_API_KEY",
                description="Google Gemini Pro",
            ),
            "grok": ModelPreset(
                name="grok", provider="xai",
                model="xai/grok-beta",
                api_key_env="GROK_API_KEY",
                description="xAI Grok",
            ),
            "local": ModelPreset(
                name="local", provider="local", model="openai/model",
                api_base="http://localhost:8080/v1", api_key="not-needed",
                description="Local model (vLLM / llama.cpp on :8080)",
            ),
        }

    def _add_default_presets(self):
        self.models = self.get_default_presets()
        self.active_model = "anthropic"

    def _load_yaml(self, filepath: Path):
        try:
            with open(filepath) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            _log.warning("Could not read %s: %s; using defaults", filepath, e)
            self._add_default_presets()
            return

        self.active_model = data.get("active-model", "anthropic")
        self.commit_prefix = data.get("commit-prefix", "devcrew: ")
        self.theme = self._normalize_theme(data.get("theme", "dark"))
        self.command_timeout = self._coerce_positive_int(
            data.get("command-timeout", 30), default=30, min_value=5, max_value=600
        )
        self.verbose = self._coerce_bool(data.get("verbose", False), default=False)
        self.use_unicode = self._coerce_bool(data.get("use-unicode", True), default=True)
        blocked = data.get("blocked-commands")
        if isinstance(blocked, list):
            self.blocked_commands = [str(b) for b in blocked]
        self.orchestration_config = data.get("orchestration", {}) or {}

        self.models = {}
        for name, m in (data.get("models") or {}).items():
            if not isinstance(m, dict):
                continue
            self.models[name] = ModelPreset(
                name=name,
                provider=m.get("provider", "openai"),
                model=m.get("model", name),
                api_base=m.get("api-base"),
                api_key=m.get("api-key"),
                api_key_env=m.get("api-key-env"),
                temperature=float(m.get("temperature", 0.0)),
                max_tokens=self._coerce_positive_int(m.get("max-tokens", 4096), default=4096),
                description=m.get("description", ""),
            )
        if not self.models:
            self.models = self.get_default_presets()

    def _apply_env(self):
        env_map = {
            "DEVCREW_MODEL": ("active_model", str),
            "DEVCREW_VERBOSE": ("verbose", lambda v: v.lower() in ("true", "1")),
        }
        for env_var, (attr, conv) in env_map.items():
            val = os.environ.get(env_var)
            if val:
                setattr(self, attr, conv(val))

        # Orchestration overrides land in the raw section so they are parsed
        # with the same rules as the YAML values.
        strategy = os.environ.get("DEVCREW_STRATEGY")
        if strategy:
            self.orchestration_config = {**self.orchestration_config, "strategy": strategy}
        concurrency = os.environ.get("DEVCREW_MAX_CONCURRENCY")
        if concurrency:
            self.orchestration_config = {**self.orchestration_config, "max-concurrency": concurrency}

    def get_active_preset(self) -> ModelPreset:
        if self.active_model in self.models:
            return self.models[self.active_model]
        if self.models:
            return next(iter(self.models.values()))
        return ModelPreset(name="default", provider="local", model="openai/model",
                           api_base="http://localhost:8080/v1", api_key="not-needed")

    def set_active_model(self, name: str) -> bool:
        if name in self.models:
            self.active_model = name
            return True
        return False

    def summary(self) -> dict:
        preset = self.get_active_preset()
        return {
            "Model": f"{preset.name} ({preset.model})",
            "Theme": self.theme,
            "Command timeout": f"{self.command_timeout}s",
            "Orchestration": self.orchestration_config or "(defaults)",
            "Project": self.project_root,
            "Config": self._config_source or "(defaults)",
        }

    @staticmethod
    def _normalize_theme(value) -> str:
        name = str(value or "dark").strip().lower()
        if name not in THEMES:
            return "dark"
        return name

    @staticmethod
    def _coerce_bool(value, default: bool) -> bool:
        valid, parsed, _ = validate_bool(value)
        if valid:
            return parsed
        if isinstance(value, (int, float)):
            return bool(value)
        return default

    @staticmethod
    def _coerce_positive_int(value, default: int, min_value: int = 1, max_value: int = 100000) -> int:
        valid, parsed, msg = validate_int_range(value, min_value, max_value)
        if valid:
            return parsed
        if msg == "Must be an integer":
            return default
        return parsed  # clamped

    @staticmethod
    def _find_git_root(path: Path) -> Optional[Path]:
        current = path
        while current != current.parent:
            if (current / ".git").exists():
                return current
            current = current.parent
        return None
