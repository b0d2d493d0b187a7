"""
PromptShot Configuration Management

Centralized configuration system with JSON loading and validation.
"""

import json
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, List, Optional

from .constants import (
    ColorMood,
    DEFAULT_API_KEY_ENV,
    DEFAULT_ART_STYLE,
    DEFAULT_MODEL,
    DEFAULT_SCENE_COUNT,
    DEFAULT_TIMEOUT_SECONDS,
    MAX_SCENE_COUNT,
    MIN_SCENE_COUNT,
    PROJECT_NAME,
    VERSION,
)
from .exceptions import ConfigurationError, InvalidConfigError


@dataclass
class LLMConfig:
    """Configuration for the completion gateway."""
    model: str = DEFAULT_MODEL
    api_key_env: str = DEFAULT_API_KEY_ENV  # Environment variable name for API key
    temperature: Optional[float] = None
    timeout: int = DEFAULT_TIMEOUT_SECONDS

    @classmethod
    def from_dict(cls, data: dict) -> 'LLMConfig':
        """Create LLMConfig from dictionary."""
        return cls(
            model=data.get('model', DEFAULT_MODEL),
            api_key_env=data.get('api_key_env', DEFAULT_API_KEY_ENV),
            temperature=data.get('temperature'),
            timeout=data.get('timeout', DEFAULT_TIMEOUT_SECONDS)
        )


@dataclass
class WorkflowConfig:
    """Defaults applied when a workflow session starts or starts over."""
    default_scene_count: int = DEFAULT_SCENE_COUNT
    default_art_style: str = DEFAULT_ART_STYLE
    default_color_mood: ColorMood = ColorMood.DEFAULT

    @classmethod
    def from_dict(cls, data: dict) -> 'WorkflowConfig':
        """Create WorkflowConfig from dictionary."""
        scene_count = data.get('default_scene_count', DEFAULT_SCENE_COUNT)
        if not isinstance(scene_count, int) or not MIN_SCENE_COUNT <= scene_count <= MAX_SCENE_COUNT:
            raise InvalidConfigError(
                f"default_scene_count must be an integer in [{MIN_SCENE_COUNT}, {MAX_SCENE_COUNT}]",
                {"default_scene_count": scene_count}
            )

        mood_value = data.get('default_color_mood', ColorMood.DEFAULT.value)
        try:
            color_mood = ColorMood(mood_value)
        except ValueError:
            raise InvalidConfigError(f"Unknown color mood: {mood_value}")

        return cls(
            default_scene_count=scene_count,
            default_art_style=data.get('default_art_style', DEFAULT_ART_STYLE),
            default_color_mood=color_mood
        )


@dataclass
class ServerConfig:
    """HTTP presentation boundary settings."""
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: List[str] = field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"]
    )
    action_rate_limit: str = "20/minute"
    rate_limit_enabled: bool = True

    @classmethod
    def from_dict(cls, data: dict) -> 'ServerConfig':
        """Create ServerConfig from dictionary."""
        defaults = cls()
        return cls(
            host=data.get('host', defaults.host),
            port=data.get('port', defaults.port),
            cors_origins=data.get('cors_origins', defaults.cors_origins),
            action_rate_limit=data.get('action_rate_limit', defaults.action_rate_limit),
            rate_limit_enabled=data.get('rate_limit_enabled', defaults.rate_limit_enabled)
        )


@dataclass
class PromptShotConfig:
    """Main configuration class for PromptShot."""

    project_name: str = PROJECT_NAME
    version: str = VERSION

    llm: LLMConfig = field(default_factory=LLMConfig)
    workflow: WorkflowConfig = field(default_factory=WorkflowConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    verbose_logging: bool = True
    log_file: Optional[Path] = None

    @classmethod
    def from_dict(cls, data: dict) -> 'PromptShotConfig':
        """Create PromptShotConfig from dictionary."""
        config = cls()

        config.project_name = data.get('project_name', config.project_name)
        config.version = data.get('version', config.version)
        config.verbose_logging = data.get('verbose_logging', config.verbose_logging)
        if data.get('log_file'):
            config.log_file = Path(data['log_file'])

        if 'llm' in data:
            config.llm = LLMConfig.from_dict(data['llm'])
        if 'workflow' in data:
            config.workflow = WorkflowConfig.from_dict(data['workflow'])
        if 'server' in data:
            config.server = ServerConfig.from_dict(data['server'])

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a JSON-serializable dictionary."""
        data = asdict(self)
        data['workflow']['default_color_mood'] = self.workflow.default_color_mood.value
        data['log_file'] = str(self.log_file) if self.log_file else None
        return data


def load_config(config_path: Path = None) -> PromptShotConfig:
    """
    Load configuration from JSON file.

    Args:
        config_path: Path to configuration file. If None, uses default.

    Returns:
        Loaded PromptShotConfig instance
    """
    if config_path is None:
        config_path = Path("config/promptshot_config.json")
    config_path = Path(config_path)

    if not config_path.exists():
        return PromptShotConfig()

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return PromptShotConfig.from_dict(data)
    except json.JSONDecodeError as e:
        raise InvalidConfigError(f"Invalid JSON in config file: {e}")
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Failed to load config: {e}")


def save_config(config: PromptShotConfig, config_path: Path) -> None:
    """Write configuration to a JSON file."""
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(config.to_dict(), indent=2), encoding='utf-8')


_config: Optional[PromptShotConfig] = None


def get_config() -> PromptShotConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: PromptShotConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
