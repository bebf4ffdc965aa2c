"""設定管理モジュール"""

from kotonoha.config.loader import (
    ConfigError,
    ConfigValidationError,
    EnvironmentVariableError,
    expand_env_vars,
    load_config,
)
from kotonoha.config.models import (
    Config,
    ConversationConfig,
    LLMConfig,
    LoggingConfig,
    MemoryConfig,
    PersonaConfig,
)

__all__ = [
    "Config",
    "ConfigError",
    "ConfigValidationError",
    "ConversationConfig",
    "EnvironmentVariableError",
    "LLMConfig",
    "LoggingConfig",
    "MemoryConfig",
    "PersonaConfig",
    "expand_env_vars",
    "load_config",
]
