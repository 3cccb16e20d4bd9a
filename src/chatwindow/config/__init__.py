"""設定管理モジュール"""

from chatwindow.config.loader import (
    ConfigError,
    ConfigValidationError,
    EnvironmentVariableError,
    expand_env_vars,
    load_config,
)
from chatwindow.config.models import (
    Config,
    ContextConfig,
    LoggingConfig,
    PersonaConfig,
    TokenizerConfig,
)

__all__ = [
    "Config",
    "ConfigError",
    "ConfigValidationError",
    "ContextConfig",
    "EnvironmentVariableError",
    "LoggingConfig",
    "PersonaConfig",
    "TokenizerConfig",
    "expand_env_vars",
    "load_config",
]
