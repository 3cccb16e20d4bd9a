"""YAML設定ファイルの読み込みと環境変数展開"""

import os
import re
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from chatwindow.config.models import (
    DEFAULT_LOG_FORMAT,
    Config,
    ContextConfig,
    LoggingConfig,
    PersonaConfig,
    TokenizerConfig,
)


class ConfigError(Exception):
    """設定関連の基底例外"""


class ConfigValidationError(ConfigError):
    """設定値のバリデーションエラー"""


class EnvironmentVariableError(ConfigError):
    """環境変数が見つからないエラー"""


# 環境変数パターン: ${VAR_NAME}
ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")

TOKENIZER_STRATEGIES = ("litellm", "characters")


def expand_env_vars(value: str) -> str:
    """文字列中の ${VAR_NAME} を環境変数の値に置換する

    Args:
        value: 置換対象の文字列

    Returns:
        環境変数が展開された文字列

    Raises:
        EnvironmentVariableError: 環境変数が未設定
    """
    if not value:
        return value

    def replace_var(match: re.Match[str]) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)
        if env_value is None:
            raise EnvironmentVariableError(
                f"Environment variable '{var_name}' is not set"
            )
        return env_value

    return ENV_VAR_PATTERN.sub(replace_var, value)


def _expand_recursive(data: Any) -> Any:
    """データ構造を再帰的に走査し、文字列中の環境変数を展開する"""
    if isinstance(data, dict):
        return {key: _expand_recursive(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_recursive(item) for item in data]
    elif isinstance(data, str):
        return expand_env_vars(data)
    else:
        return data


def _validate_required_field(data: dict[str, Any], field: str, parent: str = "") -> Any:
    """必須フィールドの存在を検証する

    Args:
        data: 検証対象のdict
        field: フィールド名
        parent: 親フィールド名（エラーメッセージ用）

    Returns:
        フィールドの値

    Raises:
        ConfigValidationError: フィールドが存在しない
    """
    if field not in data or data[field] is None:
        full_path = f"{parent}.{field}" if parent else field
        raise ConfigValidationError(f"Required field '{full_path}' is missing")
    return data[field]


def _validate_int(
    value: Any, path: str, *, minimum: int = 0, optional: bool = False
) -> int | None:
    """整数値を検証する

    Args:
        value: 検証対象の値
        path: フィールドのパス（エラーメッセージ用）
        minimum: 許容する最小値
        optional: None を許容するか

    Returns:
        検証済みの値

    Raises:
        ConfigValidationError: 整数でない、または最小値未満
    """
    if value is None and optional:
        return None
    # bool は int のサブクラスなので除外する
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigValidationError(f"Field '{path}' must be an integer")
    if value < minimum:
        raise ConfigValidationError(f"Field '{path}' must be >= {minimum}")
    return value


def _load_context(data: dict[str, Any]) -> ContextConfig:
    """context セクションを読み込む"""
    window = _validate_int(
        _validate_required_field(data, "context_window_tokens", "context"),
        "context.context_window_tokens",
        minimum=1,
    )

    timezone_name = data.get("timezone", "UTC")
    try:
        ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigValidationError(
            f"Unknown timezone 'context.timezone': {timezone_name}"
        ) from e

    return ContextConfig(
        context_window_tokens=window,
        timezone=timezone_name,
        time_gap_minutes=_validate_int(
            data.get("time_gap_minutes", 60),
            "context.time_gap_minutes",
            minimum=1,
            optional=True,
        ),
        max_memory_tokens=_validate_int(
            data.get("max_memory_tokens"),
            "context.max_memory_tokens",
            optional=True,
        ),
        fast_estimate=bool(data.get("fast_estimate", False)),
    )


def _load_tokenizer(data: dict[str, Any] | None) -> TokenizerConfig:
    """tokenizer セクションを読み込む（省略時はデフォルト）"""
    if not data:
        return TokenizerConfig()

    strategy = data.get("strategy", "litellm")
    if strategy not in TOKENIZER_STRATEGIES:
        raise ConfigValidationError(
            f"Field 'tokenizer.strategy' must be one of {', '.join(TOKENIZER_STRATEGIES)}"
        )

    return TokenizerConfig(
        strategy=strategy,
        model=data.get("model", "gpt-4o"),
        chars_per_token=_validate_int(
            data.get("chars_per_token", 4), "tokenizer.chars_per_token", minimum=1
        ),
    )


def load_config(path: str | Path) -> Config:
    """設定ファイルを読み込む

    Args:
        path: config.yaml のパス

    Returns:
        Config オブジェクト

    Raises:
        FileNotFoundError: ファイルが存在しない
        ConfigValidationError: 必須項目が欠落、または値が不正
        EnvironmentVariableError: 環境変数が未設定
        yaml.YAMLError: YAML構文エラー
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        raw_data = yaml.safe_load(f)

    if not isinstance(raw_data, dict):
        raise ConfigValidationError("Config file must contain a mapping")

    # 環境変数を展開
    data = _expand_recursive(raw_data)

    # 必須セクションの検証
    persona_data = _validate_required_field(data, "persona")
    context_data = _validate_required_field(data, "context")

    # PersonaConfig
    persona = PersonaConfig(
        name=_validate_required_field(persona_data, "name", "persona"),
        system_prompt=_validate_required_field(
            persona_data, "system_prompt", "persona"
        ),
    )

    context = _load_context(context_data)
    tokenizer = _load_tokenizer(data.get("tokenizer"))

    # LoggingConfig (optional)
    logging_config: LoggingConfig | None = None
    logging_data = data.get("logging")
    if logging_data:
        logging_config = LoggingConfig(
            level=logging_data.get("level", "INFO"),
            format=logging_data.get("format", DEFAULT_LOG_FORMAT),
            loggers=logging_data.get("loggers"),
        )

    return Config(
        persona=persona,
        context=context,
        tokenizer=tokenizer,
        logging=logging_config,
    )
