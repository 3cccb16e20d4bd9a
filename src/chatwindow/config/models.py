"""設定データクラス"""

from dataclasses import dataclass

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class PersonaConfig:
    """ペルソナ設定"""

    name: str
    system_prompt: str


@dataclass
class ContextConfig:
    """コンテキストウィンドウ設定

    Attributes:
        context_window_tokens: コンテキストウィンドウ全体のトークン上限
        timezone: タイムスタンプ表示に使う IANA タイムゾーン名
        time_gap_minutes: 時間経過マーカーを挿入する間隔（分）。None で無効
        max_memory_tokens: 記憶に割り当てるトークン上限。None で無制限
        fast_estimate: 未計測の履歴を文字数から概算する
    """

    context_window_tokens: int
    timezone: str = "UTC"
    time_gap_minutes: int | None = 60
    max_memory_tokens: int | None = None
    fast_estimate: bool = False


@dataclass
class TokenizerConfig:
    """トークナイザ設定"""

    strategy: str = "litellm"
    model: str = "gpt-4o"
    chars_per_token: int = 4


@dataclass
class LoggingConfig:
    """ログ設定"""

    level: str = "INFO"
    format: str = DEFAULT_LOG_FORMAT
    loggers: dict[str, str] | None = None


@dataclass
class Config:
    """アプリケーション設定"""

    persona: PersonaConfig
    context: ContextConfig
    tokenizer: TokenizerConfig
    logging: LoggingConfig | None = None
