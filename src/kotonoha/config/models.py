"""設定データクラス"""

from dataclasses import dataclass


@dataclass
class LLMConfig:
    """LLM設定（LiteLLMのcompletionに渡すdict）"""

    model: str
    temperature: float = 0.7
    max_tokens: int = 1000


@dataclass
class PersonaConfig:
    """姉妹ごとの追加の振る舞い設定"""

    akane_behaviour: str | None = None
    aoi_behaviour: str | None = None


@dataclass
class MemoryConfig:
    """記憶設定"""

    database_path: str


@dataclass
class ConversationConfig:
    """会話設定

    Attributes:
        history_limit: 生成時に送信する直近メッセージ数
        patience_threshold: この回数を超えて同じ姉妹にお願いすると必ず怠ける
        lazy_probability: 怠け癖が発動する確率
    """

    history_limit: int = 20
    patience_threshold: int = 3
    lazy_probability: float = 0.1


@dataclass
class LoggingConfig:
    """ログ設定"""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    loggers: dict[str, str] | None = None
    debug_llm_messages: bool = False


@dataclass
class Config:
    """アプリケーション設定"""

    llm: dict[str, LLMConfig]
    memory: MemoryConfig
    conversation: ConversationConfig
    persona: PersonaConfig
    logging: LoggingConfig | None = None
