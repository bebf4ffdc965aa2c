"""アプリケーションのエントリポイント"""

import asyncio
import logging
import sys
from pathlib import Path

from kotonoha.application.services import (
    ConversationService,
    LazyModeHandler,
    ToolDispatcher,
)
from kotonoha.config import Config, ConfigError, LoggingConfig, load_config
from kotonoha.domain.services import SisterSwitchingService
from kotonoha.infrastructure import SystemDateTimeProvider, SystemRandomGenerator
from kotonoha.infrastructure.functions import ForgetMemory, GetCurrentTime
from kotonoha.infrastructure.llm import JinjaPromptRepository, LLMClient
from kotonoha.infrastructure.persistence import (
    DatabaseManager,
    SQLiteConversationRepository,
)
from kotonoha.presentation import ConsoleChat

# Default logging for early startup
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def configure_logging(config: LoggingConfig | None) -> None:
    """Configure logging based on config.

    Args:
        config: Logging configuration. If None, uses defaults.
    """
    if config is None:
        return

    root_logger = logging.getLogger()
    level = getattr(logging, config.level.upper(), logging.INFO)
    root_logger.setLevel(level)

    if root_logger.handlers:
        formatter = logging.Formatter(config.format)
        for handler in root_logger.handlers:
            handler.setFormatter(formatter)

    if config.loggers:
        for logger_name, logger_level in config.loggers.items():
            individual_level = getattr(logging, logger_level.upper(), logging.INFO)
            logging.getLogger(logger_name).setLevel(individual_level)
            logger.debug(
                "Set logger '%s' to level %s", logger_name, logger_level.upper()
            )


def build_conversation_service(
    config: Config, db_manager: DatabaseManager
) -> ConversationService:
    """設定から ConversationService を組み立てる

    Args:
        config: アプリケーション設定
        db_manager: 初期化済みのデータベース管理

    Returns:
        ConversationService インスタンス
    """
    random_generator = SystemRandomGenerator()
    datetime_provider = SystemDateTimeProvider()

    debug_llm_messages = bool(config.logging and config.logging.debug_llm_messages)
    llm_client = LLMClient(config.llm["default"], debug_llm_messages=debug_llm_messages)

    tool_dispatcher = ToolDispatcher(
        [
            ForgetMemory(random_generator),
            GetCurrentTime(datetime_provider),
        ]
    )
    lazy_mode_handler = LazyModeHandler(
        tool_dispatcher.functions,
        random_generator,
        patience_threshold=config.conversation.patience_threshold,
        lazy_probability=config.conversation.lazy_probability,
    )

    return ConversationService(
        prompt_repository=JinjaPromptRepository(config.persona),
        conversation_repository=SQLiteConversationRepository(db_manager.get_session),
        completion_provider=llm_client,
        tool_dispatcher=tool_dispatcher,
        lazy_mode_handler=lazy_mode_handler,
        datetime_provider=datetime_provider,
        sister_switching_service=SisterSwitchingService(),
        history_limit=config.conversation.history_limit,
    )


async def main() -> None:
    """アプリケーションを起動する"""
    config_path = Path("config.yaml")
    if not config_path.exists():
        logger.error("config.yaml not found")
        sys.exit(1)

    try:
        config = load_config(config_path)
    except ConfigError as e:
        logger.error("Failed to load config: %s", e)
        sys.exit(1)

    configure_logging(config.logging)

    db_manager = DatabaseManager(config.memory.database_path)
    await db_manager.create_tables()

    conversation_service = build_conversation_service(config, db_manager)
    state = await conversation_service.load_latest_conversation()

    try:
        await ConsoleChat(conversation_service).run(state)
    finally:
        await db_manager.close()
        logger.info("Shutdown complete")


def run() -> None:
    """Run the async main function."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Shutting down...")


if __name__ == "__main__":
    run()
