"""SQLite database holding the conversation log."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

# conversations / chat_messages テーブルをメタデータに登録する
from kotonoha.infrastructure.persistence import models as _models  # noqa: F401

IN_MEMORY = ":memory:"


def sqlite_url(database_path: str) -> str:
    """会話 DB のパスを aiosqlite の接続 URL にする"""
    return f"sqlite+aiosqlite:///{database_path}"


class DatabaseManager:
    """会話ストアの DB 管理

    config の memory.database_path に置いた SQLite ファイルに、
    会話と発言ログを保存する。エンジンは最初のアクセスで作られ、
    close() で破棄されるまで使い回す。
    """

    def __init__(self, database_path: str) -> None:
        """初期化

        Args:
            database_path: 会話 DB のファイルパス。":memory:" ならインメモリ
        """
        self._database_path = database_path
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    def get_engine(self) -> AsyncEngine:
        """エンジンを取得する

        ファイル DB の場合、置き場所のディレクトリがなければ作る。
        """
        if self._engine is None:
            if self._database_path != IN_MEMORY:
                Path(self._database_path).parent.mkdir(parents=True, exist_ok=True)
            self._engine = create_async_engine(sqlite_url(self._database_path))
            self._session_factory = async_sessionmaker(
                self._engine, class_=AsyncSession, expire_on_commit=False
            )
        return self._engine

    async def create_tables(self) -> None:
        """会話用のテーブルを作る（作成済みなら何もしない）"""
        async with self.get_engine().begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """リポジトリに渡すセッション生成関数"""
        self.get_engine()
        assert self._session_factory is not None
        async with self._session_factory() as session:
            yield session

    async def close(self) -> None:
        """終了時にエンジンを破棄する。再度使うと作り直される"""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
