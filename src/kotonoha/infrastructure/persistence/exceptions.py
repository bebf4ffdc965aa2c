"""Errors raised by the conversation store."""


class PersistenceError(Exception):
    """会話ストアの読み書きに失敗した"""


class DatabaseError(PersistenceError):
    """SQLite へのアクセスに失敗した

    Attributes:
        operation: 失敗した操作（例: "append messages"）
    """

    def __init__(self, operation: str, detail: object) -> None:
        self.operation = operation
        super().__init__(f"Failed to {operation}: {detail}")
