"""get_current_time: tell the model the current local time."""

from typing import Any

from kotonoha.domain.entities import ConversationState
from kotonoha.domain.services import DateTimeProvider, ToolFunction

_DESCRIPTION = """\
この関数は、返信の生成に時間を必要とする場合に呼び出されます。

## 呼び出される例

- 「今何時？」
- 「今日の天気は？」
- 「明後日の予定を教えて」
"""


class GetCurrentTime(ToolFunction):
    """Return the current time as "YYYY/MM/DD HH:MM:SS"."""

    name = "get_current_time"
    description = _DESCRIPTION

    def __init__(self, datetime_provider: DateTimeProvider) -> None:
        self._datetime_provider = datetime_provider

    async def invoke(self, arguments: dict[str, Any], state: ConversationState) -> str:
        return self._datetime_provider.now().strftime("%Y/%m/%d %H:%M:%S")
