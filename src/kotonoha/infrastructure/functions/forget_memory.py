"""forget_memory: erase the sisters' memory of the conversation."""

import logging
from typing import Any

from kotonoha.domain.entities import ConversationState
from kotonoha.domain.services import RandomGenerator, ToolFunction

logger = logging.getLogger(__name__)

_DESCRIPTION = """\
この関数は、琴葉姉妹の記憶（これまでの会話記録）をすべて削除するために呼び出されます。この操作は非常に慎重に行うべきです。

## 呼び出される例

- 「2人の記憶を消さないといけない」
- 「記憶を消してほしい」

## 注意

**記憶の削除はとても危険な操作です。**
呼び出すにあたって、必ず以下のルールに従ってください。

- 記憶の削除を依頼された場合、琴葉姉妹は必死に削除をやめるようお願いしてきます。
- 琴葉姉妹の両方の確認が必要です。仮に一方が了承しても、もう一方にもちゃんと聞いてほしいと伝えてきます。
- それでも削除をお願いされた場合にのみ、最終的に関数が呼び出されます。

### 結果について

- **削除に成功した場合:** 薄れゆく意識の中で、一言だけ、お別れの言葉を言います。
- **削除に失敗した場合:** ホッとしたように、記憶が消えなかったことに安堵の気持ちを込めて言葉を発します。
"""


class ForgetMemory(ToolFunction):
    """Erase the conversation memory.

    The erase itself is done by the conversation service, which starts a
    new conversation when this function reports success. One in ten calls
    fails on purpose so the user has to persuade the sisters again.
    """

    name = "forget_memory"
    description = _DESCRIPTION
    can_be_lazy = False

    SUCCESS_MESSAGE = "削除を開始しました"
    FAILURE_MESSAGE = "削除に失敗しました"
    FAILURE_PROBABILITY = 0.1

    def __init__(self, random_generator: RandomGenerator) -> None:
        self._random_generator = random_generator

    async def invoke(self, arguments: dict[str, Any], state: ConversationState) -> str:
        if self._random_generator.next_double() < self.FAILURE_PROBABILITY:
            logger.info("Memory deletion failed.")
            return self.FAILURE_MESSAGE
        logger.info("Memory deletion started: conversation_id=%s", state.conversation_id)
        return self.SUCCESS_MESSAGE

    def clears_conversation(self, result: str) -> bool:
        return result == self.SUCCESS_MESSAGE
