"""生成に関する指示文

姉妹ごとに異なる指示は Kotonoha をキーにした辞書で保持する。
"""

from kotonoha.domain.entities import Kotonoha

# 怠け癖の開始: 関数を呼び出さずにもう一方へタスクを押し付ける
BEGIN_LAZY_MODE: dict[Kotonoha, str] = {
    Kotonoha.AKANE: """\
**関数を呼び出さずに**、タスクを葵に押し付けてください

- 以下のように一言だけ言って、マスターからのタスクを葵に押し付けること
    - 例:「葵、任せたで」「あおいー、代わりに頼むわ」など。
    - あくまで例なので、状況に合わせて適切な押し付け方をしてください。
""",
    Kotonoha.AOI: """\
**関数を呼び出さずに**、タスクを茜に押し付けてください

- 以下のように一言だけ言って、マスターからのタスクを茜に押し付けること
    - 例:「お姉ちゃんお願い。」「えー、お姉ちゃんがやってよ。」など。
    - あくまで例なので、状況に合わせて適切な押し付け方をしてください。
""",
}

# 怠け癖の終了: 押し付けた側の姉妹をキーにする
END_LAZY_MODE: dict[Kotonoha, str] = {
    Kotonoha.AKANE: """\
姉の茜からタスクを押し付けられました。

- **関数を呼び出した上で**、返事の先頭にタスクを引き受けたことがわかるセリフを追加してください。
    - 例:「もう、仕方ないなあ。～」「任せて。～」など
    - あくまで例なので、状況に合わせて適切な引き受け方をしてください。
""",
    Kotonoha.AOI: """\
妹の葵からタスクを押し付けられました。

- **関数を呼び出した上で**、返事の先頭にタスクを引き受けたことがわかるセリフを追加してください。
    - 例:「もう、しゃあないなあ。～」「任せとき。～」など
    - あくまで例なので、状況に合わせて適切な引き受け方をしてください。
""",
}

CANCEL_LAZY_MODE = "以降、通常通り**関数を呼び出してください**"


def switch_sister_to(sister: Kotonoha) -> str:
    """姉妹切り替えの指示文"""
    return (
        f"姉妹が切り替わりました"
        f"({sister.switch().display_name} => {sister.display_name})"
    )
