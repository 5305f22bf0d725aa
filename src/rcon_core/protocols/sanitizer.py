# src/rcon_core/protocols/sanitizer.py
from .constants import COLOR_CODE_INTRODUCER


def strip_color_codes(text: str, introducer: str = COLOR_CODE_INTRODUCER) -> str:
    """移除文本中的颜色代码转义序列。

    遇到引导符时，引导符本身及其后的一个字符都会被丢弃，其余字符原样保留。
    按字符 (而非字节) 处理，因此不会截断多字节 UTF-8 序列。

    Args:
        text: 已完成 UTF-8 解码的正文文本。
        introducer: 引导符，默认为 "§"。

    Returns:
        str: 清洗后的文本。例如 "§6Hello§7 World" -> "Hello World"。
    """
    if not introducer or introducer not in text:
        return text

    out = []
    skip_next = False
    for ch in text:
        if skip_next:
            skip_next = False
            continue
        if ch == introducer:
            skip_next = True
            continue
        out.append(ch)

    return "".join(out)
