"""세로쓰기용 문장부호 변환

가로쓰기 문장부호/괄호를 유니코드 세로쓰기 표현형으로 치환.
매핑에 없는 문자는 그대로 유지.
"""

VERTICAL_SYMBOLS: dict[str, str] = {
    # ASCII
    ",": "︐",
    ".": "︒",
    ":": "︓",
    ";": "︔",
    "!": "︕",
    "?": "︖",
    "(": "︵",
    ")": "︶",
    "[": "︹",
    "]": "︺",
    "{": "︷",
    "}": "︸",
    "<": "︿",
    ">": "﹀",
    "…": "︙",
    "—": "︱",
    # 전각
    "，": "︐",
    "。": "︒",
    "、": "︑",
    "：": "︓",
    "；": "︔",
    "！": "︕",
    "？": "︖",
    "（": "︵",
    "）": "︶",
    "［": "︹",
    "］": "︺",
    "｛": "︷",
    "｝": "︸",
    # CJK 괄호
    "《": "︽",
    "》": "︾",
    "〈": "︿",
    "〉": "﹀",
    "「": "﹁",
    "」": "﹂",
    "『": "﹃",
    "』": "﹄",
    "【": "︻",
    "】": "︼",
    "〔": "︹",
    "〕": "︺",
    # 대시
    "－": "︱",
    "ー": "︱",
}

_TABLE = str.maketrans(VERTICAL_SYMBOLS)


def to_vertical_symbols(text: str) -> str:
    return text.translate(_TABLE)
