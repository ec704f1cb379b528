"""폰트 로딩 및 글자 측정"""

from functools import lru_cache
from pathlib import Path
from typing import Protocol

from PIL import ImageFont

FONT_PATHS = [
    "/usr/share/fonts/opentype/noto/NotoSansCJK-Regular.ttc",
    "/usr/share/fonts/noto-cjk/NotoSansCJK-Regular.ttc",
    "/System/Library/Fonts/PingFang.ttc",
    "/System/Library/Fonts/Hiragino Sans GB.ttc",
    "C:/Windows/Fonts/msyh.ttc",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
]


class TextMeasurer(Protocol):
    """레이아웃 계산용 측정 인터페이스 (폰트 크기는 px)"""

    def advance(self, text: str, size: float) -> float:
        """text를 그렸을 때의 가로 진행 폭"""
        ...

    def metrics(self, size: float) -> tuple[float, float]:
        """(ascent, descent), 둘 다 양수"""
        ...


@lru_cache(maxsize=64)
def _get_font(size: float, font_path: str = "") -> ImageFont.FreeTypeFont:
    candidates = [font_path, *FONT_PATHS] if font_path else FONT_PATHS
    for path in candidates:
        if Path(path).exists():
            try:
                return ImageFont.truetype(path, size)
            except OSError:
                continue
    return ImageFont.load_default(size)  # type: ignore[return-value]


class PilTextMeasurer:
    """Pillow FreeType 폰트 기반 측정기"""

    def __init__(self, font_path: str = "") -> None:
        self._font_path = font_path

    def font(self, size: float) -> ImageFont.FreeTypeFont:
        return _get_font(round(size, 1), self._font_path)

    def advance(self, text: str, size: float) -> float:
        return float(self.font(size).getlength(text))

    def metrics(self, size: float) -> tuple[float, float]:
        ascent, descent = self.font(size).getmetrics()
        return float(ascent), float(descent)
