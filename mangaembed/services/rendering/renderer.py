"""번역 텍스트 렌더링 서비스

- EmbeddedTextRenderer: 인페인팅된 이미지에 글자별 흰 배경과 함께 직접 합성
- render_overlay: 원본 위에 반투명 말풍선 박스 + 텍스트
"""

import logging
from collections.abc import Callable

import numpy as np
from PIL import Image, ImageDraw

from mangaembed.constants import Layout
from mangaembed.schemas.pipeline import BubbleTranslation, Rect, TranslationResult
from mangaembed.services.rendering.fonts import PilTextMeasurer
from mangaembed.services.rendering.layout import (
    GlyphPlacement,
    glyph_background,
    horizontal_glyph_positions,
    layout_horizontal,
    layout_vertical,
    vertical_glyph_positions,
)
from mangaembed.services.rendering.vertical_symbols import to_vertical_symbols

TEXT_COLOR = (0x1B, 0x1B, 0x1B)
BACKGROUND_COLOR = (255, 255, 255)
OVERLAY_FILL = (255, 255, 255, 0xCC)
OVERLAY_STROKE = (0x2D, 0x2D, 0x2D, 255)
OVERLAY_RADIUS = 6


class RenderingError(Exception):
    pass


def page_scale(image: np.ndarray, result: TranslationResult) -> tuple[float, float]:
    """페이지 기록 좌표 → 실제 이미지 좌표 배율 (기록 크기가 0이면 1)"""
    height, width = image.shape[:2]
    sx = width / result.width if result.width > 0 else 1.0
    sy = height / result.height if result.height > 0 else 1.0
    return sx, sy


def inset_rect(rect: Rect, min_pad: float) -> Rect:
    pad = max(min_pad, min(rect.width, rect.height) * Layout.INSET_RATIO)
    return Rect(
        left=rect.left + pad,
        top=rect.top + pad,
        right=max(rect.left + pad, rect.right - pad),
        bottom=max(rect.top + pad, rect.bottom - pad),
    )


def _to_pil(image: np.ndarray) -> Image.Image:
    if image.size == 0:
        raise RenderingError("유효하지 않은 이미지입니다")
    return Image.fromarray(image).convert("RGB")


class EmbeddedTextRenderer:
    """글자 단위 배치 + 글자별 둥근 흰 배경으로 가독성 확보"""

    def __init__(
        self,
        measurer: PilTextMeasurer | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._measurer = measurer or PilTextMeasurer()
        self._logger = logger or logging.getLogger(__name__)

    def render(
        self,
        image: np.ndarray,
        result: TranslationResult,
        vertical: bool = False,
        draw_background: Callable[[BubbleTranslation], bool] = lambda _: True,
    ) -> np.ndarray:
        """번역 텍스트를 이미지에 합성한 새 RGB 배열 반환

        Raises:
            RenderingError: 이미지가 비어 있는 경우
        """
        pil_image = _to_pil(image)
        draw = ImageDraw.Draw(pil_image)
        sx, sy = page_scale(image, result)

        rendered = 0
        for bubble in result.bubbles:
            text = bubble.text.strip()
            rect = bubble.rect.scaled(sx, sy)
            if not text or rect.width <= 0 or rect.height <= 0:
                continue

            self._draw_text(draw, text, rect, vertical, draw_background(bubble))
            rendered += 1

        self._logger.info(f"렌더링 완료: {rendered}/{len(result.bubbles)}개 말풍선")
        return np.asarray(pil_image)

    def _draw_text(
        self,
        draw: ImageDraw.ImageDraw,
        text: str,
        rect: Rect,
        vertical: bool,
        with_background: bool,
    ) -> None:
        text_rect = inset_rect(rect, Layout.EMBED_INSET_MIN)
        if vertical:
            text = to_vertical_symbols(text)
            v_layout = layout_vertical(text, text_rect.width, text_rect.height, self._measurer)
            size, ascent, descent = v_layout.font_size, v_layout.ascent, v_layout.descent
            glyphs = vertical_glyph_positions(text, v_layout, text_rect, self._measurer)
        else:
            h_layout = layout_horizontal(text, text_rect.width, text_rect.height, self._measurer)
            size, ascent, descent = h_layout.font_size, h_layout.ascent, h_layout.descent
            glyphs = horizontal_glyph_positions(text, h_layout, text_rect, self._measurer)

        font = self._measurer.font(size)
        for glyph in glyphs:
            if with_background and not glyph.char.isspace():
                self._draw_glyph_background(draw, glyph, ascent, descent, text_rect)
            draw.text((glyph.x, glyph.baseline), glyph.char, font=font, fill=TEXT_COLOR, anchor="ls")

    def _draw_glyph_background(
        self,
        draw: ImageDraw.ImageDraw,
        glyph: GlyphPlacement,
        ascent: float,
        descent: float,
        max_rect: Rect,
    ) -> None:
        background = glyph_background(glyph, ascent, descent, max_rect)
        if background is None:
            return
        bg, radius = background
        draw.rounded_rectangle(
            (bg.left, bg.top, bg.right, bg.bottom), radius=radius, fill=BACKGROUND_COLOR
        )


def render_overlay(
    image: np.ndarray,
    result: TranslationResult,
    vertical: bool = False,
    measurer: PilTextMeasurer | None = None,
) -> np.ndarray:
    """원본 위에 반투명 흰 박스와 번역 텍스트를 겹쳐 그린 새 RGB 배열

    Raises:
        RenderingError: 이미지가 비어 있는 경우
    """
    measurer = measurer or PilTextMeasurer()
    base = _to_pil(image).convert("RGBA")
    overlay = Image.new("RGBA", base.size, (0, 0, 0, 0))
    box_draw = ImageDraw.Draw(overlay)
    sx, sy = page_scale(image, result)

    targets: list[tuple[str, Rect]] = []
    for bubble in result.bubbles:
        text = bubble.text.strip()
        rect = bubble.rect.scaled(sx, sy)
        if not text or rect.width <= 0 or rect.height <= 0:
            continue
        box_draw.rounded_rectangle(
            (rect.left, rect.top, rect.right, rect.bottom),
            radius=OVERLAY_RADIUS,
            fill=OVERLAY_FILL,
            outline=OVERLAY_STROKE,
            width=1,
        )
        targets.append((text, rect))

    composed = Image.alpha_composite(base, overlay).convert("RGB")
    draw = ImageDraw.Draw(composed)
    for text, rect in targets:
        text_rect = inset_rect(rect, Layout.OVERLAY_INSET_MIN)
        if vertical:
            text = to_vertical_symbols(text)
            v_layout = layout_vertical(text, text_rect.width, text_rect.height, measurer)
            size = v_layout.font_size
            glyphs = vertical_glyph_positions(text, v_layout, text_rect, measurer)
        else:
            h_layout = layout_horizontal(text, text_rect.width, text_rect.height, measurer)
            size = h_layout.font_size
            glyphs = horizontal_glyph_positions(text, h_layout, text_rect, measurer)

        font = measurer.font(size)
        for glyph in glyphs:
            draw.text((glyph.x, glyph.baseline), glyph.char, font=font, fill=TEXT_COLOR, anchor="ls")

    return np.asarray(composed)
