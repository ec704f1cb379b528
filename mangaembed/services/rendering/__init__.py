"""Rendering 모듈

사용법:
    from mangaembed.services.rendering import EmbeddedTextRenderer

    output = EmbeddedTextRenderer().render(clean_image, translation_result, vertical=False)
"""

from mangaembed.services.rendering.fonts import PilTextMeasurer, TextMeasurer
from mangaembed.services.rendering.renderer import (
    EmbeddedTextRenderer,
    RenderingError,
    render_overlay,
)

__all__ = [
    "EmbeddedTextRenderer",
    "PilTextMeasurer",
    "RenderingError",
    "TextMeasurer",
    "render_overlay",
]
