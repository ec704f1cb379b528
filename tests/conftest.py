from collections.abc import Generator

import numpy as np
import pytest

from mangaembed.config import get_settings
from mangaembed.schemas.pipeline import OcrLanguage
from mangaembed.services.detection import set_bubble_detector, set_line_detector
from mangaembed.services.inference import set_inference
from mangaembed.services.inpainting import set_inpainting
from mangaembed.services.ocr import set_ocr_engine
from mangaembed.services.translation import set_translation


def make_page(width: int = 200, height: int = 300, color: int = 255) -> np.ndarray:
    """테스트용 단색 RGB 페이지"""
    return np.full((height, width, 3), color, dtype=np.uint8)


@pytest.fixture(autouse=True)
def reset_backends() -> Generator[None, None, None]:
    """테스트마다 공용 백엔드와 설정 캐시 초기화"""
    get_settings.cache_clear()
    yield
    set_inference(None)
    set_bubble_detector(None)
    set_line_detector(None)
    set_inpainting(None)
    set_translation(None)
    for language in OcrLanguage:
        set_ocr_engine(language, None)
    get_settings.cache_clear()


@pytest.fixture
def white_page() -> np.ndarray:
    return make_page()
