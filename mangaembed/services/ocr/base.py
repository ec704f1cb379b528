"""OCR Protocol

언어별 OCR 엔진을 같은 인터페이스로 교체하기 위한 정의.
이미지는 RGB uint8 (H, W, 3) numpy 배열.
"""

from typing import Protocol, runtime_checkable

import numpy as np

from mangaembed.schemas.pipeline import OcrResult


class OcrEngine(Protocol):
    """크롭된 텍스트 영역 인식 인터페이스

    구현체:
    - EnglishOcr: CTC 기반 줄 단위 인식
    - MangaOcr: encoder-decoder 기반 일본어 인식
    """

    def recognize(self, image: np.ndarray) -> str:
        """이미지 안의 텍스트 인식 (인식 실패 시 빈 문자열)"""
        ...


@runtime_checkable
class ScoredOcrEngine(OcrEngine, Protocol):
    """신뢰도 점수를 함께 돌려주는 OCR (줄 단위 필터링용)"""

    def recognize_with_score(self, image: np.ndarray) -> OcrResult: ...
