"""Detection Protocol

교체 가능한 탐지 구현을 위한 인터페이스 정의.
모든 좌표는 원본 이미지 기준 절대 좌표(px), 이미지는 RGB numpy 배열.
"""

from typing import Protocol

import numpy as np

from mangaembed.schemas.pipeline import Detection, Rect


class BoxDetector(Protocol):
    """말풍선 탐지 인터페이스

    구현체:
    - BubbleDetector: 박스 회귀 모델 + NMS
    """

    def detect(self, image: np.ndarray) -> list[Detection]: ...


class TextLineDetector(Protocol):
    """텍스트 줄 탐지 인터페이스 (결과는 읽기 순서)

    구현체:
    - LineDetector: 세그멘테이션 확률 맵 + unclip
    """

    def detect_lines(self, image: np.ndarray) -> list[Rect]: ...


class MaskDetector(Protocol):
    """픽셀 단위 텍스트 마스크 인터페이스

    구현체:
    - TextMaskDetector
    """

    def detect_mask(self, image: np.ndarray) -> np.ndarray:
        """RGB 크롭 → 같은 크기의 (H, W) bool 마스크"""
        ...
