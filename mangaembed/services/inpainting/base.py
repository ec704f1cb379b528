"""Inpainting Protocol 정의

스왑 가능한 인페인팅 구현을 위한 인터페이스 정의
"""

from typing import Protocol

import numpy as np


class Inpainter(Protocol):
    """마스크 기반 인페인팅 인터페이스

    구현체:
    - MiganInpainter: MI-GAN 512x512 모델 + 선택적 합성
    """

    def inpaint(self, image: np.ndarray, mask: np.ndarray) -> np.ndarray:
        """마스크 영역을 지우고 복원한 새 이미지 반환

        Args:
            image: RGB 이미지 (numpy 배열)
            mask: (H, W) bool 마스크 (True = 제거 영역)

        Returns:
            인페인팅된 RGB 이미지 (마스크 밖 픽셀은 원본과 동일)
        """
        ...
