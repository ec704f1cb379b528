"""모델 입력 전처리 (리사이즈, 레터박스, 정규화)

이미지는 모두 RGB uint8 numpy 배열 (H, W, 3).
"""

from dataclasses import dataclass

import cv2
import numpy as np


@dataclass(frozen=True)
class Letterbox:
    """레터박스 변환 정보 (모델 좌표 → 원본 좌표 역변환용)"""

    src_width: int
    src_height: int
    width: int
    height: int
    new_width: int
    new_height: int
    pad_x: int
    pad_y: int

    @property
    def ratio_x(self) -> float:
        return self.new_width / self.src_width

    @property
    def ratio_y(self) -> float:
        return self.new_height / self.src_height


def letterbox(image: np.ndarray, width: int, height: int) -> tuple[np.ndarray, Letterbox]:
    """비율을 유지해 축소/확대한 뒤 검은 캔버스 중앙에 배치"""
    src_h, src_w = image.shape[:2]
    scale = min(width / src_w, height / src_h)
    new_w = min(width, max(1, round(src_w * scale)))
    new_h = min(height, max(1, round(src_h * scale)))

    resized = cv2.resize(image, (new_w, new_h), interpolation=cv2.INTER_LINEAR)
    canvas = np.zeros((height, width, 3), dtype=np.uint8)
    pad_x = (width - new_w) // 2
    pad_y = (height - new_h) // 2
    canvas[pad_y : pad_y + new_h, pad_x : pad_x + new_w] = resized

    info = Letterbox(
        src_width=src_w,
        src_height=src_h,
        width=width,
        height=height,
        new_width=new_w,
        new_height=new_h,
        pad_x=pad_x,
        pad_y=pad_y,
    )
    return canvas, info


def to_chw_tensor(
    image: np.ndarray, mean: float = 0.0, std: float = 1.0, bgr: bool = False
) -> np.ndarray:
    """RGB uint8 (H, W, 3) → float32 (1, 3, H, W), [0, 1] 스케일 후 (v - mean) / std"""
    x = image.astype(np.float32) / 255.0
    if bgr:
        x = x[..., ::-1]
    x = (x - mean) / std
    return np.ascontiguousarray(x.transpose(2, 0, 1)[np.newaxis, ...])
