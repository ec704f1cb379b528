"""Erase 마스크 생성 및 모폴로지

마스크는 (H, W) bool numpy 배열, True = 지워야 할 픽셀.
"""

import logging
from collections.abc import Callable

import cv2
import numpy as np

from mangaembed.constants import TextMask
from mangaembed.schemas.pipeline import BubbleTranslation

logger = logging.getLogger(__name__)

MaskDetector = Callable[[np.ndarray], np.ndarray]
BubblePredicate = Callable[[BubbleTranslation], bool]

_KERNEL = np.ones((3, 3), dtype=np.uint8)


def build_erase_mask(
    image: np.ndarray,
    bubbles: list[BubbleTranslation],
    detect_mask: MaskDetector,
    expand_ratio: float = TextMask.EXPAND_RATIO,
    predicate: BubblePredicate | None = None,
) -> np.ndarray:
    """말풍선별로 크롭 → 텍스트 마스크 탐지 → 전체 마스크에 OR 합성

    Args:
        image: RGB 이미지
        bubbles: 대상 말풍선 (rect는 image 좌표 기준)
        detect_mask: 크롭 이미지 → 같은 크기의 bool 마스크
        expand_ratio: 크롭 확장 비율 (최소 2px)
        predicate: 대상 말풍선 필터 (None이면 전체)

    Returns:
        (H, W) bool 마스크. 겹치는 영역은 누적되며 이미 설정된 픽셀은 해제되지 않음.
    """
    height, width = image.shape[:2]
    mask = np.zeros((height, width), dtype=bool)

    for bubble in bubbles:
        if predicate is not None and not predicate(bubble):
            continue

        rect = bubble.rect
        pad = max(TextMask.EXPAND_MIN, min(rect.width, rect.height) * expand_ratio)
        left, top, right, bottom = rect.expanded(pad).clamped(width, height).to_tuple()
        if right <= left or bottom <= top:
            continue

        local = detect_mask(image[top:bottom, left:right])
        if local.shape != (bottom - top, right - left):
            logger.warning(f"마스크 크기 불일치 (bubble {bubble.id}): {local.shape}")
            continue

        mask[top:bottom, left:right] |= local.astype(bool)

    return mask


def dilate_mask(mask: np.ndarray, iterations: int) -> np.ndarray:
    """3x3 이진 팽창 (각 패스는 이전 패스 결과 기준으로 계산)"""
    if iterations <= 0:
        return mask.copy()
    dilated = cv2.dilate(mask.astype(np.uint8), _KERNEL, iterations=iterations)
    return dilated.astype(bool)


def _cell_bounds(dst: int, src: int) -> tuple[np.ndarray, np.ndarray]:
    """목적지 인덱스별 원본 구간 [start, end) (순수 함수)"""
    idx = np.arange(dst, dtype=np.int64)
    start = np.clip((idx * src) // dst, 0, src - 1)
    end = np.clip(np.maximum(((idx + 1) * src) // dst, start + 1), 1, src)
    return start, end


def resize_mask_conservative(mask: np.ndarray, dst_width: int, dst_height: int) -> np.ndarray:
    """보수적 리사이즈: 목적지 셀에 대응하는 원본 블록 중 하나라도 True면 True

    다운샘플링 시 얇은 erase 영역이 사라지지 않음.
    """
    src_h, src_w = mask.shape
    out = np.zeros((dst_height, dst_width), dtype=bool)
    if src_w <= 0 or src_h <= 0 or dst_width <= 0 or dst_height <= 0:
        return out

    # 2D prefix sum으로 블록 내 True 개수를 O(1)에 계산
    integral = np.zeros((src_h + 1, src_w + 1), dtype=np.int64)
    integral[1:, 1:] = mask.astype(np.int64).cumsum(axis=0).cumsum(axis=1)

    y0, y1 = _cell_bounds(dst_height, src_h)
    x0, x1 = _cell_bounds(dst_width, src_w)
    counts = (
        integral[np.ix_(y1, x1)]
        - integral[np.ix_(y0, x1)]
        - integral[np.ix_(y1, x0)]
        + integral[np.ix_(y0, x0)]
    )
    out[:] = counts > 0
    return out
