"""배경 링 샘플링 및 단색 덮기 판정

말풍선 내부처럼 배경이 밝고 균일하면 AI 인페인팅 대신 평균색으로 채움.
채운 픽셀은 남은 마스크에서 제거되어 인페인터는 나머지만 처리.
"""

import logging

import numpy as np

from mangaembed.constants import Cover
from mangaembed.schemas.pipeline import BubbleTranslation, Rect, RingSample
from mangaembed.services.inpainting.mask import BubblePredicate

logger = logging.getLogger(__name__)

LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)


def cover_margin(rect: Rect) -> float:
    """말풍선 크기 비례 여백 (순수 함수)"""
    scaled = min(rect.width, rect.height) * Cover.MARGIN_RATIO
    return min(Cover.MARGIN_MAX, max(Cover.MARGIN_MIN, scaled))


def sample_ring(
    image: np.ndarray, outer: Rect, inner: Rect, min_samples: int = Cover.MIN_SAMPLES
) -> RingSample | None:
    """outer \\ inner 영역 픽셀 통계 (샘플이 min_samples 미만이면 None)

    평균 RGB, 평균 luma, luma 모표준편차, 평균 (max - min) 채널 편차.
    """
    height, width = image.shape[:2]
    ol, ot, or_, ob = outer.clamped(width, height).to_tuple()
    if or_ <= ol or ob <= ot:
        return None

    select = np.ones((ob - ot, or_ - ol), dtype=bool)
    il, it, ir, ib = inner.clamped(width, height).to_tuple()
    il, ir = max(il, ol) - ol, min(ir, or_) - ol
    it, ib = max(it, ot) - ot, min(ib, ob) - ot
    if ir > il and ib > it:
        select[it:ib, il:ir] = False

    pixels = image[ot:ob, ol:or_][select].astype(np.float64)
    if len(pixels) < min_samples:
        return None

    luma = pixels @ LUMA_WEIGHTS
    spread = pixels.max(axis=1) - pixels.min(axis=1)
    avg = pixels.mean(axis=0)
    return RingSample(
        avg_r=float(avg[0]),
        avg_g=float(avg[1]),
        avg_b=float(avg[2]),
        avg_luma=float(luma.mean()),
        luma_std=float(luma.std()),
        avg_color_spread=float(spread.mean()),
        count=len(pixels),
    )


def is_uniform_background(sample: RingSample) -> bool:
    """밝고 균일한 배경인지 판정 (순수 함수)"""
    return (
        sample.avg_luma >= Cover.MIN_LUMA
        and sample.luma_std <= Cover.MAX_LUMA_STD
        and sample.avg_color_spread <= Cover.MAX_COLOR_SPREAD
    )


def mask_bounds(mask: np.ndarray, scan: Rect) -> Rect | None:
    """scan 영역 내 마스크 픽셀의 최소 외접 사각형 (없으면 None)"""
    height, width = mask.shape
    left, top, right, bottom = scan.clamped(width, height).to_tuple()
    if right <= left or bottom <= top:
        return None

    ys, xs = np.nonzero(mask[top:bottom, left:right])
    if len(xs) == 0:
        return None
    return Rect(
        left=left + int(xs.min()),
        top=top + int(ys.min()),
        right=left + int(xs.max()) + 1,
        bottom=top + int(ys.max()) + 1,
    )


def apply_uniform_cover(
    image: np.ndarray,
    mask: np.ndarray,
    bubbles: list[BubbleTranslation],
    predicate: BubblePredicate | None = None,
) -> tuple[np.ndarray, np.ndarray, list[int]]:
    """균일 배경 말풍선의 마스크 픽셀을 평균색으로 채움

    Args:
        image: RGB 이미지 (수정하지 않음)
        mask: erase 마스크 (수정하지 않음)
        bubbles: 대상 말풍선 (image 좌표)
        predicate: 대상 필터

    Returns:
        (채운 이미지, 남은 마스크, 덮은 말풍선 id 리스트)
    """
    height, width = mask.shape
    result = image.copy()
    remaining = mask.copy()
    covered: list[int] = []

    for bubble in bubbles:
        if predicate is not None and not predicate(bubble):
            continue

        margin = cover_margin(bubble.rect)
        bound = mask_bounds(mask, bubble.rect.expanded(margin))
        if bound is None:
            continue

        cover_rect = bound.expanded(margin)
        sample = sample_ring(image, cover_rect.expanded(margin), cover_rect)
        if sample is None or not is_uniform_background(sample):
            continue

        left, top, right, bottom = cover_rect.clamped(width, height).to_tuple()
        selected = mask[top:bottom, left:right]
        color = np.array(
            [round(sample.avg_r), round(sample.avg_g), round(sample.avg_b)], dtype=result.dtype
        )
        result[top:bottom, left:right][selected] = color
        remaining[top:bottom, left:right][selected] = False
        covered.append(bubble.id)

    if covered:
        logger.info(f"단색 덮기: {len(covered)}/{len(bubbles)}개 말풍선")
    return result, remaining, covered
