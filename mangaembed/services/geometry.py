"""사각형 기하 연산 (IoU, NMS, 적응형 병합)

모든 함수는 순수 함수이며 입력을 수정하지 않음.
"""

import math

from mangaembed.constants import Merge, Nms
from mangaembed.schemas.pipeline import Detection, Rect


def intersection_area(a: Rect, b: Rect) -> float:
    left = max(a.left, b.left)
    top = max(a.top, b.top)
    right = min(a.right, b.right)
    bottom = min(a.bottom, b.bottom)
    return max(0.0, right - left) * max(0.0, bottom - top)


def iou(a: Rect, b: Rect) -> float:
    """Intersection over Union (합집합 면적 0 이하이면 0)"""
    inter = intersection_area(a, b)
    union_area = a.area + b.area - inter
    if union_area <= 0:
        return 0.0
    return inter / union_area


def overlap_over_min_area(a: Rect, b: Rect) -> float:
    """교집합 / 작은 쪽 면적 (어느 한쪽 면적이 0 이하이면 0)"""
    if a.area <= 0 or b.area <= 0:
        return 0.0
    return intersection_area(a, b) / min(a.area, b.area)


def union(a: Rect, b: Rect) -> Rect:
    """두 사각형을 감싸는 최소 사각형"""
    return Rect(
        left=min(a.left, b.left),
        top=min(a.top, b.top),
        right=max(a.right, b.right),
        bottom=max(a.bottom, b.bottom),
    )


def contains(outer: Rect, inner: Rect) -> bool:
    return (
        outer.left <= inner.left
        and outer.top <= inner.top
        and outer.right >= inner.right
        and outer.bottom >= inner.bottom
    )


def nms(
    detections: list[Detection],
    conf_threshold: float = Nms.CONF_THRESHOLD,
    iou_threshold: float = Nms.IOU_THRESHOLD,
) -> list[Detection]:
    """표준 Non-Max Suppression

    confidence 내림차순 안정 정렬 후 선택된 박스와 IoU가 threshold를 넘는 박스를 제거.
    동점은 원래 순서 유지.
    """
    candidates = [d for d in detections if d.confidence >= conf_threshold]
    candidates.sort(key=lambda d: d.confidence, reverse=True)

    selected: list[Detection] = []
    for det in candidates:
        if all(iou(det.rect, kept.rect) <= iou_threshold for kept in selected):
            selected.append(det)
    return selected


def _lerp(start: float, end: float, t: float) -> float:
    return start + (end - start) * t


def _size_factor(a: Rect, b: Rect, image_area: float) -> float:
    """작은 박스의 이미지 대비 면적 비율을 [0, 1]로 정규화 (순수 함수)"""
    min_area = min(a.area, b.area)
    return min(1.0, max(0.0, math.sqrt((min_area / image_area) / Merge.REF_AREA_FRACTION)))


def _padded_intersect(a: Rect, b: Rect, pad: float) -> bool:
    return (
        a.left - pad < b.right + pad
        and b.left - pad < a.right + pad
        and a.top - pad < b.bottom + pad
        and b.top - pad < a.bottom + pad
    )


def should_merge(a: Rect, b: Rect, image_area: float) -> bool:
    """두 박스를 병합해야 하는지 판정

    (a) 작은 박스 기준 겹침이 충분하거나
    (b) 합집합이 작고, 세로 중심 간격이 가깝고, IoU가 크거나 패딩 후 교차하면 병합.
    (b)의 임계값은 박스 크기에 따라 선형 보간.
    """
    if a.area <= 0 or b.area <= 0:
        return False
    if overlap_over_min_area(a, b) >= Merge.OVERLAP_MIN_AREA:
        return True
    if image_area <= 0:
        return False

    if union(a, b).area >= image_area * Merge.MAX_UNION_FRACTION:
        return False

    t = _size_factor(a, b, image_area)
    gap_limit = _lerp(Merge.GAP_SMALL, Merge.GAP_LARGE, t)
    if abs(a.center[1] - b.center[1]) > gap_limit:
        return False

    iou_limit = _lerp(Merge.IOU_SMALL, Merge.IOU_LARGE, t)
    if iou(a, b) >= iou_limit:
        return True
    return _padded_intersect(a, b, _lerp(Merge.PAD_SMALL, Merge.PAD_LARGE, t))


def merge_rects(rects: list[Rect], image_width: int, image_height: int) -> list[Rect]:
    """적응형 기하 병합

    모든 쌍을 훑어 조건을 만족하면 i를 합집합으로 교체하고 j를 제거.
    병합이 한 번도 일어나지 않는 패스가 나올 때까지 반복 (고정점).
    """
    result = list(rects)
    image_area = float(image_width) * float(image_height)

    merged = True
    while merged:
        merged = False
        i = 0
        while i < len(result):
            j = i + 1
            while j < len(result):
                if should_merge(result[i], result[j], image_area):
                    result[i] = union(result[i], result[j])
                    del result[j]
                    merged = True
                else:
                    j += 1
            i += 1
    return result


def filter_overlapping(
    text_rects: list[Rect], bubble_rects: list[Rect], iou_threshold: float
) -> list[Rect]:
    """말풍선과 겹치거나 말풍선에 포함된 텍스트 박스 제거"""
    if not bubble_rects:
        return list(text_rects)
    return [
        rect
        for rect in text_rects
        if not any(
            iou(rect, bubble) >= iou_threshold or contains(bubble, rect) for bubble in bubble_rects
        )
    ]


def pad_rect(rect: Rect, width: int, height: int, ratio: float, min_pad: float) -> Rect:
    """높이 비례 패딩 후 이미지 경계로 클리핑 (순수 함수)"""
    pad = max(min_pad, ratio * max(1.0, rect.height))
    return rect.expanded(pad).clamped(width, height)
