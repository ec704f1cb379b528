"""Detection 후처리

두 가지 모델 출력 형식을 박스 리스트로 변환:
- 박스 회귀 (cx, cy, w, h, conf[, class]) → NMS
- 세그멘테이션 확률 맵 → 연결 요소 + unclip 확장

인식할 수 없는 shape는 예외 대신 빈 리스트 반환.
"""

import logging

import cv2
import numpy as np

from mangaembed.constants import Nms, Segmentation
from mangaembed.schemas.pipeline import Detection, Rect
from mangaembed.services.detection.preprocess import Letterbox
from mangaembed.services.detection.shapes import (
    ChannelsFirst,
    match_box_shape,
    match_prob_map_shape,
)
from mangaembed.services.geometry import nms

logger = logging.getLogger(__name__)

NORMALIZED_COORD_LIMIT = 1.5  # 이 값 이하면 [0, 1] 정규화 좌표로 간주


def decode_boxes(
    output: np.ndarray,
    input_width: int,
    input_height: int,
    original_width: int,
    original_height: int,
    conf_threshold: float = Nms.CONF_THRESHOLD,
    iou_threshold: float = Nms.IOU_THRESHOLD,
) -> list[Detection]:
    """박스 회귀 출력 → 원본 이미지 좌표 Detection 리스트 (NMS 적용)

    채널이 정확히 6개면 6번째 값이 class id.
    그 외에는 채널 4..끝이 클래스별 점수이며 argmax를 conf/class로 사용.
    """
    layout = match_box_shape(output.shape)
    if layout is None:
        logger.warning(f"알 수 없는 박스 출력 shape: {tuple(output.shape)}")
        return []

    data = np.asarray(output[0], dtype=np.float32)
    rows = data.T if isinstance(layout, ChannelsFirst) else data

    if layout.channels == 6:
        confs = rows[:, 4]
        class_ids = rows[:, 5].astype(np.int64)
    else:
        scores = rows[:, 4:]
        class_ids = np.argmax(scores, axis=1)
        confs = scores[np.arange(len(rows)), class_ids]

    scale_x = original_width / input_width
    scale_y = original_height / input_height

    candidates: list[Detection] = []
    for row, conf, class_id in zip(rows, confs, class_ids, strict=True):
        if not np.isfinite(conf) or conf < conf_threshold:
            continue
        rect = _to_rect(row[:4], input_width, input_height, scale_x, scale_y)
        if rect is None:
            continue
        candidates.append(
            Detection(rect=rect, confidence=min(1.0, float(conf)), class_id=int(class_id))
        )

    return nms(candidates, conf_threshold=conf_threshold, iou_threshold=iou_threshold)


def _to_rect(
    box: np.ndarray, input_width: int, input_height: int, scale_x: float, scale_y: float
) -> Rect | None:
    cx, cy, w, h = (float(v) for v in box)
    if not all(np.isfinite(v) for v in (cx, cy, w, h)):
        return None

    # 정규화 좌표 휴리스틱: 네 값 모두 1.5 이하이면 입력 해상도를 곱함
    if max(cx, cy, w, h) <= NORMALIZED_COORD_LIMIT:
        cx, w = cx * input_width, w * input_width
        cy, h = cy * input_height, h * input_height

    return Rect(
        left=(cx - w / 2) * scale_x,
        top=(cy - h / 2) * scale_y,
        right=(cx + w / 2) * scale_x,
        bottom=(cy + h / 2) * scale_y,
    )


def extract_prob_map(output: np.ndarray) -> np.ndarray | None:
    """확률 맵 출력에서 (H, W) float32 배열 추출 (batch 0)"""
    shape = match_prob_map_shape(output.shape)
    if shape is None:
        logger.warning(f"알 수 없는 확률 맵 shape: {tuple(output.shape)}")
        return None

    prob = output[0, 0] if output.ndim == 4 else output[0]
    return np.asarray(prob, dtype=np.float32)


def decode_probability_map(
    output: np.ndarray,
    letterbox: Letterbox,
    prob_threshold: float = Segmentation.PROB_THRESHOLD,
    box_threshold: float = Segmentation.BOX_THRESHOLD,
    min_component: int = Segmentation.MIN_COMPONENT,
    unclip_ratio: float = Segmentation.UNCLIP_RATIO,
    min_size: int = Segmentation.MIN_SIZE,
) -> list[Rect]:
    """확률 맵 → 원본 이미지 좌표 박스 리스트

    1. threshold 초과 픽셀의 8-연결 요소 추출
    2. 작은 요소, 평균 확률이 낮은 요소, 3px 미만 박스 제거
    3. unclip: distance = area / (2 * (w + h)) * ratio 만큼 확장 후 맵 경계로 클램핑
    4. 레터박스 패딩/비율을 역적용해 원본 좌표로 변환, 3px 이하 박스 제거
    """
    prob = extract_prob_map(output)
    if prob is None:
        return []

    map_h, map_w = prob.shape
    binary = (prob > prob_threshold).astype(np.uint8)
    num_labels, labels, stats, _ = cv2.connectedComponentsWithStats(binary, connectivity=8)
    if num_labels <= 1:
        return []

    sums = np.bincount(labels.ravel(), weights=prob.ravel(), minlength=num_labels)

    rects: list[Rect] = []
    for label in range(1, num_labels):
        x, y, w, h, count = (int(v) for v in stats[label])
        if count < min_component:
            continue
        if sums[label] / count < box_threshold:
            continue
        if w < min_size or h < min_size:
            continue

        distance = w * h / (2 * (w + h)) * unclip_ratio
        left = min(float(map_w), max(0.0, x - distance))
        top = min(float(map_h), max(0.0, y - distance))
        right = min(float(map_w), max(0.0, x + w + distance))
        bottom = min(float(map_h), max(0.0, y + h + distance))

        mapped = _unletterbox(left, top, right, bottom, letterbox)
        if mapped.width <= min_size or mapped.height <= min_size:
            continue
        rects.append(mapped)

    return rects


def _unletterbox(left: float, top: float, right: float, bottom: float, box: Letterbox) -> Rect:
    """레터박스 좌표 → 원본 좌표 (순수 함수)"""
    return Rect(
        left=(left - box.pad_x) / box.ratio_x,
        top=(top - box.pad_y) / box.ratio_y,
        right=(right - box.pad_x) / box.ratio_x,
        bottom=(bottom - box.pad_y) / box.ratio_y,
    ).clamped(box.src_width, box.src_height)
