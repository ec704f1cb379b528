"""픽셀 단위 텍스트(잉크) 마스크 탐지"""

import logging

import numpy as np

from mangaembed.constants import Segmentation, TextMask
from mangaembed.services.detection.decoding import extract_prob_map
from mangaembed.services.detection.preprocess import Letterbox, letterbox, to_chw_tensor
from mangaembed.services.inference.base import InferenceRunner, ModelId
from mangaembed.services.inpainting.mask import dilate_mask


class TextMaskDetector:
    """세그멘테이션 모델로 크롭 이미지의 텍스트 픽셀 마스크 생성

    letterbox → 확률 맵 → threshold → 모델 공간에서 팽창 → 원본 픽셀로 역매핑
    """

    def __init__(
        self,
        runner: InferenceRunner,
        input_size: int = 960,
        model_id: str = ModelId.TEXT_MASK,
        threshold: float = TextMask.THRESHOLD,
        logger: logging.Logger | None = None,
    ) -> None:
        self._runner = runner
        self._input_size = input_size
        self._model_id = model_id
        self._threshold = threshold
        self._logger = logger or logging.getLogger(__name__)

    def detect_mask(self, image: np.ndarray) -> np.ndarray:
        """RGB 크롭 → (H, W) bool 마스크 (인식 불가 출력이면 전부 False)"""
        height, width = image.shape[:2]
        empty = np.zeros((height, width), dtype=bool)
        if height <= 0 or width <= 0:
            return empty

        padded, box = letterbox(image, self._input_size, self._input_size)
        tensor = to_chw_tensor(padded, Segmentation.MEAN, Segmentation.STD, bgr=True)
        prob = extract_prob_map(self._runner.run(self._model_id, tensor))
        if prob is None:
            self._logger.warning(f"텍스트 마스크 출력 해석 실패: {width}x{height}")
            return empty

        raw = prob > self._threshold
        dilated = dilate_mask(raw, TextMask.DILATE_ITERATIONS)
        return map_mask_to_original(dilated, box)


def map_mask_to_original(mask: np.ndarray, box: Letterbox) -> np.ndarray:
    """모델 공간 마스크 → 원본 크기 마스크 (최근접 샘플링, 순수 함수)

    원본 픽셀 (x, y)는 모델 좌표 int(x * ratio + pad)를 샘플링 (경계 클램핑).
    """
    out_h, out_w = mask.shape
    xs = (np.arange(box.src_width) * box.ratio_x + box.pad_x).astype(np.int64)
    ys = (np.arange(box.src_height) * box.ratio_y + box.pad_y).astype(np.int64)
    xs = np.clip(xs, 0, out_w - 1)
    ys = np.clip(ys, 0, out_h - 1)
    return mask[np.ix_(ys, xs)]
