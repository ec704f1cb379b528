"""세그멘테이션 모델 기반 텍스트 줄 탐지"""

import logging

import numpy as np

from mangaembed.constants import Segmentation
from mangaembed.schemas.pipeline import Rect
from mangaembed.services.detection.decoding import decode_probability_map
from mangaembed.services.detection.preprocess import letterbox, to_chw_tensor
from mangaembed.services.detection.reading_order import sort_reading_order
from mangaembed.services.inference.base import InferenceRunner, ModelId


class LineDetector:
    """letterbox → BGR, (v - 0.5) / 0.5 정규화 → 확률 맵 디코딩 → 읽기 순서 정렬"""

    def __init__(
        self,
        runner: InferenceRunner,
        input_size: int = 640,
        model_id: str = ModelId.LINE,
        logger: logging.Logger | None = None,
    ) -> None:
        self._runner = runner
        self._input_size = input_size
        self._model_id = model_id
        self._logger = logger or logging.getLogger(__name__)

    def detect_lines(self, image: np.ndarray) -> list[Rect]:
        height, width = image.shape[:2]
        if height <= 0 or width <= 0:
            return []

        padded, box = letterbox(image, self._input_size, self._input_size)
        tensor = to_chw_tensor(padded, Segmentation.MEAN, Segmentation.STD, bgr=True)
        rects = decode_probability_map(self._runner.run(self._model_id, tensor), box)
        self._logger.debug(f"텍스트 줄 탐지: {len(rects)}개 ({width}x{height})")
        return sort_reading_order(rects)
