"""박스 회귀 모델 기반 말풍선 탐지"""

import logging

import cv2
import numpy as np

from mangaembed.schemas.pipeline import Detection
from mangaembed.services.detection.decoding import decode_boxes
from mangaembed.services.detection.preprocess import to_chw_tensor
from mangaembed.services.inference.base import InferenceRunner, ModelId


class BubbleDetector:
    """이미지 전체를 입력 해상도로 리사이즈 (비율 무시) → RGB/255 CHW → 박스 디코딩"""

    def __init__(
        self,
        runner: InferenceRunner,
        input_size: int = 640,
        model_id: str = ModelId.BUBBLE,
        logger: logging.Logger | None = None,
    ) -> None:
        self._runner = runner
        self._input_size = input_size
        self._model_id = model_id
        self._logger = logger or logging.getLogger(__name__)

    def detect(self, image: np.ndarray) -> list[Detection]:
        height, width = image.shape[:2]
        if height <= 0 or width <= 0:
            return []

        resized = cv2.resize(
            image, (self._input_size, self._input_size), interpolation=cv2.INTER_LINEAR
        )
        output = self._runner.run(self._model_id, to_chw_tensor(resized))
        detections = decode_boxes(output, self._input_size, self._input_size, width, height)
        self._logger.debug(f"말풍선 탐지: {len(detections)}개 ({width}x{height})")
        return detections
