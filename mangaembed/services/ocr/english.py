"""CTC 인식 모델 기반 영어 OCR (텍스트 줄 단위)"""

import logging

import cv2
import numpy as np

from mangaembed.schemas.pipeline import OcrResult
from mangaembed.services.inference.base import InferenceError, ModelId, NamedInferenceRunner
from mangaembed.services.ocr.ctc import charset_from_metadata, ctc_decode, default_charset

INPUT_HEIGHT = 48
INPUT_WIDTH = 320


def preprocess_line(image: np.ndarray) -> np.ndarray:
    """높이 48로 비율 유지 리사이즈 (폭 최대 320) → BGR, (v/255 - 0.5) / 0.5

    남는 폭은 0으로 채운 (1, 3, 48, 320) float32 텐서.
    """
    height, width = image.shape[:2]
    target_w = int(INPUT_HEIGHT * width / height)
    target_w = min(INPUT_WIDTH, max(1, target_w))

    resized = cv2.resize(image, (target_w, INPUT_HEIGHT), interpolation=cv2.INTER_LINEAR)
    bgr = resized[:, :, ::-1].astype(np.float32) / 255.0
    normalized = (bgr - 0.5) / 0.5

    tensor = np.zeros((1, 3, INPUT_HEIGHT, INPUT_WIDTH), dtype=np.float32)
    tensor[0, :, :, :target_w] = normalized.transpose(2, 0, 1)
    return tensor


class EnglishOcr:
    """크롭된 텍스트 줄 → 문자열 + 신뢰도

    문자 집합은 모델 메타데이터 'character'에서 읽고, 없으면 기본 영문 집합 사용.
    """

    def __init__(
        self,
        runner: NamedInferenceRunner,
        model_id: str = ModelId.EN_OCR,
        charset: list[str] | None = None,
        log_model_io: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        self._runner = runner
        self._model_id = model_id
        self._charset = charset
        self._log_model_io = log_model_io
        self._logger = logger or logging.getLogger(__name__)

    @property
    def charset(self) -> list[str]:
        if self._charset is None:
            self._charset = self._load_charset()
        return self._charset

    def recognize(self, image: np.ndarray) -> str:
        return self.recognize_with_score(image).text

    def recognize_with_score(self, image: np.ndarray) -> OcrResult:
        height, width = image.shape[:2]
        if height <= 0 or width <= 0:
            return OcrResult(text="", score=0.0)

        output = self._runner.run(self._model_id, preprocess_line(image))
        result = ctc_decode(output, self.charset)
        if self._log_model_io:
            self._logger.info(f"입력 {width}x{height}, 출력: {result.text} ({result.score:.3f})")
        return result

    def _load_charset(self) -> list[str]:
        try:
            charset = charset_from_metadata(self._runner.custom_metadata(self._model_id))
        except InferenceError as e:
            self._logger.warning(f"모델 메타데이터 읽기 실패, 기본 문자 집합 사용: {e}")
            charset = None

        if charset is None:
            charset = default_charset()
            self._logger.info(f"기본 문자 집합 사용: {len(charset)}자")
        else:
            self._logger.info(f"모델 메타데이터 문자 집합: {len(charset)}자")
        return charset
