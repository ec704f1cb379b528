"""Inference Protocol

신경망 추론을 불투명한 연산자로 취급하기 위한 인터페이스 정의.
텐서는 numpy 배열 (shape + values)로 주고받음.
"""

from typing import Protocol

import numpy as np


class InferenceError(Exception):
    pass


class ModelId:
    BUBBLE = "bubble"
    TEXT_MASK = "text_mask"
    LINE = "line"
    MIGAN = "migan"
    EN_OCR = "en_ocr"
    JA_OCR_ENCODER = "ja_ocr_encoder"
    JA_OCR_DECODER = "ja_ocr_decoder"


class InferenceRunner(Protocol):
    """단일 입력 추론 인터페이스

    구현체:
    - OnnxInferenceRunner: onnxruntime 로컬 세션
    """

    def run(self, model_id: str, tensor: np.ndarray) -> np.ndarray:
        """모델 실행

        Args:
            model_id: 모델 식별자 (ModelId)
            tensor: 입력 텐서

        Returns:
            첫 번째 출력 텐서

        Raises:
            InferenceError: 모델 로드 또는 실행 실패 시
        """
        ...


class NamedInferenceRunner(InferenceRunner, Protocol):
    """이름 기반 다중 입력 추론 (encoder-decoder 모델용)"""

    def input_names(self, model_id: str) -> list[str]: ...

    def run_named(self, model_id: str, feeds: dict[str, np.ndarray]) -> list[np.ndarray]: ...

    def custom_metadata(self, model_id: str) -> dict[str, str]: ...
