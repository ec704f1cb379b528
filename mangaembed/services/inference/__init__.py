"""Inference 모듈

사용법:
    from mangaembed.services.inference import get_inference

    runner = get_inference()
    output = runner.run(ModelId.BUBBLE, tensor)

백엔드 선택 (.env INFERENCE_PROVIDER):
    - "onnx": onnxruntime 로컬 세션 (기본값)
"""

from pathlib import Path

from mangaembed.config import get_settings
from mangaembed.services.inference.base import (
    InferenceError,
    InferenceRunner,
    ModelId,
    NamedInferenceRunner,
)
from mangaembed.services.inference.onnx import OnnxInferenceRunner

__all__ = [
    "InferenceError",
    "InferenceRunner",
    "ModelId",
    "NamedInferenceRunner",
    "create_inference",
    "get_inference",
    "set_inference",
]

_runner: NamedInferenceRunner | None = None


def create_inference() -> NamedInferenceRunner:
    """설정에 따라 새 추론 백엔드 생성 (worker마다 독립 인스턴스가 필요할 때)"""
    settings = get_settings()
    if settings.inference_provider != "onnx":
        raise ValueError(f"Unknown inference provider: {settings.inference_provider!r}")

    ja_dir = Path(settings.ja_ocr_model_dir)
    return OnnxInferenceRunner(
        {
            ModelId.BUBBLE: settings.bubble_model_path,
            ModelId.TEXT_MASK: settings.text_mask_model_path,
            ModelId.LINE: settings.line_model_path,
            ModelId.MIGAN: settings.migan_model_path,
            ModelId.EN_OCR: settings.en_ocr_model_path,
            ModelId.JA_OCR_ENCODER: str(ja_dir / "encoder_model.onnx"),
            ModelId.JA_OCR_DECODER: str(ja_dir / "decoder_model.onnx"),
        }
    )


def get_inference() -> NamedInferenceRunner:
    """설정에 따라 공용 추론 백엔드 반환"""
    global _runner
    if _runner is None:
        _runner = create_inference()
    return _runner


def set_inference(runner: NamedInferenceRunner | None) -> None:
    """추론 백엔드 설정 (테스트용)"""
    global _runner
    _runner = runner
