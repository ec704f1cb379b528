"""Detection 모듈

사용법:
    from mangaembed.services.detection import get_bubble_detector

    detector = get_bubble_detector()
    detections = detector.detect(image)

모델 경로와 입력 크기는 .env 설정 (BUBBLE_MODEL_PATH, LINE_MODEL_PATH, TEXT_MASK_MODEL_PATH).
"""

from mangaembed.config import get_settings
from mangaembed.services.detection.base import BoxDetector, MaskDetector, TextLineDetector
from mangaembed.services.detection.bubble import BubbleDetector
from mangaembed.services.detection.line import LineDetector
from mangaembed.services.detection.text_mask import TextMaskDetector
from mangaembed.services.inference import InferenceRunner, get_inference

__all__ = [
    "BoxDetector",
    "MaskDetector",
    "TextLineDetector",
    "create_mask_detector",
    "get_bubble_detector",
    "get_line_detector",
    "set_bubble_detector",
    "set_line_detector",
]

_bubble_detector: BoxDetector | None = None
_line_detector: TextLineDetector | None = None


def get_bubble_detector() -> BoxDetector:
    """설정에 따라 말풍선 탐지기 반환"""
    global _bubble_detector
    if _bubble_detector is None:
        _bubble_detector = BubbleDetector(
            get_inference(), input_size=get_settings().bubble_input_size
        )
    return _bubble_detector


def set_bubble_detector(detector: BoxDetector | None) -> None:
    """말풍선 탐지기 설정 (테스트용)"""
    global _bubble_detector
    _bubble_detector = detector


def get_line_detector() -> TextLineDetector:
    """설정에 따라 텍스트 줄 탐지기 반환"""
    global _line_detector
    if _line_detector is None:
        _line_detector = LineDetector(get_inference(), input_size=get_settings().line_input_size)
    return _line_detector


def set_line_detector(detector: TextLineDetector | None) -> None:
    """텍스트 줄 탐지기 설정 (테스트용)"""
    global _line_detector
    _line_detector = detector


def create_mask_detector(runner: InferenceRunner) -> MaskDetector:
    """worker 전용 마스크 탐지기 생성 (공유하지 않음)"""
    return TextMaskDetector(runner, input_size=get_settings().mask_input_size)
