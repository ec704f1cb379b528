"""Inpainting 모듈

사용법:
    from mangaembed.services.inpainting import get_inpainting

    inpainter = get_inpainting()
    clean_image = inpainter.inpaint(image, mask)

마스크 생성(mask), 단색 덮기(white_cover)는 모델 없이 동작하는 순수 함수 모듈.
"""

from mangaembed.services.inference import InferenceRunner, get_inference
from mangaembed.services.inpainting.base import Inpainter
from mangaembed.services.inpainting.migan import InpaintingError, MiganInpainter

__all__ = ["Inpainter", "InpaintingError", "create_inpainting", "get_inpainting", "set_inpainting"]

_inpainter: Inpainter | None = None


def create_inpainting(runner: InferenceRunner) -> Inpainter:
    """worker 전용 인페인터 생성 (공유하지 않음)"""
    return MiganInpainter(runner)


def get_inpainting() -> Inpainter:
    """공용 인페인팅 백엔드 반환"""
    global _inpainter
    if _inpainter is None:
        _inpainter = create_inpainting(get_inference())
    return _inpainter


def set_inpainting(inpainter: Inpainter | None) -> None:
    """inpainting 백엔드 설정 (테스트용)"""
    global _inpainter
    _inpainter = inpainter
