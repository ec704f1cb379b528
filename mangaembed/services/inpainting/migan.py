"""MI-GAN 기반 인페인팅 합성

모델 입력: [1, 4, 512, 512] (채널 0 = preserve - 0.5, 채널 1-3 = RGB [-1, 1] * preserve)
모델 출력: [1, 3, 512, 512] 또는 [1, 512, 512, 3], 값 범위 [-1, 1]
마스크 영역 밖 픽셀은 원본 그대로 유지.
"""

import logging

import cv2
import numpy as np

from mangaembed.constants import Migan
from mangaembed.services.inference.base import InferenceRunner, ModelId
from mangaembed.services.inpainting.mask import dilate_mask, resize_mask_conservative


class InpaintingError(Exception):
    pass


def build_input_tensor(image: np.ndarray, mask: np.ndarray) -> np.ndarray:
    """모델 해상도 RGB 이미지 + 마스크 → (1, 4, H, W) float32 (순수 함수)"""
    preserve = (~mask).astype(np.float32)
    rgb = image.astype(np.float32) / 255.0 * 2.0 - 1.0
    rgb = rgb * preserve[..., np.newaxis]

    tensor = np.empty((1, 4, *mask.shape), dtype=np.float32)
    tensor[0, 0] = preserve - 0.5
    tensor[0, 1:] = rgb.transpose(2, 0, 1)
    return tensor


def decode_output(output: np.ndarray) -> np.ndarray | None:
    """[-1, 1] 모델 출력 → (H, W, 3) uint8 (인식 불가 shape이면 None)"""
    if output.ndim != 4 or output.shape[0] < 1:
        return None
    if output.shape[1] == 3:
        chw = output[0]
    elif output.shape[3] == 3:
        chw = output[0].transpose(2, 0, 1)
    else:
        return None

    values = np.clip((chw.astype(np.float32) + 1.0) * 0.5, 0.0, 1.0) * 255.0
    return values.astype(np.uint8).transpose(1, 2, 0)


def composite(original: np.ndarray, generated: np.ndarray, mask: np.ndarray) -> np.ndarray:
    """마스크가 True인 픽셀만 생성 결과로 교체 (순수 함수)"""
    result = original.copy()
    result[mask] = generated[mask]
    return result


class MiganInpainter:
    """MI-GAN 모델로 erase 마스크 영역 복원"""

    def __init__(
        self,
        runner: InferenceRunner,
        model_id: str = ModelId.MIGAN,
        model_size: int = Migan.MODEL_SIZE,
        logger: logging.Logger | None = None,
    ) -> None:
        self._runner = runner
        self._model_id = model_id
        self._model_size = model_size
        self._logger = logger or logging.getLogger(__name__)

    def inpaint(self, image: np.ndarray, mask: np.ndarray) -> np.ndarray:
        """마스크 영역 인페인팅

        Args:
            image: RGB 이미지
            mask: 이미지와 같은 크기의 bool 마스크

        Returns:
            새 RGB 이미지 (마스크가 비었거나 크기가 다르면 원본 사본)

        Raises:
            InpaintingError: 입력 이미지가 비어 있는 경우
        """
        if image.size == 0:
            raise InpaintingError("유효하지 않은 이미지입니다")

        height, width = image.shape[:2]
        if mask.shape != (height, width):
            self._logger.warning(f"마스크 크기 불일치: {mask.shape} != {(height, width)}")
            return image.copy()
        if not mask.any():
            return image.copy()

        size = self._model_size
        expanded = dilate_mask(mask, Migan.DILATE_ITERATIONS)
        small_image = cv2.resize(image, (size, size), interpolation=cv2.INTER_AREA)
        small_mask = resize_mask_conservative(expanded, size, size)

        output = self._runner.run(self._model_id, build_input_tensor(small_image, small_mask))
        generated = decode_output(output)
        if generated is None:
            self._logger.warning(f"알 수 없는 인페인팅 출력 shape: {tuple(output.shape)}")
            return image.copy()

        upscaled = cv2.resize(generated, (width, height), interpolation=cv2.INTER_LINEAR)
        self._logger.debug(f"인페인팅 완료: {int(expanded.sum())}px ({width}x{height})")
        return composite(image, upscaled, expanded)
