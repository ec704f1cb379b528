"""MiganInpainter + 팩토리 테스트"""

from unittest.mock import patch

import numpy as np
import pytest

from mangaembed.services.inpainting import (
    create_inpainting,
    get_inpainting,
    set_inpainting,
)
from mangaembed.services.inpainting.migan import (
    InpaintingError,
    MiganInpainter,
    build_input_tensor,
    composite,
    decode_output,
)

INPAINTING_MODULE = "mangaembed.services.inpainting"


class TestBuildInputTensor:
    def test_channels(self) -> None:
        image = np.full((4, 4, 3), 255, dtype=np.uint8)
        mask = np.zeros((4, 4), dtype=bool)
        mask[0, 0] = True

        tensor = build_input_tensor(image, mask)

        assert tensor.shape == (1, 4, 4, 4)
        assert tensor[0, 0, 0, 0] == -0.5  # 지울 픽셀
        assert tensor[0, 0, 1, 1] == 0.5
        assert tensor[0, 1, 0, 0] == 0.0  # 지울 픽셀의 RGB는 0
        assert tensor[0, 1, 1, 1] == 1.0


class TestDecodeOutput:
    def test_chw(self) -> None:
        output = np.ones((1, 3, 2, 2), dtype=np.float32)
        decoded = decode_output(output)
        assert decoded is not None
        assert decoded.shape == (2, 2, 3)
        assert (decoded == 255).all()

    def test_hwc(self) -> None:
        output = -np.ones((1, 2, 2, 3), dtype=np.float32)
        decoded = decode_output(output)
        assert decoded is not None
        assert (decoded == 0).all()

    def test_clips_out_of_range(self) -> None:
        output = np.full((1, 3, 1, 1), 5.0, dtype=np.float32)
        decoded = decode_output(output)
        assert decoded is not None
        assert decoded[0, 0, 0] == 255

    def test_unknown_shape(self) -> None:
        assert decode_output(np.zeros((1, 4, 2, 2), dtype=np.float32)) is None
        assert decode_output(np.zeros((3, 2, 2), dtype=np.float32)) is None


class TestComposite:
    def test_only_masked_pixels_replaced(self) -> None:
        original = np.zeros((2, 2, 3), dtype=np.uint8)
        generated = np.full((2, 2, 3), 9, dtype=np.uint8)
        mask = np.array([[True, False], [False, False]])

        result = composite(original, generated, mask)

        assert result[0, 0, 0] == 9
        assert result[1, 1, 0] == 0
        assert original[0, 0, 0] == 0


class TestMiganInpainter:
    def setup_method(self) -> None:
        self.runner = FakeRunner(np.full((1, 3, 16, 16), 1.0, dtype=np.float32))
        self.inpainter = MiganInpainter(self.runner, model_size=16)

    def test_pixels_outside_mask_unchanged(self) -> None:
        image = np.zeros((40, 40, 3), dtype=np.uint8)
        mask = np.zeros((40, 40), dtype=bool)
        mask[18:22, 18:22] = True

        result = self.inpainter.inpaint(image, mask)

        assert self.runner.shapes == [(1, 4, 16, 16)]
        assert (result[mask] == 255).all()
        assert (result[:10, :10] == 0).all()

    def test_empty_mask_skips_model(self) -> None:
        image = np.zeros((10, 10, 3), dtype=np.uint8)
        result = self.inpainter.inpaint(image, np.zeros((10, 10), dtype=bool))
        assert self.runner.shapes == []
        assert np.array_equal(result, image)
        assert result is not image

    def test_mask_size_mismatch_returns_copy(self) -> None:
        image = np.zeros((10, 10, 3), dtype=np.uint8)
        result = self.inpainter.inpaint(image, np.ones((5, 5), dtype=bool))
        assert self.runner.shapes == []
        assert np.array_equal(result, image)

    def test_empty_image_raises(self) -> None:
        with pytest.raises(InpaintingError):
            self.inpainter.inpaint(np.zeros((0, 0, 3), dtype=np.uint8), np.zeros((0, 0), bool))

    def test_unknown_output_returns_copy(self) -> None:
        inpainter = MiganInpainter(FakeRunner(np.zeros((1, 5, 16, 16), np.float32)), model_size=16)
        image = np.zeros((20, 20, 3), dtype=np.uint8)
        mask = np.ones((20, 20), dtype=bool)
        assert np.array_equal(inpainter.inpaint(image, mask), image)


class TestInpaintingFactory:
    def setup_method(self) -> None:
        set_inpainting(None)

    def test_create_returns_migan(self) -> None:
        assert isinstance(create_inpainting(FakeRunner(np.zeros(1))), MiganInpainter)

    def test_get_inpainting_caches(self) -> None:
        with patch(f"{INPAINTING_MODULE}.get_inference", return_value=FakeRunner(np.zeros(1))):
            first = get_inpainting()
            second = get_inpainting()
        assert first is second

    def test_set_inpainting_overrides(self) -> None:
        mock = MockInpainter()
        set_inpainting(mock)
        assert get_inpainting() is mock


class FakeRunner:
    def __init__(self, output: np.ndarray) -> None:
        self.output = output
        self.shapes: list[tuple[int, ...]] = []

    def run(self, model_id: str, tensor: np.ndarray) -> np.ndarray:
        self.shapes.append(tuple(tensor.shape))
        return self.output


class MockInpainter:
    def inpaint(self, image: np.ndarray, mask: np.ndarray) -> np.ndarray:
        return image
