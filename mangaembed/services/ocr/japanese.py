"""ViT encoder + 자기회귀 decoder 기반 일본어 만화 OCR

모델 디렉터리 구성:
    encoder_model.onnx, decoder_model.onnx
    generation_config.json, preprocessor_config.json
    tokenizer.json, special_tokens_map.json
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Self

import cv2
import numpy as np

from mangaembed.services.inference.base import InferenceError, ModelId, NamedInferenceRunner


@dataclass(frozen=True)
class GenerationConfig:
    decoder_start_token_id: int
    eos_token_id: int
    max_length: int
    pad_token_id: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        return cls(
            decoder_start_token_id=int(data["decoder_start_token_id"]),
            eos_token_id=int(data["eos_token_id"]),
            max_length=int(data["max_length"]),
            pad_token_id=int(data["pad_token_id"]),
        )


@dataclass(frozen=True)
class ImageConfig:
    width: int
    height: int
    rescale_factor: float
    mean: tuple[float, float, float]
    std: tuple[float, float, float]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        mean, std = data["image_mean"], data["image_std"]
        return cls(
            width=int(data["size"]["width"]),
            height=int(data["size"]["height"]),
            rescale_factor=float(data["rescale_factor"]),
            mean=(float(mean[0]), float(mean[1]), float(mean[2])),
            std=(float(std[0]), float(std[1]), float(std[2])),
        )


class SimpleTokenizer:
    """id → 토큰 역변환만 지원 (특수 토큰/빈 토큰 제외, '##' 접두어 제거)"""

    def __init__(self, id_to_token: dict[int, str], special_tokens: set[str]) -> None:
        self._id_to_token = id_to_token
        self._special_tokens = special_tokens

    @classmethod
    def from_dicts(cls, tokenizer: dict[str, Any], special_map: dict[str, Any]) -> Self:
        vocab: dict[str, int] = tokenizer["model"]["vocab"]
        id_to_token = {int(idx): token for token, idx in vocab.items()}

        special: set[str] = set()
        for value in special_map.values():
            if isinstance(value, dict) and "content" in value:
                special.add(str(value["content"]))
            elif isinstance(value, str):
                special.add(value)
        return cls(id_to_token, special)

    def decode(self, ids: list[int]) -> str:
        pieces: list[str] = []
        for idx in ids:
            token = self._id_to_token.get(idx, "")
            if not token or token in self._special_tokens:
                continue
            pieces.append(token[2:] if token.startswith("##") else token)
        return "".join(pieces)


def _read_json(path: Path) -> dict[str, Any]:
    with path.open(encoding="utf-8") as f:
        return json.load(f)


def _find_input(names: list[str], keyword: str) -> str | None:
    return next((name for name in names if keyword in name), None)


class MangaOcr:
    """크롭된 말풍선 → 일본어 문자열 (greedy 디코딩, EOS 또는 max_length까지)"""

    def __init__(
        self,
        runner: NamedInferenceRunner,
        generation: GenerationConfig,
        image_config: ImageConfig,
        tokenizer: SimpleTokenizer,
        encoder_id: str = ModelId.JA_OCR_ENCODER,
        decoder_id: str = ModelId.JA_OCR_DECODER,
        log_model_io: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        self._runner = runner
        self._generation = generation
        self._image_config = image_config
        self._tokenizer = tokenizer
        self._encoder_id = encoder_id
        self._decoder_id = decoder_id
        self._log_model_io = log_model_io
        self._logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_dir(
        cls,
        runner: NamedInferenceRunner,
        model_dir: str | Path,
        log_model_io: bool = False,
    ) -> "MangaOcr":
        """모델 디렉터리의 설정 파일로 생성

        Raises:
            InferenceError: 설정 파일이 없거나 형식이 잘못된 경우
        """
        root = Path(model_dir)
        try:
            generation = GenerationConfig.from_dict(_read_json(root / "generation_config.json"))
            image_config = ImageConfig.from_dict(_read_json(root / "preprocessor_config.json"))
            tokenizer = SimpleTokenizer.from_dicts(
                _read_json(root / "tokenizer.json"),
                _read_json(root / "special_tokens_map.json"),
            )
        except (OSError, KeyError, TypeError, ValueError) as e:
            raise InferenceError(f"OCR 설정 로드 실패 ({root}): {e}") from e
        return cls(runner, generation, image_config, tokenizer, log_model_io=log_model_io)

    def recognize(self, image: np.ndarray) -> str:
        height, width = image.shape[:2]
        if height <= 0 or width <= 0:
            return ""

        encoder_inputs = self._runner.input_names(self._encoder_id)
        hidden = self._runner.run_named(
            self._encoder_id, {encoder_inputs[0]: self.preprocess(image)}
        )[0]

        ids = self._generate(hidden)
        text = self._tokenizer.decode(ids)
        if self._log_model_io:
            self._logger.info(f"입력 {width}x{height}, 출력: {text}")
        return text

    def preprocess(self, image: np.ndarray) -> np.ndarray:
        """설정 크기로 리사이즈 → RGB * rescale_factor → (v - mean) / std, (1, 3, H, W)"""
        cfg = self._image_config
        resized = cv2.resize(image, (cfg.width, cfg.height), interpolation=cv2.INTER_LINEAR)
        scaled = resized.astype(np.float32) * cfg.rescale_factor
        normalized = (scaled - np.array(cfg.mean, dtype=np.float32)) / np.array(
            cfg.std, dtype=np.float32
        )
        return normalized.transpose(2, 0, 1)[np.newaxis].astype(np.float32)

    def _generate(self, hidden: np.ndarray) -> list[int]:
        names = self._runner.input_names(self._decoder_id)
        ids_name = _find_input(names, "input_ids")
        hidden_name = _find_input(names, "encoder_hidden")
        attention_name = _find_input(names, "encoder_attention")
        if ids_name is None or hidden_name is None:
            raise InferenceError(f"decoder 입력 이름을 찾을 수 없음: {names}")

        seq_len = hidden.shape[1] if hidden.ndim >= 2 else 0
        attention = np.ones((1, seq_len), dtype=np.int64) if seq_len > 0 else None

        gen = self._generation
        ids = [gen.decoder_start_token_id]
        for _ in range(gen.max_length):
            feeds = {
                ids_name: np.array([ids], dtype=np.int64),
                hidden_name: hidden,
            }
            if attention_name is not None and attention is not None:
                feeds[attention_name] = attention

            logits = self._runner.run_named(self._decoder_id, feeds)[0]
            next_id = self._next_token(logits, len(ids))
            ids.append(next_id)
            if next_id == gen.eos_token_id:
                break
        return ids

    def _next_token(self, logits: np.ndarray, seq_len: int) -> int:
        if logits.ndim != 3 or logits.shape[0] < 1 or logits.shape[1] < seq_len:
            return self._generation.eos_token_id
        return int(np.argmax(logits[0, seq_len - 1]))
