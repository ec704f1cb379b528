"""CTC 출력 디코딩

출력 텐서 레이아웃이 모델마다 달라 클래스 수와 비교해 축을 판별한다:
- [T, 1, C]: dim1 == 1, dim0 > 1
- [1, T, C]: dim2가 클래스 수처럼 보임
- [1, C, T]: dim1이 클래스 수처럼 보임
- 그 외: [1, T, C]로 간주
"""

import string

import numpy as np

from mangaembed.schemas.pipeline import OcrResult

BLANK = "blank"
BLANK_INDEX = 0


def default_charset() -> list[str]:
    """blank + 숫자 + 대문자 + 소문자 + 문장부호 + 공백"""
    punctuation = string.punctuation + " "
    return [
        BLANK,
        *string.digits,
        *string.ascii_uppercase,
        *string.ascii_lowercase,
        *punctuation,
    ]


def charset_from_metadata(metadata: dict[str, str]) -> list[str] | None:
    """모델 메타데이터 'character' → 문자 목록 (blank는 0번, 공백은 마지막)"""
    raw = metadata.get("character")
    if not raw:
        return None
    chars = [line for line in raw.splitlines() if line.strip()]
    return [BLANK, *chars, " "]


def _looks_like_classes(value: int, class_count: int) -> bool:
    return abs(value - class_count) <= 1


def to_time_major(output: np.ndarray, class_count: int) -> np.ndarray | None:
    """출력 텐서 → (T, C) 확률 행렬, 판별 불가하면 None"""
    data = np.asarray(output, dtype=np.float32)
    if data.ndim == 2:
        return data
    if data.ndim != 3 or data.size == 0:
        return None

    dim0, dim1, dim2 = data.shape
    if dim1 == 1 and dim0 > 1:
        return data[:, 0, :]
    if dim0 == 1 and _looks_like_classes(dim2, class_count):
        return data[0]
    if dim0 == 1 and _looks_like_classes(dim1, class_count):
        return data[0].T
    return data[0]


def ctc_decode(output: np.ndarray, charset: list[str]) -> OcrResult:
    """greedy CTC 디코딩

    - 단계별 argmax
    - 직전과 같은 인덱스는 건너뜀, blank(0)는 출력하지 않음
    - 점수는 채택된 글자 확률의 평균 (없으면 0)
    """
    probs = to_time_major(output, len(charset))
    if probs is None or probs.shape[0] == 0 or probs.shape[1] == 0:
        return OcrResult(text="", score=0.0)

    indices = probs.argmax(axis=1)
    max_probs = probs[np.arange(len(indices)), indices]

    chars: list[str] = []
    confidences: list[float] = []
    prev = -1
    for idx, prob in zip(indices.tolist(), max_probs.tolist(), strict=True):
        if idx == prev:
            continue
        prev = idx
        if idx == BLANK_INDEX or idx >= len(charset):
            continue
        chars.append(charset[idx])
        confidences.append(prob)

    score = sum(confidences) / len(confidences) if confidences else 0.0
    return OcrResult(text="".join(chars), score=score)
