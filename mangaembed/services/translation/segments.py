"""<b>...</b> 태그 기반 말풍선 텍스트 묶기/분리

페이지의 모든 말풍선을 한 번의 번역 요청으로 보내고,
응답에서 태그 단위로 다시 잘라 말풍선에 돌려준다.
"""

import re
from collections.abc import Callable

from mangaembed.schemas.pipeline import OcrLanguage

_SEGMENT_PATTERN = re.compile(r"<b>(.*?)</b>", re.DOTALL)
_WHITESPACE = re.compile(r"\s+")


def normalize_ocr_text(text: str, language: OcrLanguage) -> str:
    """영어 OCR 결과만 공백 정규화 (줄바꿈 포함 연속 공백 → 공백 1개)"""
    if language == OcrLanguage.ENGLISH:
        return _WHITESPACE.sub(" ", text).strip()
    return text


def build_tagged_text(texts: list[str], normalize_whitespace: bool = False) -> str:
    """각 텍스트를 <b>...</b>로 감싸 줄 단위로 연결"""
    if normalize_whitespace:
        texts = [_WHITESPACE.sub(" ", t).strip() for t in texts]
    return "\n".join(f"<b>{t}</b>" for t in texts)


def extract_tagged_segments(
    text: str,
    sources: list[str],
    on_missing_tags: Callable[[], None] | None = None,
    on_count_mismatch: Callable[[int, int], None] | None = None,
) -> list[str]:
    """번역 응답에서 태그 구간 추출 (항상 len(sources)개 반환, 예외 없음)

    - 태그가 없고 기대 개수가 1이면 응답 전체를 사용
    - 태그가 없고 기대 개수가 2 이상이면 원문 그대로 반환 (on_missing_tags 후 on_count_mismatch(n, 0))
    - 개수가 다르면 앞에서부터 채우고 모자란 자리는 같은 위치의 원문으로 채움
    """
    expected = len(sources)
    if expected == 0:
        return []
    segments = [m.strip() for m in _SEGMENT_PATTERN.findall(text)]

    if not segments:
        if expected == 1:
            return [text.strip()]
        if on_missing_tags is not None:
            on_missing_tags()
        if on_count_mismatch is not None:
            on_count_mismatch(expected, 0)
        return list(sources)

    if len(segments) != expected and on_count_mismatch is not None:
        on_count_mismatch(expected, len(segments))

    return [segments[i] if i < len(segments) else sources[i] for i in range(expected)]
