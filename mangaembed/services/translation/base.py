"""Translation Protocol

교체 가능한 번역 구현을 위한 인터페이스 정의.
"""

from typing import Protocol

from mangaembed.constants import Limits
from mangaembed.schemas.pipeline import TranslatedText


class TranslationError(Exception):
    pass


class TranslationNotConfiguredError(TranslationError):
    """API URL/키/모델이 비어 있음 (재시도해도 소용없음)"""


class TranslationRequestError(TranslationError):
    """일시적 실패: HTTP 상태 코드, 타임아웃, 해석 불가 응답"""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = summarize_body(body)


def summarize_body(body: str | None, limit: int = Limits.LLM_BODY_SUMMARY) -> str:
    """로그용 응답 본문 요약 (줄바꿈 제거, limit자 초과 시 절단)"""
    if body is None or not body.strip():
        return "(empty)"
    normalized = body.replace("\n", " ").replace("\r", " ").strip()
    if len(normalized) <= limit:
        return normalized
    return normalized[:limit] + "...(truncated)"


class Translator(Protocol):
    """태그된 페이지 텍스트 번역 인터페이스

    구현체:
    - LlmTranslation: OpenAI 호환 chat completions API
    - GeminiTranslation: Google Gemini API
    """

    def translate(self, tagged_text: str, glossary: dict[str, str]) -> TranslatedText | None:
        """<b>...</b> 태그로 감싼 말풍선 텍스트들을 한 번에 번역

        Args:
            tagged_text: build_tagged_text()로 만든 페이지 텍스트
            glossary: 고유명사 용어집 (원문 → 번역)

        Returns:
            TranslatedText, 재시도 후에도 실패하면 None

        Raises:
            TranslationNotConfiguredError: 설정이 비어 있는 경우
        """
        ...
