"""Gemini 기반 번역 구현체"""

# pyright: reportMissingTypeStubs=false

import json
import logging

from google import genai
from google.genai import types

from mangaembed.constants import Limits
from mangaembed.schemas.pipeline import TranslatedText
from mangaembed.services.translation.base import (
    TranslationNotConfiguredError,
    TranslationRequestError,
)
from mangaembed.services.translation.llm_client import TRANSLATE_PROMPT, parse_translation_content


class GeminiTranslation:
    """Google Gemini API를 사용한 페이지 단위 번역"""

    def __init__(
        self,
        api_key: str,
        model: str,
        retry_count: int = Limits.LLM_RETRY_COUNT,
        logger: logging.Logger | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._retry_count = max(1, retry_count)
        self._logger = logger or logging.getLogger(__name__)

    def translate(self, tagged_text: str, glossary: dict[str, str]) -> TranslatedText | None:
        """태그된 페이지 텍스트를 한 번의 API 호출로 번역 (실패 시 재시도 후 None)

        Raises:
            TranslationNotConfiguredError: API 키 누락
        """
        if not self._api_key or not self._model:
            raise TranslationNotConfiguredError("GEMINI_API_KEY가 설정되지 않았습니다")

        client = genai.Client(api_key=self._api_key)
        user_content = json.dumps({"text": tagged_text, "glossary": glossary}, ensure_ascii=False)

        for attempt in range(1, self._retry_count + 1):
            try:
                return self._call_gemini(client, user_content)
            except TranslationRequestError as e:
                self._logger.warning(f"Gemini 번역 실패 ({attempt}/{self._retry_count}): {e}")

        return None

    def _call_gemini(self, client: genai.Client, user_content: str) -> TranslatedText:
        try:
            response = client.models.generate_content(
                model=self._model,
                contents=[TRANSLATE_PROMPT, user_content],
                config=types.GenerateContentConfig(response_mime_type="application/json"),
            )
        except Exception as e:
            raise TranslationRequestError(f"Gemini API 호출 실패: {e}") from e

        if not response.text:
            raise TranslationRequestError("빈 응답")

        return parse_translation_content(response.text)
