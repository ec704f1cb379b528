"""Translation 모듈

사용법:
    from mangaembed.services.translation import get_translation

    translator = get_translation()
    result = translator.translate(build_tagged_text(texts), glossary)

백엔드 선택 (.env TRANSLATION_PROVIDER):
    - "openai": OpenAI 호환 chat completions API (기본값)
    - "gemini": Google Gemini API
"""

from mangaembed.config import get_settings
from mangaembed.services.translation.base import (
    TranslationError,
    TranslationNotConfiguredError,
    TranslationRequestError,
    Translator,
)
from mangaembed.services.translation.gemini import GeminiTranslation
from mangaembed.services.translation.llm_client import LlmTranslation
from mangaembed.services.translation.segments import (
    build_tagged_text,
    extract_tagged_segments,
    normalize_ocr_text,
)

__all__ = [
    "TranslationError",
    "TranslationNotConfiguredError",
    "TranslationRequestError",
    "Translator",
    "build_tagged_text",
    "extract_tagged_segments",
    "get_translation",
    "normalize_ocr_text",
    "set_translation",
]

_translator: Translator | None = None


def get_translation() -> Translator:
    """설정에 따라 translation 백엔드 반환"""
    global _translator
    if _translator is None:
        settings = get_settings()
        if settings.translation_provider == "openai":
            _translator = LlmTranslation(
                api_url=settings.llm_api_url,
                api_key=settings.llm_api_key,
                model=settings.llm_model,
                timeout=settings.llm_timeout,
                log_model_io=settings.model_io_logging,
            )
        elif settings.translation_provider == "gemini":
            _translator = GeminiTranslation(
                api_key=settings.gemini_api_key,
                model=settings.gemini_model,
            )
        else:
            raise ValueError(f"Unknown translation provider: {settings.translation_provider!r}")
    return _translator


def set_translation(translator: Translator | None) -> None:
    """translation 백엔드 설정 (테스트용)"""
    global _translator
    _translator = translator
