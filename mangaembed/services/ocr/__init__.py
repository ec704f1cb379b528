"""OCR 모듈

사용법:
    from mangaembed.services.ocr import get_ocr_engine

    engine = get_ocr_engine()  # OCR_LANGUAGE 설정 언어
    text = engine.recognize(crop)

언어별 엔진:
    - OcrLanguage.JAPANESE: MangaOcr (JA_OCR_MODEL_DIR)
    - OcrLanguage.ENGLISH: EnglishOcr (EN_OCR_MODEL_PATH)
"""

from collections.abc import Callable

from mangaembed.config import get_settings
from mangaembed.schemas.pipeline import OcrLanguage
from mangaembed.services.inference import NamedInferenceRunner, get_inference
from mangaembed.services.ocr.base import OcrEngine, ScoredOcrEngine
from mangaembed.services.ocr.english import EnglishOcr
from mangaembed.services.ocr.japanese import MangaOcr

__all__ = [
    "EnglishOcr",
    "MangaOcr",
    "OcrEngine",
    "ScoredOcrEngine",
    "create_ocr_engine",
    "default_ocr_language",
    "get_ocr_engine",
    "set_ocr_engine",
]


def _create_japanese(runner: NamedInferenceRunner) -> OcrEngine:
    settings = get_settings()
    return MangaOcr.from_dir(
        runner, settings.ja_ocr_model_dir, log_model_io=settings.model_io_logging
    )


def _create_english(runner: NamedInferenceRunner) -> OcrEngine:
    return EnglishOcr(runner, log_model_io=get_settings().model_io_logging)


_FACTORIES: dict[OcrLanguage, Callable[[NamedInferenceRunner], OcrEngine]] = {
    OcrLanguage.JAPANESE: _create_japanese,
    OcrLanguage.ENGLISH: _create_english,
}

_engines: dict[OcrLanguage, OcrEngine] = {}


def create_ocr_engine(language: OcrLanguage, runner: NamedInferenceRunner) -> OcrEngine:
    """주어진 추론 백엔드로 새 OCR 엔진 생성

    Raises:
        ValueError: 지원하지 않는 언어
    """
    factory = _FACTORIES.get(language)
    if factory is None:
        raise ValueError(f"Unknown OCR language: {language!r}")
    return factory(runner)


def default_ocr_language() -> OcrLanguage:
    """설정의 OCR_LANGUAGE

    Raises:
        ValueError: 지원하지 않는 언어 코드
    """
    return OcrLanguage(get_settings().ocr_language)


def get_ocr_engine(language: OcrLanguage | None = None) -> OcrEngine:
    """언어별 공용 OCR 엔진 반환 (None이면 설정 언어)"""
    language = language or default_ocr_language()
    engine = _engines.get(language)
    if engine is None:
        engine = create_ocr_engine(language, get_inference())
        _engines[language] = engine
    return engine


def set_ocr_engine(language: OcrLanguage, engine: OcrEngine | None) -> None:
    """언어별 OCR 엔진 설정 (테스트용)"""
    if engine is None:
        _engines.pop(language, None)
    else:
        _engines[language] = engine
