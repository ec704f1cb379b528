from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mangaembed.constants import Limits


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Models
    inference_provider: str = "onnx"  # "onnx"
    bubble_model_path: str = "models/bubble_detector.onnx"
    text_mask_model_path: str = "models/text_mask.onnx"
    line_model_path: str = "models/en_det.onnx"
    migan_model_path: str = "models/migan_512.onnx"
    en_ocr_model_path: str = "models/en_rec.onnx"
    ja_ocr_model_dir: str = "models/manga_ocr"
    bubble_input_size: int = 640
    line_input_size: int = 640
    mask_input_size: int = 960

    # OCR
    ocr_language: str = "ja"  # "ja" | "en"

    # Translation
    translation_provider: str = "openai"  # "openai" | "gemini"
    llm_api_url: str = ""
    llm_api_key: str = ""
    llm_model: str = "gpt-3.5-turbo"  # 쉼표로 여러 개 지정 시 라운드로빈
    llm_timeout: int = 60
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash-lite"

    # Concurrency
    embed_threads: int = 2
    translate_concurrency: int = 3

    # Rendering
    vertical_text: bool = False
    font_path: str = ""

    # Logging
    log_dir: str = "logs"
    log_level: str = "INFO"
    log_max_bytes: int = 1_000_000
    log_max_files: int = 15
    model_io_logging: bool = False

    @field_validator("embed_threads")
    @classmethod
    def clamp_embed_threads(cls, value: int) -> int:
        return min(Limits.EMBED_THREADS_MAX, max(Limits.EMBED_THREADS_MIN, value))

    @field_validator("translate_concurrency")
    @classmethod
    def clamp_translate_concurrency(cls, value: int) -> int:
        return min(Limits.TRANSLATE_CONCURRENCY_MAX, max(Limits.TRANSLATE_CONCURRENCY_MIN, value))


@lru_cache
def get_settings() -> Settings:
    return Settings()
