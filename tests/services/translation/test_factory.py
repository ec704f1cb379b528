"""Translation 팩토리 테스트"""

from unittest.mock import patch

import pytest

from mangaembed.schemas.pipeline import TranslatedText
from mangaembed.services.translation import get_translation, set_translation
from mangaembed.services.translation.gemini import GeminiTranslation
from mangaembed.services.translation.llm_client import LlmTranslation

TRANSLATION_MODULE = "mangaembed.services.translation"


class TestGetTranslation:
    def setup_method(self) -> None:
        set_translation(None)

    def test_openai_provider(self) -> None:
        with patch(f"{TRANSLATION_MODULE}.get_settings") as mock_settings:
            mock_settings.return_value.translation_provider = "openai"
            mock_settings.return_value.llm_api_url = "https://llm.test"
            mock_settings.return_value.llm_api_key = "k"
            mock_settings.return_value.llm_model = "m"
            mock_settings.return_value.llm_timeout = 30
            mock_settings.return_value.model_io_logging = False
            translator = get_translation()
        assert isinstance(translator, LlmTranslation)
        assert translator.is_configured()

    def test_gemini_provider(self) -> None:
        with patch(f"{TRANSLATION_MODULE}.get_settings") as mock_settings:
            mock_settings.return_value.translation_provider = "gemini"
            mock_settings.return_value.gemini_api_key = "k"
            mock_settings.return_value.gemini_model = "m"
            translator = get_translation()
        assert isinstance(translator, GeminiTranslation)

    def test_unknown_provider_raises(self) -> None:
        with patch(f"{TRANSLATION_MODULE}.get_settings") as mock_settings:
            mock_settings.return_value.translation_provider = "unknown"
            with pytest.raises(ValueError, match="Unknown translation provider"):
                get_translation()

    def test_get_translation_caches(self) -> None:
        with patch(f"{TRANSLATION_MODULE}.get_settings") as mock_settings:
            mock_settings.return_value.translation_provider = "gemini"
            mock_settings.return_value.gemini_api_key = "k"
            mock_settings.return_value.gemini_model = "m"
            first = get_translation()
            second = get_translation()
        assert first is second

    def test_set_translation_overrides(self) -> None:
        mock = MockTranslator()
        set_translation(mock)
        assert get_translation() is mock


class MockTranslator:
    def translate(self, tagged_text: str, glossary: dict[str, str]) -> TranslatedText | None:
        return None
